"""Motion task adapters."""

import logging
from typing import Any, Dict, Optional

import httpx

from dealprep.delivery.base import MotionResult, MotionTask

logger = logging.getLogger(__name__)

MOTION_API_URL = "https://api.usemotion.com/v1"
MOTION_TASK_URL = "https://app.usemotion.com/task/{task_id}"


class MotionAPIAdapter:
    """Creates tasks through the Motion REST API.

    Args:
        api_key: Motion API key
        workspace_id: Default workspace for new tasks
        api_url: API base URL
        timeout_s: Request timeout
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    name = "motion"

    def __init__(
        self,
        api_key: str,
        workspace_id: str,
        api_url: str = MOTION_API_URL,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("Motion API key is required")
        if not workspace_id:
            raise ValueError("Motion workspace ID is required")
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.api_url = api_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    async def create_task(self, task: MotionTask) -> MotionResult:
        payload: Dict[str, Any] = {
            "name": task.title,
            "description": task.description,
            "workspaceId": task.workspace_id or self.workspace_id,
        }
        if task.due_date:
            payload["dueDate"] = task.due_date

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/tasks",
                    json=payload,
                    headers={"X-API-Key": self.api_key, "Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Motion request failed for {task.title!r}: {e}")
            return MotionResult(success=False, error=f"Motion request failed: {e}")

        if not response.is_success:
            error = f"Motion API error: {response.status_code} - {response.text}"
            logger.error(error)
            return MotionResult(success=False, error=error)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        task_id = data.get("id") or (data.get("task") or {}).get("id")
        if not task_id:
            return MotionResult(success=False, error="Motion API response had no task id")

        task_url = MOTION_TASK_URL.format(task_id=task_id)
        logger.info(f"Motion task created: {task_url}")
        return MotionResult(success=True, task_id=task_id, task_url=task_url)


class NullMotionAdapter:
    """Used when Motion is not configured."""

    name = "null"

    async def create_task(self, task: MotionTask) -> MotionResult:
        logger.warning(f"Motion not configured; skipping task {task.title!r}")
        return MotionResult(success=True, metadata={"skipped": True})
