"""Email adapters.

SendGridEmailAdapter posts to the SendGrid v3 mail API. Sending is
idempotent per run id within the process: a second send for the same run
is reported as success without calling the API.
"""

import logging
from typing import Any, Dict, Optional, Set

import httpx

from dealprep.delivery.base import EmailMessage, EmailResult
from dealprep.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailAdapter:
    """SendGrid email delivery.

    Args:
        api_key: SendGrid API key
        from_email: Sender address
        from_name: Sender display name
        timeout_s: Request timeout
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    name = "sendgrid"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "Deal Prep System",
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("SendGrid API key is required")
        if not from_email:
            raise ValueError("From email is required")
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout_s = timeout_s
        self.transport = transport
        self.api_url = SENDGRID_API_URL
        self._sent_runs: Set[str] = set()

    async def was_email_sent(self, run_id: str) -> bool:
        return run_id in self._sent_runs

    def _build_payload(self, message: EmailMessage) -> Dict[str, Any]:
        personalization: Dict[str, Any] = {"to": [{"email": email} for email in message.to]}
        if message.cc:
            personalization["cc"] = [{"email": email} for email in message.cc]

        content = [{"type": "text/plain", "value": message.text_body}]
        if message.html_body:
            content.append({"type": "text/html", "value": message.html_body})

        return {
            "personalizations": [personalization],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": message.subject,
            "content": content,
        }

    async def send_email(self, run_id: str, message: EmailMessage) -> EmailResult:
        if await self.was_email_sent(run_id):
            logger.info(f"[{run_id}] Email already sent for this run; skipping")
            return EmailResult(success=True, metadata={"idempotent": True})

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                response = await client.post(
                    self.api_url, json=self._build_payload(message), headers=headers
                )
        except httpx.HTTPError as e:
            logger.error(f"[{run_id}] SendGrid request failed: {e}")
            return EmailResult(success=False, error=f"SendGrid request failed: {e}")

        if not response.is_success:
            error = f"SendGrid API error: {response.status_code} - {response.text}"
            logger.error(f"[{run_id}] {error}")
            return EmailResult(success=False, error=error)

        message_id = response.headers.get("X-Message-Id") or f"sg-{run_id}"
        self._sent_runs.add(run_id)
        logger.info(f"[{run_id}] Email sent to {', '.join(message.to)} ({message_id})")
        return EmailResult(
            success=True,
            message_id=message_id,
            metadata={"provider": "sendgrid", "recipients": message.to, "sent_at": utc_now_iso()},
        )


class NullEmailAdapter:
    """Used when email is not configured."""

    name = "null"

    async def was_email_sent(self, run_id: str) -> bool:
        return False

    async def send_email(self, run_id: str, message: EmailMessage) -> EmailResult:
        logger.warning(f"[{run_id}] Email not configured; skipping send")
        return EmailResult(success=True, metadata={"skipped": True})
