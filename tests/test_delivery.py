"""Tests for delivery adapters and the delivery orchestrator."""

import json

import httpx
import pytest

from dealprep.config import DeliveryConfig
from dealprep.delivery import (
    DeliveryAdapters,
    DeliveryViews,
    EmailMessage,
    FileCRMAdapter,
    MotionAPIAdapter,
    MotionTask,
    NullCRMAdapter,
    NullEmailAdapter,
    NullMotionAdapter,
    SendGridEmailAdapter,
    create_adapters,
    execute_deliveries,
)
from dealprep.delivery.email import SENDGRID_API_URL
from dealprep.models.run import DeliveryChannel, DeliveryState
from dealprep.renderers import parse_brief, render_crm_note, render_email, render_motion_task


def _message() -> EmailMessage:
    return EmailMessage(
        to=["rep@sales.example.com"],
        cc=["lead@sales.example.com"],
        subject="Deal Prep Ready: Example",
        text_body="plain",
        html_body="<p>html</p>",
    )


@pytest.fixture
def views(valid_brief, canonical_input) -> DeliveryViews:
    """Provide rendered views of the fixture brief."""
    return DeliveryViews(
        crm=render_crm_note(valid_brief),
        email=render_email(valid_brief),
        motion=render_motion_task(valid_brief, canonical_input),
    )


class TestSendGridEmailAdapter:
    """Tests for SendGridEmailAdapter."""

    @pytest.mark.asyncio
    async def test_send(self):
        """Test the request shape and the message id."""
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(202, headers={"X-Message-Id": "msg-1"})

        adapter = SendGridEmailAdapter(
            "sg-key", "noreply@example.com", transport=httpx.MockTransport(handler)
        )
        result = await adapter.send_email("run_a", _message())

        assert result.success
        assert result.message_id == "msg-1"
        request = captured[0]
        assert str(request.url) == SENDGRID_API_URL
        assert request.headers["Authorization"] == "Bearer sg-key"
        body = json.loads(request.content)
        assert body["personalizations"][0]["to"] == [{"email": "rep@sales.example.com"}]
        assert body["personalizations"][0]["cc"] == [{"email": "lead@sales.example.com"}]
        assert [c["type"] for c in body["content"]] == ["text/plain", "text/html"]

    @pytest.mark.asyncio
    async def test_idempotent_per_run(self):
        """Test a second send for the same run skips the API."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(202)

        adapter = SendGridEmailAdapter(
            "sg-key", "noreply@example.com", transport=httpx.MockTransport(handler)
        )
        first = await adapter.send_email("run_a", _message())
        second = await adapter.send_email("run_a", _message())

        assert first.message_id == "sg-run_a"
        assert second.success and second.metadata == {"idempotent": True}
        assert len(calls) == 1
        assert await adapter.was_email_sent("run_a")

    @pytest.mark.asyncio
    async def test_api_error(self):
        """Test non-2xx responses become failures and allow a later retry."""
        adapter = SendGridEmailAdapter(
            "sg-key",
            "noreply@example.com",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
        )
        result = await adapter.send_email("run_a", _message())
        assert not result.success
        assert result.error == "SendGrid API error: 500 - boom"
        assert not await adapter.was_email_sent("run_a")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Test connection failures are reported."""

        def handler(request):
            raise httpx.ConnectError("refused")

        adapter = SendGridEmailAdapter(
            "sg-key", "noreply@example.com", transport=httpx.MockTransport(handler)
        )
        result = await adapter.send_email("run_a", _message())
        assert not result.success
        assert result.error.startswith("SendGrid request failed")

    def test_requires_credentials(self):
        """Test construction fails without a key or sender."""
        with pytest.raises(ValueError):
            SendGridEmailAdapter("", "noreply@example.com")
        with pytest.raises(ValueError):
            SendGridEmailAdapter("sg-key", "")


class TestMotionAPIAdapter:
    """Tests for MotionAPIAdapter."""

    @pytest.mark.asyncio
    async def test_create_task(self):
        """Test the payload and the task URL."""
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(201, json={"id": "task-9"})

        adapter = MotionAPIAdapter(
            "motion-key",
            "ws-default",
            api_url="https://motion.test/v1/",
            transport=httpx.MockTransport(handler),
        )
        result = await adapter.create_task(
            MotionTask(title="Deal Prep - Example", description="body", due_date="2024-01-20T13:00:00.000Z")
        )

        assert result.success
        assert result.task_id == "task-9"
        assert result.task_url == "https://app.usemotion.com/task/task-9"
        request = captured[0]
        assert str(request.url) == "https://motion.test/v1/tasks"
        assert request.headers["X-API-Key"] == "motion-key"
        assert json.loads(request.content) == {
            "name": "Deal Prep - Example",
            "description": "body",
            "workspaceId": "ws-default",
            "dueDate": "2024-01-20T13:00:00.000Z",
        }

    @pytest.mark.asyncio
    async def test_nested_task_id_and_workspace_override(self):
        """Test a task id under ``task`` and a per-task workspace."""
        captured = []

        def handler(request):
            captured.append(json.loads(request.content))
            return httpx.Response(200, json={"task": {"id": "task-7"}})

        adapter = MotionAPIAdapter("k", "ws-default", transport=httpx.MockTransport(handler))
        result = await adapter.create_task(MotionTask(title="t", description="d", workspace_id="ws-2"))
        assert result.task_id == "task-7"
        assert captured[0]["workspaceId"] == "ws-2"
        assert "dueDate" not in captured[0]

    @pytest.mark.asyncio
    async def test_missing_task_id(self):
        """Test a success response without an id is a failure."""
        adapter = MotionAPIAdapter(
            "k", "ws", transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
        )
        result = await adapter.create_task(MotionTask(title="t", description="d"))
        assert not result.success
        assert "no task id" in result.error

    @pytest.mark.asyncio
    async def test_api_error(self):
        """Test non-2xx responses become failures."""
        adapter = MotionAPIAdapter(
            "k", "ws", transport=httpx.MockTransport(lambda request: httpx.Response(401, text="bad key"))
        )
        result = await adapter.create_task(MotionTask(title="t", description="d"))
        assert result.error == "Motion API error: 401 - bad key"


class TestFileCRMAdapter:
    """Tests for the file-backed CRM."""

    @pytest.mark.asyncio
    async def test_full_delivery_layout(self, tmp_path, valid_brief, canonical_input, views):
        """Test every CRM record lands in the export directory."""
        adapters = DeliveryAdapters(
            crm=FileCRMAdapter(tmp_path), email=NullEmailAdapter(), motion=NullMotionAdapter()
        )
        outcomes = await execute_deliveries(
            "run_a", parse_brief(valid_brief), canonical_input, views, adapters
        )
        assert outcomes[DeliveryChannel.CRM].status is DeliveryState.SUCCESS

        org = json.loads((tmp_path / "example.org" / "organization.json").read_text())
        assert org["name"] == "Example Food Bank"
        contact = json.loads((tmp_path / "contacts" / "jane.doe@example.org.json").read_text())
        assert contact["first_name"] == "Jane"
        assert (tmp_path / "example.org" / "contacts" / "jane.doe@example.org.json").exists()

        notes = list((tmp_path / "example.org" / "briefs").glob("note_*.md"))
        assert len(notes) == 1
        assert notes[0].read_text().startswith("# Deal Preparation Brief: Example Food Bank")

        run = json.loads((tmp_path / "example.org" / "runs" / "run_a.json").read_text())
        assert run["run_id"] == "run_a"
        assert run["source_urls"] == ["https://example.org/"]

    @pytest.mark.asyncio
    async def test_upsert_is_additive(self, tmp_path):
        """Test a later upsert never blanks existing values."""
        from dealprep.delivery import OrganizationData

        crm = FileCRMAdapter(tmp_path)
        await crm.upsert_organization("example.org", OrganizationData(domain="example.org", name="Example"))
        await crm.upsert_organization("example.org", OrganizationData(domain="example.org", website="https://example.org/"))

        org = json.loads((tmp_path / "example.org" / "organization.json").read_text())
        assert org["name"] == "Example"
        assert org["website"] == "https://example.org/"

    @pytest.mark.asyncio
    async def test_same_note_not_duplicated(self, tmp_path):
        """Test re-attaching identical content reuses the note."""
        crm = FileCRMAdapter(tmp_path)
        first = await crm.attach_brief("example.org", "# Brief", None)
        second = await crm.attach_brief("example.org", "# Brief", None)
        assert first.entity_id == second.entity_id
        assert len(list((tmp_path / "example.org" / "briefs").iterdir())) == 1


class ExplodingMotionAdapter:
    """Motion adapter that raises instead of returning a result."""

    name = "exploding"

    async def create_task(self, task):
        raise RuntimeError("motion client crashed")


class TestExecuteDeliveries:
    """Tests for the concurrent delivery fan-out."""

    @pytest.mark.asyncio
    async def test_null_adapters_succeed(self, valid_brief, canonical_input, views):
        """Test unconfigured channels report success."""
        adapters = DeliveryAdapters(
            crm=NullCRMAdapter(), email=NullEmailAdapter(), motion=NullMotionAdapter()
        )
        outcomes = await execute_deliveries(
            "run_a", parse_brief(valid_brief), canonical_input, views, adapters
        )
        assert set(outcomes) == set(DeliveryChannel)
        assert all(o.status is DeliveryState.SUCCESS for o in outcomes.values())
        assert all(o.attempted_at for o in outcomes.values())

    @pytest.mark.asyncio
    async def test_exception_isolated_to_its_channel(self, valid_brief, canonical_input, views):
        """Test one branch raising leaves the other channels intact."""
        adapters = DeliveryAdapters(
            crm=NullCRMAdapter(), email=NullEmailAdapter(), motion=ExplodingMotionAdapter()
        )
        outcomes = await execute_deliveries(
            "run_a", parse_brief(valid_brief), canonical_input, views, adapters
        )
        assert outcomes[DeliveryChannel.MOTION].status is DeliveryState.FAILED
        assert outcomes[DeliveryChannel.MOTION].error == "motion client crashed"
        assert outcomes[DeliveryChannel.CRM].status is DeliveryState.SUCCESS
        assert outcomes[DeliveryChannel.EMAIL].status is DeliveryState.SUCCESS

    @pytest.mark.asyncio
    async def test_missing_recipient_and_domain(self, valid_brief, views):
        """Test routing gaps fail only their own channels."""
        from dealprep.models.input import CanonicalInput, InputMeta, Organization

        canonical = CanonicalInput(
            meta=InputMeta(trigger_source="outbound", submitted_at="2024-01-15T10:00:00.000Z"),
            organization=Organization(name="Example Food Bank"),
        )
        adapters = DeliveryAdapters(
            crm=NullCRMAdapter(), email=NullEmailAdapter(), motion=NullMotionAdapter()
        )
        outcomes = await execute_deliveries(
            "run_a", parse_brief(valid_brief), canonical, views, adapters
        )
        assert outcomes[DeliveryChannel.CRM].error == "No domain available for CRM upsert"
        assert outcomes[DeliveryChannel.EMAIL].error == "No email recipients configured"
        assert outcomes[DeliveryChannel.MOTION].status is DeliveryState.SUCCESS


class TestCreateAdapters:
    """Tests for create_adapters."""

    def test_unconfigured_falls_back_to_null(self):
        """Test missing credentials select null adapters."""
        delivery_config = DeliveryConfig()
        delivery_config.sendgrid_api_key = None
        delivery_config.motion_api_key = None
        delivery_config.crm_export_dir = None

        adapters = create_adapters(delivery_config)
        assert (adapters.crm.name, adapters.email.name, adapters.motion.name) == ("null", "null", "null")

    def test_configured(self, tmp_path):
        """Test credentials select the real adapters."""
        delivery_config = DeliveryConfig()
        delivery_config.sendgrid_api_key = "sg-key"
        delivery_config.motion_api_key = "motion-key"
        delivery_config.motion_workspace_id = "ws"
        delivery_config.crm_export_dir = tmp_path

        adapters = create_adapters(delivery_config)
        assert (adapters.crm.name, adapters.email.name, adapters.motion.name) == ("file", "sendgrid", "motion")
