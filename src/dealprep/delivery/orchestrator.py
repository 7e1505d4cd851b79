"""Delivery orchestration.

The three channels run as independent concurrent branches. A failure or an
exception in one branch never affects the others, and every branch is
awaited before the outcomes are returned. The caller folds the outcomes into
the run record with one write (``RunLifecycle.record_deliveries``).
"""

import asyncio
import logging
from typing import Dict, Optional

import httpx

from dealprep.config import DeliveryConfig
from dealprep.delivery.base import (
    ContactData,
    DeliveryAdapters,
    DeliveryViews,
    EmailMessage,
    MotionTask,
    OrganizationData,
    RunMetadata,
)
from dealprep.delivery.crm import FileCRMAdapter, NullCRMAdapter
from dealprep.delivery.email import NullEmailAdapter, SendGridEmailAdapter
from dealprep.delivery.motion import MotionAPIAdapter, NullMotionAdapter
from dealprep.models.brief import DealPrepBrief
from dealprep.models.input import CanonicalInput
from dealprep.models.run import DeliveryChannel, DeliveryOutcome
from dealprep.normalizer import extract_domain
from dealprep.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


async def deliver_crm(
    run_id: str,
    brief: DealPrepBrief,
    canonical: CanonicalInput,
    views: DeliveryViews,
    adapters: DeliveryAdapters,
) -> DeliveryOutcome:
    """Upsert organization and contact, attach the note, record the run."""
    crm = adapters.crm
    organization = canonical.organization
    domain = organization.domain or extract_domain(organization.website)
    if not domain:
        return DeliveryOutcome.failed("No domain available for CRM upsert")

    org_result = await crm.upsert_organization(
        domain,
        OrganizationData(domain=domain, name=organization.name, website=organization.website),
    )
    if not org_result.success:
        return DeliveryOutcome.failed(org_result.error or "Failed to upsert organization")
    organization_id = org_result.entity_id or domain

    contact = canonical.contact
    if contact.email:
        contact_result = await crm.upsert_contact(
            contact.email,
            ContactData(
                email=contact.email,
                first_name=contact.first_name,
                last_name=contact.last_name,
                full_name=contact.full_name,
                title=contact.title,
                phone=contact.phone,
                linkedin_url=contact.linkedin_url,
            ),
        )
        if contact_result.success and contact_result.entity_id:
            await crm.associate_contact(contact_result.entity_id, organization_id)
        else:
            logger.warning(f"[{run_id}] CRM contact upsert failed: {contact_result.error}")

    brief_result = await crm.attach_brief(organization_id, views.crm.markdown, views.brief_url)
    if not brief_result.success:
        return DeliveryOutcome.failed(brief_result.error or "Failed to attach brief")

    await crm.record_run_metadata(
        organization_id,
        run_id,
        RunMetadata(
            trigger_source=brief.meta.trigger_source,
            generated_at=brief.meta.generated_at,
            completed_at=utc_now_iso(),
            source_urls=list(brief.meta.source_urls),
            brief_url=views.brief_url,
        ),
    )
    logger.info(f"[{run_id}] CRM delivery via {crm.name} completed ({organization_id})")
    return DeliveryOutcome.success()


async def deliver_email(
    run_id: str, canonical: CanonicalInput, views: DeliveryViews, adapters: DeliveryAdapters
) -> DeliveryOutcome:
    routing = canonical.routing
    if not routing.email_to:
        return DeliveryOutcome.failed("No email recipients configured")

    result = await adapters.email.send_email(
        run_id,
        EmailMessage(
            to=[routing.email_to],
            cc=list(routing.email_cc),
            subject=views.email.subject,
            text_body=views.email.body_plain,
            html_body=views.email.body_html,
        ),
    )
    if not result.success:
        return DeliveryOutcome.failed(result.error or "Email delivery failed")
    logger.info(f"[{run_id}] Email delivery via {adapters.email.name} completed")
    return DeliveryOutcome.success()


async def deliver_motion(
    run_id: str, canonical: CanonicalInput, views: DeliveryViews, adapters: DeliveryAdapters
) -> DeliveryOutcome:
    result = await adapters.motion.create_task(
        MotionTask(
            title=views.motion.title,
            description=views.motion.body,
            due_date=views.motion.due_date,
            workspace_id=canonical.routing.motion_workspace,
        )
    )
    if not result.success:
        # Motion failures are recorded but never halt the run
        logger.warning(f"[{run_id}] Motion task creation failed: {result.error}")
        return DeliveryOutcome.failed(result.error or "Motion task creation failed")
    logger.info(f"[{run_id}] Motion delivery via {adapters.motion.name} completed")
    return DeliveryOutcome.success()


async def execute_deliveries(
    run_id: str,
    brief: DealPrepBrief,
    canonical: CanonicalInput,
    views: DeliveryViews,
    adapters: DeliveryAdapters,
) -> Dict[DeliveryChannel, DeliveryOutcome]:
    """Run all three channels concurrently and collect every outcome.

    Never raises: an exception escaping a branch becomes that channel's
    failed outcome.
    """
    logger.info(f"[{run_id}] Starting deliveries")
    channels = (DeliveryChannel.CRM, DeliveryChannel.EMAIL, DeliveryChannel.MOTION)
    results = await asyncio.gather(
        deliver_crm(run_id, brief, canonical, views, adapters),
        deliver_email(run_id, canonical, views, adapters),
        deliver_motion(run_id, canonical, views, adapters),
        return_exceptions=True,
    )

    outcomes: Dict[DeliveryChannel, DeliveryOutcome] = {}
    for channel, result in zip(channels, results):
        if isinstance(result, BaseException):
            logger.error(f"[{run_id}] {channel.value} delivery raised: {result!r}")
            outcomes[channel] = DeliveryOutcome.failed(str(result) or type(result).__name__)
        else:
            outcomes[channel] = result

    logger.info(
        f"[{run_id}] Deliveries finished: "
        + ", ".join(f"{c.value}={o.status.value}" for c, o in outcomes.items())
    )
    return outcomes


def create_adapters(
    delivery_config: DeliveryConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeliveryAdapters:
    """Real adapters for configured channels, null adapters for the rest."""
    if delivery_config.crm_export_dir:
        crm = FileCRMAdapter(delivery_config.crm_export_dir)
    else:
        crm = NullCRMAdapter()

    if delivery_config.sendgrid_api_key:
        email = SendGridEmailAdapter(
            api_key=delivery_config.sendgrid_api_key,
            from_email=delivery_config.email_from,
            from_name=delivery_config.email_from_name,
            timeout_s=delivery_config.timeout_s,
            transport=transport,
        )
    else:
        email = NullEmailAdapter()

    if delivery_config.motion_api_key and delivery_config.motion_workspace_id:
        motion = MotionAPIAdapter(
            api_key=delivery_config.motion_api_key,
            workspace_id=delivery_config.motion_workspace_id,
            api_url=delivery_config.motion_api_url,
            timeout_s=delivery_config.timeout_s,
            transport=transport,
        )
    else:
        motion = NullMotionAdapter()

    logger.debug(f"Delivery adapters: crm={crm.name} email={email.name} motion={motion.name}")
    return DeliveryAdapters(crm=crm, email=email, motion=motion)
