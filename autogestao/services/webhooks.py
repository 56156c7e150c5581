"""Tenant webhook subscriptions and event delivery.

Delivery starts once the request transaction commits and runs as a
background task (asyncio.create_task) with exponential backoff retries. Each POST carries an HMAC-SHA256 signature of the raw body in
``X-Autogestao-Signature`` computed with the subscription secret.
A failed delivery is logged and recorded on the webhook row; it never
raises into the request that produced the event.
"""

from __future__ import annotations

import asyncio
import json
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import httpx
import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.config import settings
from autogestao.core.exceptions import BadRequestError, WebhookNotFoundError
from autogestao.core.security import sign_payload
from autogestao.db.postgres import after_commit, background_session
from autogestao.models.webhook import Webhook

logger = structlog.get_logger(__name__)

WEBHOOK_EVENTS = frozenset(
    {
        "vehicle.created",
        "vehicle.updated",
        "vehicle.deleted",
        "lead.created",
    }
)

SIGNATURE_HEADER = "X-Autogestao-Signature"

_background_tasks: set[asyncio.Task] = set()


class WebhookService:
    """Manages webhook subscriptions and fans events out to them."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_for_tenant(self, tenant_id: UUID) -> list[Webhook]:
        result = await self._db.execute(
            select(Webhook)
            .where(Webhook.tenant_id == tenant_id)
            .order_by(Webhook.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(
        self, tenant_id: UUID, url: str, events: list[str]
    ) -> Webhook:
        unknown = set(events) - WEBHOOK_EVENTS
        if not events or unknown:
            raise BadRequestError(
                f"Unsupported webhook events: {sorted(unknown) or events}"
            )

        webhook = Webhook(
            tenant_id=tenant_id,
            url=url,
            events=sorted(set(events)),
            secret=secrets.token_hex(32),
            is_active=True,
        )
        self._db.add(webhook)
        await self._db.flush()
        logger.info(
            "webhook_created", tenant_id=str(tenant_id), webhook_id=str(webhook.id)
        )
        return webhook

    async def delete(self, webhook_id: UUID, tenant_id: UUID) -> None:
        result = await self._db.execute(
            select(Webhook).where(
                Webhook.id == webhook_id,
                Webhook.tenant_id == tenant_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise WebhookNotFoundError()

        await self._db.execute(
            delete(Webhook).where(
                Webhook.id == webhook_id,
                Webhook.tenant_id == tenant_id,
            )
        )

    async def dispatch(
        self, tenant_id: UUID, event: str, data: dict[str, Any]
    ) -> int:
        """Queue delivery of *event* to every active subscriber.

        Deliveries start only after the request transaction commits; a
        rollback drops them. Returns the number of deliveries queued.
        """
        result = await self._db.execute(
            select(Webhook).where(
                Webhook.tenant_id == tenant_id,
                Webhook.is_active.is_(True),
            )
        )
        subscribers = [w for w in result.scalars().all() if event in w.events]
        if not subscribers:
            return 0

        payload = {
            "id": str(uuid.uuid4()),
            "event": event,
            "tenant_id": str(tenant_id),
            "occurred_at": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        targets = [(w.id, w.url, w.secret) for w in subscribers]

        def _start_deliveries() -> None:
            for webhook_id, url, secret in targets:
                task = asyncio.create_task(
                    _fire_webhook_with_retries(
                        webhook_id=webhook_id,
                        url=url,
                        secret=secret,
                        payload=payload,
                    )
                )
                _background_tasks.add(task)
                task.add_done_callback(_background_tasks.discard)

        after_commit(self._db, _start_deliveries)

        logger.info(
            "webhook_event_dispatched",
            tenant_id=str(tenant_id),
            webhook_event=event,
            subscribers=len(subscribers),
        )
        return len(subscribers)


async def _fire_webhook_with_retries(
    webhook_id: UUID,
    url: str,
    secret: str,
    payload: dict[str, Any],
    max_attempts: int | None = None,
) -> None:
    """POST *payload* to *url*, retrying with backoff 1s, 2s, 4s...

    Runs as a background task, so the whole body is guarded and nothing
    propagates to the event loop.
    """
    max_attempts = max_attempts or settings.webhook_max_attempts
    body = json.dumps(payload, default=str).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: sign_payload(secret, body),
    }
    status_code: int | None = None

    try:
        for attempt in range(max_attempts):
            try:
                async with httpx.AsyncClient(
                    timeout=settings.webhook_timeout_seconds
                ) as client:
                    response = await client.post(url, content=body, headers=headers)
                    status_code = response.status_code
                    response.raise_for_status()

                logger.info(
                    "webhook_delivered",
                    webhook_id=str(webhook_id),
                    webhook_event=payload["event"],
                    status_code=status_code,
                    attempt=attempt + 1,
                )
                break

            except Exception as e:
                logger.warning(
                    "webhook_attempt_failed",
                    webhook_id=str(webhook_id),
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt < max_attempts - 1:
                    await asyncio.sleep(2**attempt)
        else:
            logger.error(
                "webhook_all_retries_failed",
                webhook_id=str(webhook_id),
                webhook_event=payload["event"],
                url=url,
            )

        await _record_delivery(webhook_id, status_code)
    except Exception as e:
        logger.error(
            "webhook_task_error", webhook_id=str(webhook_id), error=str(e)
        )


async def _record_delivery(webhook_id: UUID, status_code: int | None) -> None:
    async with background_session() as db:
        await db.execute(
            update(Webhook)
            .where(Webhook.id == webhook_id)
            .values(
                last_delivery_at=datetime.now(timezone.utc),
                last_status_code=status_code,
            )
        )
