"""Unit tests for webhook subscriptions and delivery.

Tests:
  - create rejects unknown events and generates a secret
  - subscriptions accept https URLs only
  - dispatch queues one delivery per matching subscriber, started only
    after the request transaction commits
  - delivery signs the body, stops after the first success and records it
  - delivery retries up to max_attempts and never raises
"""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pydantic
import pytest

from autogestao.core.exceptions import BadRequestError, WebhookNotFoundError
from autogestao.core.security import sign_payload
from autogestao.db.postgres import run_after_commit, run_after_rollback
from autogestao.models.webhook import Webhook
from autogestao.schemas.webhook import WebhookCreate
from autogestao.services.webhooks import (
    SIGNATURE_HEADER,
    WebhookService,
    _fire_webhook_with_retries,
)


def _webhook(tenant_id: uuid.UUID, events: list[str]) -> Webhook:
    return Webhook(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        url="https://erp.example.com/hook",
        events=events,
        secret="s" * 64,
        is_active=True,
    )


def _mock_client(post: AsyncMock) -> MagicMock:
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.post = post
    return client


def _mock_background_session() -> tuple[MagicMock, MagicMock]:
    session = MagicMock()
    session.execute = AsyncMock()
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=session)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=ctx), session


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_create(self, test_db, sample_tenant_id) -> None:
        webhook = await WebhookService(test_db).create(
            sample_tenant_id,
            "https://erp.example.com/hook",
            ["vehicle.updated", "vehicle.created", "vehicle.created"],
        )

        assert webhook.events == ["vehicle.created", "vehicle.updated"]
        assert len(webhook.secret) == 64
        test_db.add.assert_called_once_with(webhook)

    @pytest.mark.asyncio
    async def test_unknown_event(self, test_db, sample_tenant_id) -> None:
        with pytest.raises(BadRequestError):
            await WebhookService(test_db).create(
                sample_tenant_id, "https://x.example.com", ["vehicle.sold"]
            )

    @pytest.mark.asyncio
    async def test_delete_other_tenant(
        self, test_db, make_result, other_tenant_id
    ) -> None:
        test_db.execute.return_value = make_result(None)

        with pytest.raises(WebhookNotFoundError):
            await WebhookService(test_db).delete(uuid.uuid4(), other_tenant_id)


class TestSubscriptionSchema:
    def test_https_accepted(self) -> None:
        body = WebhookCreate(url="https://erp.example.com/hook", events=["lead.created"])

        assert body.url.scheme == "https"

    @pytest.mark.parametrize(
        "url", ["http://erp.example.com/hook", "ftp://erp.example.com/hook"]
    )
    def test_other_schemes_rejected(self, url) -> None:
        with pytest.raises(pydantic.ValidationError):
            WebhookCreate(url=url, events=["lead.created"])


class TestDispatch:
    @pytest.mark.asyncio
    async def test_only_matching_subscribers(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        hooks = [
            _webhook(sample_tenant_id, ["vehicle.created"]),
            _webhook(sample_tenant_id, ["lead.created"]),
            _webhook(sample_tenant_id, ["vehicle.created", "vehicle.deleted"]),
        ]
        test_db.execute.return_value = make_result(items=hooks)

        with patch("autogestao.services.webhooks.asyncio.create_task") as mock_task:
            count = await WebhookService(test_db).dispatch(
                sample_tenant_id, "vehicle.created", {"vehicle_id": "v1"}
            )
            mock_task.assert_not_called()

            assert run_after_commit(test_db) == 1
            for call in mock_task.call_args_list:
                call[0][0].close()

        assert count == 2
        assert mock_task.call_count == 2

    @pytest.mark.asyncio
    async def test_rollback_drops_deliveries(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        test_db.execute.return_value = make_result(
            items=[_webhook(sample_tenant_id, ["lead.created"])]
        )

        with patch("autogestao.services.webhooks.asyncio.create_task") as mock_task:
            await WebhookService(test_db).dispatch(sample_tenant_id, "lead.created", {})
            run_after_rollback(test_db)

            assert run_after_commit(test_db) == 0

        mock_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_subscribers(self, test_db, make_result, sample_tenant_id) -> None:
        test_db.execute.return_value = make_result(items=[])

        count = await WebhookService(test_db).dispatch(
            sample_tenant_id, "lead.created", {}
        )

        assert count == 0
        assert test_db.info == {}


class TestDelivery:
    @pytest.mark.asyncio
    async def test_signed_delivery(self) -> None:
        response = MagicMock(status_code=200)
        response.raise_for_status = MagicMock()
        post = AsyncMock(return_value=response)
        factory, session = _mock_background_session()
        payload = {"event": "vehicle.created", "data": {"vehicle_id": "v1"}}

        with patch("httpx.AsyncClient", return_value=_mock_client(post)), patch(
            "autogestao.services.webhooks.background_session", factory
        ):
            await _fire_webhook_with_retries(
                webhook_id=uuid.uuid4(),
                url="https://erp.example.com/hook",
                secret="topsecret",
                payload=payload,
                max_attempts=3,
            )

        post.assert_awaited_once()
        kwargs = post.call_args.kwargs
        assert json.loads(kwargs["content"]) == payload
        assert kwargs["headers"][SIGNATURE_HEADER] == sign_payload(
            "topsecret", kwargs["content"]
        )
        factory.assert_called_once()
        session.execute.assert_awaited_once()
        stmt = session.execute.call_args[0][0]
        assert stmt.compile().params["last_status_code"] == 200

    @pytest.mark.asyncio
    async def test_retries_then_gives_up(self) -> None:
        post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
        factory, _ = _mock_background_session()

        with patch("httpx.AsyncClient", return_value=_mock_client(post)), patch(
            "autogestao.services.webhooks.background_session", factory
        ), patch(
            "autogestao.services.webhooks.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            # Should not raise: errors are caught internally
            await _fire_webhook_with_retries(
                webhook_id=uuid.uuid4(),
                url="https://erp.example.com/failing",
                secret="topsecret",
                payload={"event": "lead.created"},
                max_attempts=3,
            )

        assert post.await_count == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1, 2]
        factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_recording_failure_does_not_raise(self) -> None:
        response = MagicMock(status_code=204)
        response.raise_for_status = MagicMock()
        post = AsyncMock(return_value=response)
        broken = MagicMock(side_effect=RuntimeError("pool exhausted"))

        with patch("httpx.AsyncClient", return_value=_mock_client(post)), patch(
            "autogestao.services.webhooks.background_session", broken
        ):
            await _fire_webhook_with_retries(
                webhook_id=uuid.uuid4(),
                url="https://erp.example.com/hook",
                secret="topsecret",
                payload={"event": "vehicle.deleted"},
            )

        post.assert_awaited_once()
