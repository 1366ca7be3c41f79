"""Integration tests for the fraud alert hook and fraud flag review endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from app.config import get_settings
from app.dependencies import get_fraud_alert_dispatcher, get_fraud_flag_repo
from app.main import app
from app.services.email_relay import EmailRelayError
from app.services.fraud_alert_dispatcher import DispatchResult
from tests.conftest import make_fraud_flag_model

ALERT = {
    "flagId": "flag-1",
    "flagType": "velocity",
    "severity": "high",
    "description": "Multiple orders placed within 1 hour",
    "userId": "user-1",
    "orderId": "order-1",
    "metadata": {"order_count": 4},
}


def _override(dep_fn, mock):
    app.dependency_overrides[dep_fn] = lambda: mock
    return mock


@pytest.mark.asyncio
class TestSendFraudAlert:
    async def test_high_severity_sent(self, client):
        dispatcher = _override(get_fraud_alert_dispatcher, AsyncMock())
        dispatcher.dispatch = AsyncMock(
            return_value=DispatchResult(sent=True, message="Fraud alert sent", recipients=2)
        )

        resp = await client.post("/api/v1/send-fraud-alert", json=ALERT)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Fraud alert sent", "recipients": 2}
        alert = dispatcher.dispatch.await_args.args[0]
        assert alert.flag_id == "flag-1"
        assert alert.metadata == {"order_count": 4}

    async def test_low_severity_is_success_noop(self, client):
        dispatcher = _override(get_fraud_alert_dispatcher, AsyncMock())
        dispatcher.dispatch = AsyncMock(
            return_value=DispatchResult(
                sent=False, message="Email not sent - only high severity flags trigger emails"
            )
        )

        resp = await client.post("/api/v1/send-fraud-alert", json={**ALERT, "severity": "medium"})
        assert resp.status_code == 200
        assert resp.json()["message"].startswith("Email not sent")

    async def test_relay_failure_is_500(self, client):
        dispatcher = _override(get_fraud_alert_dispatcher, AsyncMock())
        dispatcher.dispatch = AsyncMock(side_effect=EmailRelayError("Email relay returned 500"))

        resp = await client.post("/api/v1/send-fraud-alert", json=ALERT)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Email relay returned 500"}

    async def test_missing_flag_id(self, client):
        payload = {k: v for k, v in ALERT.items() if k != "flagId"}
        resp = await client.post("/api/v1/send-fraud-alert", json=payload)
        assert resp.status_code == 400

    async def test_internal_token_enforced_when_configured(self, client, monkeypatch):
        monkeypatch.setenv("INTERNAL_API_TOKEN", "hook-secret")
        get_settings.cache_clear()
        dispatcher = _override(get_fraud_alert_dispatcher, AsyncMock())
        dispatcher.dispatch = AsyncMock(
            return_value=DispatchResult(sent=True, message="Fraud alert sent", recipients=1)
        )

        resp = await client.post("/api/v1/send-fraud-alert", json=ALERT)
        assert resp.status_code == 401

        resp = await client.post(
            "/api/v1/send-fraud-alert", json=ALERT, headers={"X-Internal-Token": "hook-secret"}
        )
        assert resp.status_code == 200


@pytest.mark.asyncio
class TestFraudFlagReview:
    async def test_list_flags(self, client, security_user):
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_all = AsyncMock(return_value=([make_fraud_flag_model()], 1))

        resp = await client.get("/api/v1/fraud-flags?severity=medium&resolved=false")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["items"][0]["metadata"] == {"amount": "600.00"}
        filters = repo.get_all.await_args.args[0]
        assert filters.severity == "medium"
        assert filters.resolved is False

    async def test_customer_cannot_list(self, client, customer_user):
        resp = await client.get("/api/v1/fraud-flags")
        assert resp.status_code == 403

    async def test_security_resolves_medium_flag(self, client, security_user):
        flag = make_fraud_flag_model()
        resolved = make_fraud_flag_model(
            id=flag.id,
            resolved=True,
            resolved_by=security_user.id,
            resolved_at=datetime.now(UTC),
            resolution_type="false_positive",
        )
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_by_id = AsyncMock(return_value=flag)
        repo.resolve = AsyncMock(return_value=resolved)

        resp = await client.post(
            f"/api/v1/fraud-flags/{flag.id}/resolve",
            json={"resolution_type": "false_positive", "resolution_notes": "Known buyer"},
        )
        assert resp.status_code == 200
        assert resp.json()["resolved"] is True
        assert repo.resolve.await_args.kwargs["approved"] is False

    async def test_security_cannot_resolve_flag_requiring_approval(self, client, security_user):
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_by_id = AsyncMock(
            return_value=make_fraud_flag_model(severity="high", requires_approval=True)
        )

        resp = await client.post(
            "/api/v1/fraud-flags/f1/resolve", json={"resolution_type": "confirmed_fraud"}
        )
        assert resp.status_code == 403
        repo.resolve.assert_not_awaited()

    async def test_admin_approves_flag_requiring_approval(self, client, admin_user):
        flag = make_fraud_flag_model(severity="high", requires_approval=True)
        now = datetime.now(UTC)
        resolved = make_fraud_flag_model(
            id=flag.id,
            severity="high",
            requires_approval=True,
            resolved=True,
            resolved_by=admin_user.id,
            resolved_at=now,
            approved_by=admin_user.id,
            approved_at=now,
            approval_status="approved",
        )
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_by_id = AsyncMock(return_value=flag)
        repo.resolve = AsyncMock(return_value=resolved)

        resp = await client.post(
            f"/api/v1/fraud-flags/{flag.id}/resolve", json={"resolution_type": "confirmed_fraud"}
        )
        assert resp.status_code == 200
        assert resp.json()["approval_status"] == "approved"
        kwargs = repo.resolve.await_args.kwargs
        assert kwargs["approved"] is True
        assert kwargs["resolved_by"] == admin_user.id

    async def test_already_resolved(self, client, admin_user):
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_by_id = AsyncMock(return_value=make_fraud_flag_model(resolved=True))

        resp = await client.post(
            "/api/v1/fraud-flags/f1/resolve", json={"resolution_type": "false_positive"}
        )
        assert resp.status_code == 409

    async def test_unknown_flag(self, client, admin_user):
        repo = _override(get_fraud_flag_repo, AsyncMock())
        repo.get_by_id = AsyncMock(return_value=None)

        resp = await client.post(
            "/api/v1/fraud-flags/f1/resolve", json={"resolution_type": "false_positive"}
        )
        assert resp.status_code == 404
