"""Unit tests for repository classes.

Tests verify that repositories correctly delegate to the SQLAlchemy session
(execute, add, flush, refresh) without requiring a real database.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.filters.fraud_flag import FraudFlagFilter
from app.filters.order import OrderFilter
from app.models.fraud import FraudFlag, NotificationOutbox, TransactionAudit
from app.models.order import Order, OrderItem
from app.models.two_factor import TwoFactorCode
from app.models.user import LoginAttempt, Profile, User, UserRole
from app.repositories.fraud_flag_repository import FraudFlagRepository, alert_payload
from app.repositories.login_attempt_repository import LoginAttemptRepository
from app.repositories.order_repository import OrderRepository, order_snapshot
from app.repositories.outbox_repository import OutboxRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.role_repository import RoleRepository
from app.repositories.two_factor_repository import TwoFactorCodeRepository
from app.repositories.user_repository import UserRepository
from tests.conftest import make_order_model, make_profile_model

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_NOW = datetime.now(UTC)


def _scalars_all(items: list):
    """Build a chained mock: result.scalars().all() -> items."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


def _scalar_one_or_none(item):
    """Build a mock: result.scalar_one_or_none() -> item."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = item
    return result


def _scalar(value):
    """Build a mock: result.scalar() -> value."""
    result = MagicMock()
    result.scalar.return_value = value
    return result


def _rowcount(count: int):
    result = MagicMock()
    result.rowcount = count
    return result


def _make_session():
    """Create a fresh AsyncMock session."""
    session = AsyncMock()
    session.add = MagicMock()  # sync method
    return session


def _added(session, model) -> list:
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], model)]


# =========================================================================
# UserRepository
# =========================================================================


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_get_by_email_found(self):
        session = _make_session()
        user = SimpleNamespace(id="u1", email="jane@zanifu.dev")
        session.execute.return_value = _scalar_one_or_none(user)

        result = await UserRepository(session).get_by_email("Jane@Zanifu.dev")

        assert result is user
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self):
        session = _make_session()
        session.execute.return_value = _scalar_one_or_none(None)

        assert await UserRepository(session).get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_create_links_profile_to_user(self):
        session = _make_session()
        user = User(id="u1", email="jane@zanifu.dev", hashed_password="h")
        profile = Profile(email="jane@zanifu.dev")

        result = await UserRepository(session).create(user, profile)

        assert result is user
        assert profile.user_id == "u1"
        assert session.add.call_count == 2
        assert session.flush.await_count == 2

    @pytest.mark.asyncio
    async def test_record_failed_login_below_threshold(self):
        session = _make_session()
        profile = make_profile_model(failed_login_attempts=2)

        await UserRepository(session).record_failed_login(profile, max_attempts=5)

        assert profile.failed_login_attempts == 3
        assert profile.account_locked is False
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_record_failed_login_locks_at_threshold(self):
        session = _make_session()
        profile = make_profile_model(failed_login_attempts=4)

        await UserRepository(session).record_failed_login(profile, max_attempts=5)

        assert profile.failed_login_attempts == 5
        assert profile.account_locked is True

    @pytest.mark.asyncio
    async def test_reset_failed_logins_skips_flush_when_zero(self):
        session = _make_session()
        await UserRepository(session).reset_failed_logins(make_profile_model())
        session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_failed_logins(self):
        session = _make_session()
        profile = make_profile_model(failed_login_attempts=3)
        await UserRepository(session).reset_failed_logins(profile)
        assert profile.failed_login_attempts == 0
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_set_account_locked_returns_rowcount(self):
        session = _make_session()
        session.execute.return_value = _rowcount(1)

        assert await UserRepository(session).set_account_locked("u1", True) == 1

    @pytest.mark.asyncio
    async def test_unlock_clears_failure_counter(self):
        session = _make_session()
        session.execute.return_value = _rowcount(1)

        await UserRepository(session).set_account_locked("u1", False)

        statement = session.execute.await_args.args[0]
        assert "failed_login_attempts" in str(statement)


# =========================================================================
# RoleRepository
# =========================================================================


class TestRoleRepository:
    @pytest.mark.asyncio
    async def test_get_role(self):
        session = _make_session()
        session.execute.return_value = _scalar_one_or_none("admin")

        assert await RoleRepository(session).get_role("u1") == "admin"

    @pytest.mark.asyncio
    async def test_upsert_inserts_when_missing(self):
        session = _make_session()
        session.execute.return_value = _scalar_one_or_none(None)

        role = await RoleRepository(session).upsert("u1", "security_personnel")

        assert isinstance(role, UserRole)
        assert role.role == "security_personnel"
        session.add.assert_called_once_with(role)

    @pytest.mark.asyncio
    async def test_upsert_updates_existing(self):
        session = _make_session()
        existing = SimpleNamespace(user_id="u1", role="customer")
        session.execute.return_value = _scalar_one_or_none(existing)

        role = await RoleRepository(session).upsert("u1", "admin")

        assert role is existing
        assert existing.role == "admin"
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_alert_recipients_drop_blank_emails(self):
        session = _make_session()
        session.execute.return_value = _scalars_all(["a@zanifu.dev", "", "s@zanifu.dev"])

        emails = await RoleRepository(session).get_alert_recipient_emails()

        assert emails == ["a@zanifu.dev", "s@zanifu.dev"]


# =========================================================================
# LoginAttemptRepository
# =========================================================================


class TestLoginAttemptRepository:
    @pytest.mark.asyncio
    async def test_record(self):
        session = _make_session()

        attempt = await LoginAttemptRepository(session).record(
            email="jane@zanifu.dev", success=False, failure_reason="invalid_password"
        )

        assert isinstance(attempt, LoginAttempt)
        assert attempt.failure_reason == "invalid_password"
        session.add.assert_called_once_with(attempt)
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_recent(self):
        session = _make_session()
        rows = [SimpleNamespace(id="a1"), SimpleNamespace(id="a2")]
        session.execute.side_effect = [_scalar(2), _scalars_all(rows)]

        items, total = await LoginAttemptRepository(session).get_recent(page=1, size=100)

        assert total == 2
        assert items == rows


# =========================================================================
# ProductRepository
# =========================================================================


class TestProductRepository:
    @pytest.mark.asyncio
    async def test_get_active(self):
        session = _make_session()
        products = [SimpleNamespace(id="p1")]
        session.execute.return_value = _scalars_all(products)

        assert await ProductRepository(session).get_active() == products

    @pytest.mark.asyncio
    async def test_get_active_by_ids_keyed_by_id(self):
        session = _make_session()
        session.execute.return_value = _scalars_all(
            [SimpleNamespace(id="p1"), SimpleNamespace(id="p2")]
        )

        found = await ProductRepository(session).get_active_by_ids(["p1", "p2", "p3"])

        assert set(found) == {"p1", "p2"}

    @pytest.mark.asyncio
    async def test_get_active_by_ids_empty(self):
        session = _make_session()
        assert await ProductRepository(session).get_active_by_ids([]) == {}
        session.execute.assert_not_awaited()


# =========================================================================
# OrderRepository
# =========================================================================


class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_get_all_scoped_to_user(self):
        session = _make_session()
        session.execute.side_effect = [_scalar(1), _scalars_all([SimpleNamespace(id="o1")])]

        items, total = await OrderRepository(session).get_all(OrderFilter(), user_id="u1")

        assert total == 1
        assert len(items) == 1
        data_query = session.execute.await_args_list[1].args[0]
        assert "orders.user_id =" in str(data_query)

    @pytest.mark.asyncio
    async def test_get_all_unscoped(self):
        session = _make_session()
        session.execute.side_effect = [_scalar(0), _scalars_all([])]

        items, total = await OrderRepository(session).get_all(OrderFilter(status="pending"))

        assert (items, total) == ([], 0)
        data_query = str(session.execute.await_args_list[1].args[0])
        assert "orders.user_id =" not in data_query

    @pytest.mark.asyncio
    async def test_count_since(self):
        session = _make_session()
        session.execute.return_value = _scalar(3)

        count = await OrderRepository(session).count_since("u1", _NOW - timedelta(hours=1), "o1")

        assert count == 3

    @pytest.mark.asyncio
    async def test_sum_since_none_is_zero(self):
        session = _make_session()
        session.execute.return_value = _scalar(None)

        total = await OrderRepository(session).sum_since("u1", _NOW, "o1")

        assert total == Decimal("0")

    @pytest.mark.asyncio
    async def test_create_adds_order_items_and_audit(self):
        session = _make_session()
        items = [OrderItem(product_id="p1", quantity=2, price_at_purchase=Decimal("10.00"))]

        order = await OrderRepository(session).create(
            user_id="u1",
            total_amount=Decimal("20.00"),
            status="completed",
            payment_method="demo",
            items=items,
        )

        assert isinstance(order, Order)
        assert items[0].order_id == order.id
        audits = _added(session, TransactionAudit)
        assert len(audits) == 1
        assert audits[0].action_type == "create"
        assert audits[0].new_value["total_amount"] == "20.00"
        assert audits[0].performed_by == "u1"

    @pytest.mark.asyncio
    async def test_update_status_records_before_and_after(self):
        session = _make_session()
        order = make_order_model(status="pending")

        await OrderRepository(session).update_status(order, "paid", performed_by="admin-1")

        assert order.status == "paid"
        session.refresh.assert_awaited_once_with(order)
        audit = _added(session, TransactionAudit)[0]
        assert audit.old_value["status"] == "pending"
        assert audit.new_value["status"] == "paid"
        assert audit.performed_by == "admin-1"

    def test_order_snapshot_is_json_safe(self):
        snapshot = order_snapshot(make_order_model(total_amount=Decimal("149.99")))
        assert snapshot["total_amount"] == "149.99"
        assert isinstance(snapshot["created_at"], str)


# =========================================================================
# FraudFlagRepository
# =========================================================================


class TestFraudFlagRepository:
    @pytest.mark.asyncio
    async def test_get_all_returns_items_and_total(self):
        session = _make_session()
        flags = [SimpleNamespace(id="f1"), SimpleNamespace(id="f2")]
        session.execute.side_effect = [_scalar(2), _scalars_all(flags)]

        items, total = await FraudFlagRepository(session).get_all(FraudFlagFilter(resolved=False))

        assert total == 2
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_create_medium_flag_has_no_outbox(self):
        session = _make_session()
        flag = FraudFlag(
            user_id="u1", order_id="o1", flag_type="high_value", severity="medium", description="d"
        )

        _, outbox = await FraudFlagRepository(session).create(flag)

        assert outbox is None
        assert _added(session, NotificationOutbox) == []

    @pytest.mark.asyncio
    async def test_create_high_flag_writes_outbox(self):
        session = _make_session()
        flag = FraudFlag(
            id="f1",
            user_id="u1",
            order_id="o1",
            flag_type="daily_limit",
            severity="high",
            description="d",
            flag_metadata={"daily_total": "1100.00"},
        )

        created, outbox = await FraudFlagRepository(session).create(flag)

        assert created.requires_approval is True
        assert outbox.flag_id == "f1"
        assert outbox.payload["flagId"] == "f1"
        assert outbox.payload["metadata"] == {"daily_total": "1100.00"}

    @pytest.mark.asyncio
    async def test_resolve_without_approval(self):
        session = _make_session()
        flag = FraudFlag(flag_type="velocity", severity="medium", description="d")

        await FraudFlagRepository(session).resolve(
            flag,
            resolved_by="sec-1",
            resolution_type="false_positive",
            resolution_notes=None,
            approved=False,
            when=_NOW,
        )

        assert flag.resolved is True
        assert flag.resolved_by == "sec-1"
        assert flag.approval_status is None

    @pytest.mark.asyncio
    async def test_resolve_with_approval(self):
        session = _make_session()
        flag = FraudFlag(flag_type="velocity", severity="high", description="d")

        await FraudFlagRepository(session).resolve(
            flag,
            resolved_by="admin-1",
            resolution_type="confirmed_fraud",
            resolution_notes="Chargeback",
            approved=True,
            when=_NOW,
        )

        assert flag.approved_by == "admin-1"
        assert flag.approved_at == _NOW
        assert flag.approval_status == "approved"

    def test_alert_payload_uses_camel_case(self):
        flag = SimpleNamespace(
            id="f1",
            flag_type="velocity",
            severity="high",
            description="d",
            user_id="u1",
            order_id="o1",
            flag_metadata={},
        )
        assert set(alert_payload(flag)) == {
            "flagId",
            "flagType",
            "severity",
            "description",
            "userId",
            "orderId",
            "metadata",
        }


# =========================================================================
# OutboxRepository
# =========================================================================


class TestOutboxRepository:
    @pytest.mark.asyncio
    async def test_get_pending(self):
        session = _make_session()
        entries = [SimpleNamespace(id="ob-1")]
        session.execute.return_value = _scalars_all(entries)

        result = await OutboxRepository(session).get_pending(ids=["ob-1"], max_attempts=5)

        assert result == entries
        assert "notification_outbox.attempts <" in str(session.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_mark_delivered(self):
        session = _make_session()
        entry = SimpleNamespace(attempts=1, delivered_at=None, last_error="earlier failure")

        await OutboxRepository(session).mark_delivered(entry, _NOW)

        assert entry.attempts == 2
        assert entry.delivered_at == _NOW
        assert entry.last_error is None

    @pytest.mark.asyncio
    async def test_mark_failed_truncates_error(self):
        session = _make_session()
        entry = SimpleNamespace(attempts=0, last_error=None)

        await OutboxRepository(session).mark_failed(entry, "x" * 5000)

        assert entry.attempts == 1
        assert len(entry.last_error) == 2000


# =========================================================================
# TwoFactorCodeRepository
# =========================================================================


class TestTwoFactorCodeRepository:
    @pytest.mark.asyncio
    async def test_create(self):
        session = _make_session()
        expires = _NOW + timedelta(minutes=10)

        record = await TwoFactorCodeRepository(session).create(
            user_id="u1", email="jane@zanifu.dev", code="042917", expires_at=expires
        )

        assert isinstance(record, TwoFactorCode)
        assert record.code == "042917"
        session.add.assert_called_once_with(record)

    @pytest.mark.asyncio
    async def test_invalidate_unused_returns_rowcount(self):
        session = _make_session()
        session.execute.return_value = _rowcount(2)

        assert await TwoFactorCodeRepository(session).invalidate_unused("u1") == 2

    @pytest.mark.asyncio
    async def test_find_valid(self):
        session = _make_session()
        record = SimpleNamespace(id="c1")
        session.execute.return_value = _scalar_one_or_none(record)

        assert await TwoFactorCodeRepository(session).find_valid("u1", "123456", _NOW) is record

    @pytest.mark.asyncio
    async def test_consume_wins(self):
        session = _make_session()
        session.execute.return_value = _rowcount(1)
        assert await TwoFactorCodeRepository(session).consume(SimpleNamespace(id="c1")) is True

    @pytest.mark.asyncio
    async def test_consume_loses_race(self):
        session = _make_session()
        session.execute.return_value = _rowcount(0)
        assert await TwoFactorCodeRepository(session).consume(SimpleNamespace(id="c1")) is False
