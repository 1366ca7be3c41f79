"""Unit tests for Pydantic schemas."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.schemas.admin import AdminActionRequest, AdminActionResponse
from app.schemas.auth import (
    LoginResponse,
    Send2FARequest,
    SignupRequest,
    Verify2FARequest,
    Verify2FAResponse,
)
from app.schemas.fraud import FraudAlertRequest, FraudFlagResponse
from app.schemas.order import OrderCreate, OrderStatusUpdate
from app.schemas.payment import STKPushFailure, STKPushRequest
from tests.conftest import make_fraud_flag_model


class TestSignupRequest:
    def test_valid(self):
        s = SignupRequest(email="jane@zanifu.dev", password="long-enough")
        assert s.full_name is None

    def test_short_password(self):
        with pytest.raises(ValidationError):
            SignupRequest(email="jane@zanifu.dev", password="short")

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            SignupRequest(email="not-an-email", password="long-enough")


class TestTwoFactorSchemas:
    def test_send_accepts_camel_case(self):
        r = Send2FARequest.model_validate(
            {"email": "a@b.dev", "userId": "u1", "challengeToken": "c"}
        )
        assert r.user_id == "u1"
        assert r.challenge_token == "c"

    def test_send_accepts_snake_case(self):
        r = Send2FARequest(email="a@b.dev", user_id="u1", challenge_token="c")
        assert r.user_id == "u1"

    def test_verify_code_max_six(self):
        with pytest.raises(ValidationError):
            Verify2FARequest(user_id="u1", code="1234567", challenge_token="c")

    def test_verify_requires_challenge_token(self):
        with pytest.raises(ValidationError):
            Verify2FARequest.model_validate({"userId": "u1", "code": "123456"})

    def test_verify_response_dumps_camel_case(self):
        r = Verify2FAResponse(valid=True, access_token="t", token_type="bearer", expires_in=60)
        dumped = r.model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"valid": True, "accessToken": "t", "tokenType": "bearer", "expiresIn": 60}

    def test_login_response_defaults(self):
        dumped = LoginResponse(user_id="u1", challenge_token="c").model_dump(by_alias=True)
        assert dumped["otpRequired"] is True
        assert dumped["userId"] == "u1"
        assert dumped["challengeToken"] == "c"


class TestAdminActionRequest:
    def test_valid_change_role(self):
        r = AdminActionRequest.model_validate(
            {"action": "change_role", "targetUserId": "u2", "newRole": "admin"}
        )
        assert r.new_role == "admin"

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            AdminActionRequest.model_validate({"action": "delete_user", "targetUserId": "u2"})

    def test_unknown_role(self):
        with pytest.raises(ValidationError):
            AdminActionRequest.model_validate(
                {"action": "change_role", "targetUserId": "u2", "newRole": "root"}
            )

    def test_response_dumps_camel_case(self):
        r = AdminActionResponse(action="lock_account", target_user_id="u2")
        assert r.model_dump(by_alias=True) == {
            "success": True,
            "action": "lock_account",
            "targetUserId": "u2",
        }


class TestOrderSchemas:
    def test_default_payment_method(self):
        o = OrderCreate(items=[{"product_id": "p1"}])
        assert o.payment_method == "demo"
        assert o.items[0].quantity == 1

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            OrderCreate(items=[])

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            OrderCreate(items=[{"product_id": "p1", "quantity": 0}])

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            OrderStatusUpdate(status="shipped")


class TestFraudSchemas:
    def test_alert_requires_flag_id(self):
        with pytest.raises(ValidationError):
            FraudAlertRequest.model_validate(
                {"flagType": "velocity", "severity": "high", "description": "x"}
            )

    def test_alert_metadata_optional(self):
        a = FraudAlertRequest.model_validate(
            {"flagId": "f1", "flagType": "velocity", "severity": "high", "description": "x"}
        )
        assert a.metadata is None
        assert a.user_id is None

    def test_flag_response_reads_orm_metadata(self):
        flag = make_fraud_flag_model(flag_metadata={"order_count": 4})
        r = FraudFlagResponse.model_validate(flag)
        assert r.metadata == {"order_count": 4}


class TestPaymentSchemas:
    def test_stk_request_amount_decimal(self):
        r = STKPushRequest.model_validate(
            {"phoneNumber": "0712345678", "amount": "99.50", "orderId": "o1"}
        )
        assert r.amount == Decimal("99.50")

    def test_stk_request_rejects_zero_amount(self):
        with pytest.raises(ValidationError):
            STKPushRequest(phone_number="0712345678", amount=Decimal("0"), order_id="o1")

    def test_failure_defaults(self):
        f = STKPushFailure(error="boom")
        assert f.model_dump(by_alias=True) == {"success": False, "error": "boom", "details": {}}
