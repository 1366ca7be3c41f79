"""M-Pesa STK push initiation and payment callback endpoints."""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.dependencies import Mpesa
from app.schemas.payment import (
    CALLBACK_ACK,
    STKPushFailure,
    STKPushRequest,
    STKPushResponse,
)
from app.services.mpesa_client import parse_callback
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/mpesa-stk-push",
    response_model=STKPushResponse,
    responses={400: {"model": STKPushFailure}},
)
async def mpesa_stk_push(body: STKPushRequest, mpesa: Mpesa):
    """Prompt the customer's phone for the M-Pesa PIN."""
    result = await mpesa.stk_push(
        phone_number=body.phone_number,
        amount=body.amount,
        order_id=body.order_id,
        account_reference=body.account_reference,
    )

    if result.get("ResponseCode") == "0":
        return STKPushResponse(
            checkout_request_id=result.get("CheckoutRequestID"),
            merchant_request_id=result.get("MerchantRequestID"),
        )

    logger.error("STK push failed for order %s: %s", body.order_id, result)
    failure = STKPushFailure(
        error=result.get("errorMessage") or result.get("ResponseDescription") or "STK Push failed",
        details=result,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=failure.model_dump(by_alias=True),
    )


@router.post("/mpesa-callback")
async def mpesa_callback(request: Request) -> dict[str, Any]:
    """Daraja result webhook. Always acknowledged, whatever the body holds."""
    try:
        callback = parse_callback(await request.json())
        if callback is None:
            logger.error("Invalid M-Pesa callback structure")
        elif callback.succeeded:
            # TODO: mark the order paid once checkout request ids are stored on orders
            logger.info(
                "M-Pesa payment received: amount=%s receipt=%s phone=%s checkout=%s",
                callback.amount,
                callback.receipt_number,
                callback.phone_number,
                callback.checkout_request_id,
            )
        else:
            logger.info(
                "M-Pesa payment failed (checkout=%s): %s",
                callback.checkout_request_id,
                callback.result_desc,
            )
    except Exception:
        logger.exception("Error processing M-Pesa callback")
    return CALLBACK_ACK
