"""
Hosted checkout API routes.

Start a checkout, receive the customer redirect back from the provider and
accept the provider's push notification. Keep this thin: reconciliation lives
in the application services.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, Response

from application.dtos.checkout import CheckoutStarted, PaymentSummary
from application.services.checkout_service import CheckoutService
from application.services.completion_service import CompletionService
from api.dependencies import get_checkout_service, get_completion_service
from core.logging_config import get_logger
from core.response import success_response
from domain.checkout.exceptions import CheckoutValidationError, InvalidOrderReferenceError


router = APIRouter(tags=["Checkout"])
logger = get_logger(__name__)


@router.post("/checkout/{order_id}/start", summary="Create or update the remote checkout")
async def start_checkout(order_id: str, service: CheckoutService = Depends(get_checkout_service)):
    remote = await service.create_checkout(order_id)
    started = CheckoutStarted(
        order_id=order_id,
        remote_id=remote.id,
        status=remote.status,
        snippet=remote.snippet,
    )
    return success_response(data=started.model_dump(mode="json"), message="Checkout started")


@router.get("/checkout/{order_id}/{step}/return", summary="Customer returned from the hosted checkout")
async def checkout_return(
    order_id: str,
    step: str,
    completion: CompletionService = Depends(get_completion_service),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    payment = await completion.on_return(order_id)
    snippet = await checkout.get_completion_snippet(order_id)
    return success_response(
        data={
            "step": step,
            "payment": PaymentSummary.from_entity(payment).model_dump(mode="json"),
            "snippet": snippet,
        },
        message="Checkout complete",
    )


@router.get("/checkout/{order_id}/{step}/cancel", summary="Customer left the hosted checkout")
async def checkout_cancel(order_id: str, step: str):
    logger.info("checkout_cancelled", order_id=order_id, step=step)
    return success_response(data={"order_id": order_id, "step": step}, message="Checkout cancelled")


@router.api_route("/payments/notify/{gateway_id}", methods=["GET", "POST"], summary="Provider push notification")
async def checkout_notify(
    gateway_id: str,
    request: Request,
    order_id: str | None = Query(default=None),
    completion: CompletionService = Depends(get_completion_service),
):
    query = dict(request.query_params)
    try:
        await completion.on_notify(order_id, query)
    except (CheckoutValidationError, InvalidOrderReferenceError) as exc:
        # The provider retries the push on non-2xx; the body is for operators only
        logger.info(
            "checkout_notify_failed",
            gateway_id=gateway_id,
            order_id=order_id,
            error_type=exc.error_type,
            error=exc.message,
        )
        return PlainTextResponse(exc.message, status_code=400)
    return Response(status_code=200)
