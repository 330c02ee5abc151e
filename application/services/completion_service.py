"""
Completion reconciliation for hosted checkout transactions.

Both the customer redirect (return) and the provider push (notify) are
at-least-once signals. Whatever their order or number, they converge on one
authorization payment per (order, gateway), completed at most once, and at
most one ``validate`` transition on the order.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from application.dtos.checkout import RemoteTransaction
from application.services.checkout_service import CheckoutService
from application.services.transaction_hooks import STEP_CREATED
from core.logging_config import bind_checkout_context, get_logger
from core.settings import CheckoutGatewayConfig
from domain.checkout.billing import update_billing_profile
from domain.checkout.exceptions import (
    CheckoutGatewayException,
    CheckoutPendingAcknowledgement,
    CheckoutValidationError,
    InvalidOrderReferenceError,
)
from domain.checkout.remote import remote_id_of
from domain.common.exceptions import OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order
from domain.payment.entity import Payment
from domain.payment.service import PaymentDomainService
from shared.codes.checkout_codes import (
    REMOTE_STATUS_COMPLETE,
    REMOTE_STATUS_CREATED,
)


logger = get_logger(__name__)

VALIDATE_TRANSITION = "validate"


class CompletionService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        checkout_service: CheckoutService,
        config: CheckoutGatewayConfig,
    ) -> None:
        self._uow_factory = uow_factory
        self.checkout = checkout_service
        self.config = config

    async def _load_order(self, uow: AbstractUnitOfWork, order_id: str) -> Order:
        order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def _read_order(self, order_id: str) -> Order:
        async with self._uow_factory(readonly=True) as uow:
            return await self._load_order(uow, order_id)

    async def _authorize(self, uow: AbstractUnitOfWork, order: Order, remote: RemoteTransaction) -> Payment:
        domain = PaymentDomainService(uow.payment_repository)
        payment = await domain.ensure_authorized_payment(
            order,
            payment_gateway=self.config.gateway_id,
            remote_id=remote.id,
            test=not self.config.is_live,
        )
        for event in domain.clear_events():
            logger.info(
                "payment_authorized",
                order_id=event.order_id,
                payment_gateway=event.payment_gateway,
                remote_id=event.remote_id,
                amount=event.amount,
            )
        return payment

    async def on_return(self, order_id: str) -> Payment:
        """Customer came back from the hosted checkout page."""
        bind_checkout_context(order_id=order_id)
        order = await self._read_order(order_id)
        remote = await self.checkout.get_remote_transaction(order)

        if remote is None or remote.status != REMOTE_STATUS_COMPLETE:
            remote_id = remote.id if remote else remote_id_of(order)
            status = remote.status if remote else None
            logger.error(
                "checkout_return_rejected",
                order_id=order.id,
                remote_id=remote_id,
                status=status,
            )
            raise CheckoutGatewayException(
                f"Confirmation failed for order {order.id} [{remote_id}]",
                order_id=order.id,
                remote_id=remote_id,
                status=status,
            )

        async with self._uow_factory() as uow:
            order = await self._load_order(uow, order_id)
            payment = await self._authorize(uow, order, remote)
        logger.info("checkout_return_accepted", order_id=order.id, remote_id=remote.id, payment_id=payment.id)
        return payment

    async def on_notify(self, order_ref: Optional[str], query: Optional[Mapping[str, Any]] = None) -> Payment:
        """Provider push notification; ``order_ref`` comes from the query string."""
        query = dict(query or {})
        order: Optional[Order] = None
        if order_ref:
            async with self._uow_factory(readonly=True) as uow:
                order = await uow.order_repository.get_by_id(str(order_ref))

        if order is None:
            message = f"Notify callback called for an invalid order {order_ref} [{query}]"
            logger.warning("checkout_notify_rejected", order_ref=order_ref, query=query)
            raise InvalidOrderReferenceError(message, order_ref=order_ref, query=query)

        bind_checkout_context(order_id=order.id)
        return await self.complete_checkout(order.id)

    async def complete_checkout(self, order_id: str) -> Payment:
        """
        Authorize, acknowledge and complete the order's checkout.

        The acknowledgement is sent outside any database transaction; the
        payment is completed and the order validated only once the provider
        reflects the ``created`` status.
        """
        order = await self._read_order(order_id)
        remote = await self.checkout.get_remote_transaction(order)

        if remote is None or not remote.id:
            message = f"No order details returned from the provider to order {order.id}"
            logger.error("checkout_remote_missing", order_id=order.id, remote_id=remote_id_of(order))
            raise CheckoutValidationError(message, order_id=order.id, remote_id=remote_id_of(order))

        if remote.status != REMOTE_STATUS_COMPLETE:
            message = f"Invalid order status ({remote.status}) received from the provider for order {order.id}"
            logger.error("checkout_status_invalid", order_id=order.id, remote_id=remote.id, status=remote.status)
            raise CheckoutValidationError(message, order_id=order.id, remote_id=remote.id, status=remote.status)

        async with self._uow_factory() as uow:
            order = await self._load_order(uow, order_id)
            payment = await self._authorize(uow, order, remote)

            if self.config.update_billing_profile and remote.billing_address:
                if update_billing_profile(order, remote.billing_address):
                    await uow.order_repository.save(order)
                    logger.info("billing_profile_updated", order_id=order.id, remote_id=remote.id)

        update = self.checkout.hooks.alter(order, STEP_CREATED, {"status": REMOTE_STATUS_CREATED})
        acknowledged = await self.checkout.gateway.update(remote.id, update)

        if acknowledged.status != REMOTE_STATUS_CREATED:
            logger.warning(
                "checkout_acknowledgement_pending",
                order_id=order.id,
                remote_id=remote.id,
                status=acknowledged.status,
            )
            raise CheckoutPendingAcknowledgement(
                f"Push notification for order {order.id} [state: {order.state}, ref: {remote.id}] ignored. "
                "Remote transaction status not updated.",
                order_id=order.id,
                remote_id=remote.id,
                status=acknowledged.status,
            )

        async with self._uow_factory() as uow:
            order = await self._load_order(uow, order_id)
            payment = await uow.payment_repository.get_by_order_and_gateway(order.id, self.config.gateway_id) or payment

            domain = PaymentDomainService(uow.payment_repository)
            payment = await domain.complete_payment(payment)
            for event in domain.clear_events():
                logger.info("payment_completed", order_id=event.order_id, remote_id=event.remote_id)

            # Conditional on the stored state; concurrent pushes validate once
            transition = order.get_transition(VALIDATE_TRANSITION)
            if transition is not None and await uow.order_repository.transition_state(order.id, transition):
                order.apply_transition(transition)
                logger.info("order_validated", order_id=order.id, state=order.state)

        logger.info("checkout_transaction_created", order_id=order_id, remote_id=remote.id, payment_id=payment.id)
        return payment
