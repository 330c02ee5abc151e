"""
Application service compiling orders into remote checkout transactions.

Depends only on the RemoteTransactionGateway port, the unit of work and the
explicit gateway configuration; adapters are injected from the composition
root (API dependencies).
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from application.dtos.checkout import (
    Cart,
    CartItem,
    Merchant,
    RemoteTransaction,
    TransactionPayload,
)
from application.ports.transaction_gateway import RemoteTransactionGateway
from application.services.callback_urls import CallbackUrlBuilder
from application.services.transaction_hooks import STEP_CREATE, TransactionHookRegistry
from core.logging_config import bind_checkout_context, get_logger
from core.settings import CheckoutGatewayConfig
from domain.checkout.cart import build_cart_lines
from domain.checkout.exceptions import (
    CheckoutConfigurationError,
    CheckoutValidationError,
    RemoteTransactionError,
    RemoteTransactionNotFound,
)
from domain.checkout.locale import purchase_country
from domain.checkout.remote import RemoteTransactionRef, remote_reference, store_remote_id
from domain.common.exceptions import OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order


logger = get_logger(__name__)


class CheckoutService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        gateway: RemoteTransactionGateway,
        config: CheckoutGatewayConfig,
        hooks: Optional[TransactionHookRegistry] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self.gateway = gateway
        self.config = config
        self.hooks = hooks or TransactionHookRegistry()
        self.urls = CallbackUrlBuilder(config)

    def _require(self, value: str, setting: str) -> str:
        if not value:
            raise CheckoutConfigurationError(f"Checkout gateway setting '{setting}' is not configured", setting=setting)
        return value

    def build_order_data(self, order: Order) -> dict[str, Any]:
        """Compile the order into the provider's transaction payload."""
        payload = TransactionPayload(
            cart=Cart(items=[CartItem(**line.as_payload()) for line in build_cart_lines(order)]),
            purchase_country=purchase_country(self.config.language),
            purchase_currency=order.total_price.currency_code,
            locale=self.config.language,
            merchant_reference={"orderid1": str(order.id)},
            merchant=Merchant(
                id=self._require(self.config.merchant_id, "merchant_id"),
                terms_uri=self._require(self.config.terms_url, "terms_path"),
                checkout_uri=self.urls.cancel_url(order.id),
                confirmation_uri=self.urls.return_url(order.id),
                push_uri=self.urls.notify_url(order.id),
                back_to_store_uri=self.urls.cancel_url(order.id),
            ),
        )
        return payload.to_values()

    async def get_remote_transaction(self, order: Order) -> Optional[RemoteTransaction]:
        """Fetch the order's remote transaction; None when none exists remotely."""
        ref = remote_reference(order)
        if not isinstance(ref, RemoteTransactionRef):
            return None
        try:
            return await self.gateway.fetch(ref.remote_id)
        except RemoteTransactionNotFound:
            logger.warning("checkout_remote_transaction_missing", order_id=order.id, remote_id=ref.remote_id)
            return None

    async def build_transaction(self, order: Order) -> tuple[RemoteTransaction, bool]:
        """
        Create or update the remote transaction for the order.

        Returns the freshly fetched remote transaction and whether it was
        created by this call.
        """
        values = self.hooks.alter(order, STEP_CREATE, self.build_order_data(order))

        existing = await self.get_remote_transaction(order)
        if existing is not None and existing.id:
            remote = await self.gateway.update(existing.id, values)
            created = False
        else:
            remote = await self.gateway.create(values)
            created = True

        if not remote.id:
            raise CheckoutValidationError("Failed to fetch remote transaction id", order_id=order.id)
        remote = await self.gateway.fetch(remote.id)
        logger.info(
            "checkout_transaction_built",
            order_id=order.id,
            remote_id=remote.id,
            status=remote.status,
            created=created,
        )
        return remote, created

    async def create_checkout(self, order_id: str) -> RemoteTransaction:
        """Build the remote transaction and remember its id on the order."""
        bind_checkout_context(order_id=order_id)
        order = await self._get_order(order_id)

        # Provider calls run before the write transaction is opened
        remote, created = await self.build_transaction(order)
        if created:
            async with self._uow_factory() as uow:
                order = await uow.order_repository.get_by_id(order_id)
                if order is None:
                    raise OrderNotFoundException(order_id)
                store_remote_id(order, remote.id)
                await uow.order_repository.save(order)
            logger.info("checkout_remote_id_stored", order_id=order_id, remote_id=remote.id)

        if not remote.snippet:
            logger.error("checkout_snippet_missing", order_id=order_id, remote_id=remote.id, status=remote.status)
            raise RemoteTransactionError(
                f"No checkout snippet returned from the provider for order {order_id} [{remote.id}]",
                provider=self.config.gateway_id,
                remote_id=remote.id,
            )
        return remote

    async def _get_order(self, order_id: str) -> Order:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def get_completion_snippet(self, order_id: str) -> Optional[str]:
        """Confirmation snippet rendered after the customer completes checkout."""
        order = await self._get_order(order_id)
        remote = await self.get_remote_transaction(order)
        return remote.snippet if remote else None
