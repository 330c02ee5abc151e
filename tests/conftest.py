"""Pytest bootstrap configuration.

Ensure environment variables are set before test collection and module
imports that depend on application settings, and provide in-memory fakes
for the unit of work and the remote transaction gateway.
"""
import os

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CHECKOUT__MERCHANT_ID", "merchant-1")
os.environ.setdefault("CHECKOUT__SHARED_SECRET", "test-shared-secret")
os.environ.setdefault("CHECKOUT__TERMS_PATH", "/terms")
os.environ.setdefault("CHECKOUT__SITE_BASE_URL", "https://shop.example.com")

import copy
import itertools
from decimal import Decimal
from typing import Any, Optional

import pytest

from application.dtos.checkout import RemoteTransaction
from application.services.checkout_service import CheckoutService
from application.services.completion_service import CompletionService
from application.services.transaction_hooks import TransactionHookRegistry
from core.settings import CheckoutGatewayConfig
from domain.checkout.exceptions import RemoteTransactionNotFound
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Address, Adjustment, BillingProfile, Money, Order, OrderItem
from domain.order.repository import OrderRepository
from domain.order.workflow import WorkflowTransition
from domain.payment.entity import Payment
from domain.payment.exceptions import PaymentAlreadyExistsException
from domain.payment.repository import PaymentRepository


class InMemoryStore:
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.payments: dict[int, Payment] = {}
        self.ids = itertools.count(1)
        # Writable units of work currently open
        self.open_writes = 0


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self.store.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def add(self, order: Order) -> Order:
        self.store.orders[order.id] = copy.deepcopy(order)
        return order

    async def save(self, order: Order) -> Order:
        self.store.orders[order.id] = copy.deepcopy(order)
        return order

    async def transition_state(self, order_id: str, transition: WorkflowTransition) -> bool:
        order = self.store.orders.get(order_id)
        if order is None or order.state not in transition.from_states:
            return False
        order.state = transition.to_state
        return True


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, payment: Payment) -> Payment:
        for existing in self.store.payments.values():
            if existing.order_id == payment.order_id and existing.payment_gateway == payment.payment_gateway:
                raise PaymentAlreadyExistsException(payment.order_id, payment.payment_gateway)
        payment = copy.deepcopy(payment)
        payment.id = next(self.store.ids)
        self.store.payments[payment.id] = payment
        return copy.deepcopy(payment)

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        payment = self.store.payments.get(payment_id)
        return copy.deepcopy(payment) if payment else None

    async def get_by_order_and_gateway(self, order_id: str, payment_gateway: str) -> Optional[Payment]:
        for payment in self.store.payments.values():
            if payment.order_id == order_id and payment.payment_gateway == payment_gateway:
                return copy.deepcopy(payment)
        return None

    async def update(self, payment: Payment) -> Payment:
        self.store.payments[payment.id] = copy.deepcopy(payment)
        return payment


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore, *, readonly: bool = False) -> None:
        super().__init__(readonly=readonly)
        self.store = store
        self.order_repository = InMemoryOrderRepository(store)
        self.payment_repository = InMemoryPaymentRepository(store)

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        if not self._readonly:
            self.store.open_writes += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if not self._readonly:
                self.store.open_writes -= 1

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._committed = False


class FakeTransactionGateway:
    """Remote transactions kept in a dict; every call is recorded."""

    provider = "fake"

    def __init__(self, store: Optional[InMemoryStore] = None) -> None:
        self.store = store
        # Provider calls made while a writable unit of work was open
        self.calls_in_transaction: list[str] = []
        self.transactions: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Optional[str], Any]] = []
        self.ids = itertools.count(1)
        # When False the provider ignores status updates (acknowledgement pending)
        self.accept_status_updates = True
        # When False created transactions carry no checkout snippet
        self.render_snippets = True

    async def create(self, payload: dict[str, Any]) -> RemoteTransaction:
        self._record_transaction("create")
        remote_id = f"rt_{next(self.ids)}"
        self.calls.append(("create", remote_id, copy.deepcopy(payload)))
        self.transactions[remote_id] = {
            "id": remote_id,
            "status": "checkout_incomplete",
            **copy.deepcopy(payload),
        }
        if self.render_snippets:
            self.transactions[remote_id]["gui"] = {"snippet": f"<div id='{remote_id}'></div>"}
        return RemoteTransaction(id=remote_id)

    async def fetch(self, remote_id: str) -> RemoteTransaction:
        self._record_transaction("fetch")
        self.calls.append(("fetch", remote_id, None))
        if remote_id not in self.transactions:
            raise RemoteTransactionNotFound("missing", provider=self.provider, remote_id=remote_id, status_code=404)
        return RemoteTransaction.from_resource(copy.deepcopy(self.transactions[remote_id]))

    async def update(self, remote_id: str, payload: dict[str, Any]) -> RemoteTransaction:
        self._record_transaction("update")
        self.calls.append(("update", remote_id, copy.deepcopy(payload)))
        if remote_id not in self.transactions:
            raise RemoteTransactionNotFound("missing", provider=self.provider, remote_id=remote_id, status_code=404)
        changes = dict(payload)
        if not self.accept_status_updates:
            changes.pop("status", None)
        self.transactions[remote_id].update(copy.deepcopy(changes))
        return RemoteTransaction.from_resource(copy.deepcopy(self.transactions[remote_id]))

    def _record_transaction(self, method: str) -> None:
        if self.store is not None and self.store.open_writes:
            self.calls_in_transaction.append(method)

    def complete(self, remote_id: str, **extra: Any) -> None:
        """Simulate the customer finishing the hosted checkout."""
        self.transactions[remote_id]["status"] = "checkout_complete"
        self.transactions[remote_id].update(extra)

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


def make_order(
    order_id: str = "1",
    *,
    state: str = "validation",
    price: str = "11",
    tax_percentage: Optional[str] = "24",
    adjustments: Optional[list[Adjustment]] = None,
    billing: bool = True,
    currency: str = "EUR",
) -> Order:
    item_adjustments = []
    if tax_percentage is not None:
        item_adjustments.append(Adjustment(
            type="tax",
            label="VAT",
            amount=Money(Decimal("2.13"), currency),
            percentage=Decimal(tax_percentage),
            included=True,
        ))
    return Order(
        id=order_id,
        items=[OrderItem(
            title="Product 1",
            quantity=1,
            unit_price=Money(Decimal(price), currency),
            adjustments=item_adjustments,
        )],
        adjustments=adjustments or [],
        currency_code=currency,
        state=state,
        payment_gateway="klarna_checkout",
        billing_profile=BillingProfile(address=Address()) if billing else None,
    )


@pytest.fixture
def gateway_config() -> CheckoutGatewayConfig:
    return CheckoutGatewayConfig(
        gateway_id="klarna_checkout",
        mode="test",
        merchant_id="merchant-1",
        terms_url="https://shop.example.com/terms",
        language="sv-se",
        update_billing_profile=True,
        site_base_url="https://shop.example.com",
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    def _factory(*, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(store, readonly=readonly)
    return _factory


@pytest.fixture
def gateway(store) -> FakeTransactionGateway:
    return FakeTransactionGateway(store)


@pytest.fixture
def hooks() -> TransactionHookRegistry:
    return TransactionHookRegistry()


@pytest.fixture
def checkout_service(uow_factory, gateway, gateway_config, hooks) -> CheckoutService:
    return CheckoutService(uow_factory=uow_factory, gateway=gateway, config=gateway_config, hooks=hooks)


@pytest.fixture
def completion_service(uow_factory, checkout_service, gateway_config) -> CompletionService:
    return CompletionService(uow_factory=uow_factory, checkout_service=checkout_service, config=gateway_config)


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def placed_order(store):
    order = make_order()
    store.orders[order.id] = order
    return order
