import asyncio
import copy

import pytest

from domain.checkout.exceptions import (
    CheckoutGatewayException,
    CheckoutPendingAcknowledgement,
    CheckoutValidationError,
    InvalidOrderReferenceError,
)
from domain.payment.entity import PaymentState


BILLING_ADDRESS = {
    "given_name": "Testperson-se",
    "family_name": "Approved",
    "street_address": "Stårgatan 1",
    "postal_code": "12345",
    "city": "Ankeborg",
    "country": "se",
}


async def _started(checkout_service, gateway, order_id="1", **extra):
    remote = await checkout_service.create_checkout(order_id)
    gateway.complete(remote.id, **extra)
    return remote


@pytest.mark.asyncio
async def test_return_creates_single_authorization(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)

    first = await completion_service.on_return("1")
    second = await completion_service.on_return("1")

    assert first.id == second.id
    assert len(store.payments) == 1
    payment = store.payments[first.id]
    assert payment.state == PaymentState.AUTHORIZATION
    assert payment.remote_id == "rt_1"
    assert payment.remote_state == "paid"
    assert payment.test is True
    assert payment.amount == store.orders["1"].total_price.number


@pytest.mark.asyncio
async def test_return_before_completion_is_gateway_error(checkout_service, completion_service, gateway, store, placed_order):
    await checkout_service.create_checkout("1")

    with pytest.raises(CheckoutGatewayException) as exc_info:
        await completion_service.on_return("1")
    assert exc_info.value.details["remote_id"] == "rt_1"
    assert exc_info.value.details["status"] == "checkout_incomplete"
    assert store.payments == {}


@pytest.mark.asyncio
async def test_return_without_remote_transaction(completion_service, store, placed_order):
    with pytest.raises(CheckoutGatewayException):
        await completion_service.on_return("1")
    assert store.payments == {}


@pytest.mark.asyncio
async def test_notify_completes_and_validates(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway, billing_address=BILLING_ADDRESS)

    payment = await completion_service.on_notify("1", {"order_id": "1", "step": "complete"})

    assert payment.state == PaymentState.COMPLETED
    assert store.payments[payment.id].completed_at is not None
    order = store.orders["1"]
    assert order.state == "completed"
    assert order.billing_profile.address.address_line1 == "Stårgatan 1"
    assert order.billing_profile.address.country_code == "SE"
    assert gateway.transactions["rt_1"]["status"] == "created"


@pytest.mark.asyncio
async def test_return_then_notify_keeps_one_payment(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)

    await completion_service.on_return("1")
    await completion_service.on_notify("1")

    assert len(store.payments) == 1
    assert next(iter(store.payments.values())).state == PaymentState.COMPLETED


@pytest.mark.asyncio
async def test_duplicate_notify_validates_once(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)
    await completion_service.on_notify("1")

    # The provider keeps reporting checkout_complete until it sees "created"
    gateway.complete("rt_1")
    await completion_service.on_notify("1")

    assert len(store.payments) == 1
    assert store.orders["1"].state == "completed"


@pytest.mark.asyncio
async def test_notify_invalid_order(completion_service, store):
    with pytest.raises(InvalidOrderReferenceError) as exc_info:
        await completion_service.on_notify("999", {"order_id": "999"})
    assert "invalid order" in exc_info.value.message
    assert store.payments == {}


@pytest.mark.asyncio
async def test_notify_without_order_reference(completion_service):
    with pytest.raises(InvalidOrderReferenceError):
        await completion_service.on_notify(None, {})


@pytest.mark.asyncio
async def test_notify_incomplete_checkout(checkout_service, completion_service, gateway, store, placed_order):
    await checkout_service.create_checkout("1")

    with pytest.raises(CheckoutValidationError) as exc_info:
        await completion_service.on_notify("1")
    assert "checkout_incomplete" in exc_info.value.message
    assert store.payments == {}
    assert gateway.count("update") == 0


@pytest.mark.asyncio
async def test_notify_without_remote_transaction(completion_service, store, placed_order):
    with pytest.raises(CheckoutValidationError) as exc_info:
        await completion_service.on_notify("1")
    assert exc_info.value.message.startswith("No order details returned")


@pytest.mark.asyncio
async def test_pending_acknowledgement_does_not_transition(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)
    gateway.accept_status_updates = False

    with pytest.raises(CheckoutPendingAcknowledgement) as exc_info:
        await completion_service.on_notify("1")

    assert isinstance(exc_info.value, CheckoutValidationError)
    assert "ignored" in exc_info.value.message
    assert store.orders["1"].state == "validation"
    # Authorization survives; a later notification completes it
    payment = next(iter(store.payments.values()))
    assert payment.state == PaymentState.AUTHORIZATION

    gateway.accept_status_updates = True
    await completion_service.on_notify("1")
    assert store.orders["1"].state == "completed"
    assert len(store.payments) == 1


@pytest.mark.asyncio
async def test_created_hook_alters_acknowledgement(checkout_service, completion_service, gateway, hooks, placed_order):
    @hooks.register
    def acknowledge(order, step, values):
        if step == "created":
            values["merchant_reference"] = {"orderid1": order.id, "orderid2": "paid"}

    await _started(checkout_service, gateway)
    await completion_service.on_notify("1")

    method, remote_id, payload = gateway.calls[-1]
    assert method == "update"
    assert payload == {"status": "created", "merchant_reference": {"orderid1": "1", "orderid2": "paid"}}


@pytest.mark.asyncio
async def test_order_without_validation_step_is_not_transitioned(
    checkout_service, completion_service, gateway, store, order_factory
):
    store.orders["2"] = order_factory("2", state="draft")
    await _started(checkout_service, gateway, order_id="2")

    await completion_service.on_notify("2")
    assert store.orders["2"].state == "draft"


@pytest.mark.asyncio
async def test_billing_profile_left_alone_when_disabled(
    checkout_service, completion_service, gateway, store, placed_order, gateway_config
):
    completion_service.config = gateway_config.model_copy(update={"update_billing_profile": False})
    await _started(checkout_service, gateway, billing_address=BILLING_ADDRESS)

    await completion_service.on_notify("1")
    assert store.orders["1"].billing_profile.address.address_line1 == ""


@pytest.mark.asyncio
async def test_concurrent_signals_converge(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)

    await asyncio.gather(
        completion_service.on_return("1"),
        completion_service.on_notify("1"),
    )
    assert len(store.payments) == 1
    assert store.orders["1"].state == "completed"


@pytest.mark.asyncio
async def test_return_after_acknowledgement_is_rejected(checkout_service, completion_service, gateway, store, placed_order):
    await _started(checkout_service, gateway)
    await completion_service.on_notify("1")

    with pytest.raises(CheckoutGatewayException):
        await completion_service.on_return("1")
    assert len(store.payments) == 1


@pytest.mark.asyncio
async def test_provider_calls_run_outside_write_transaction(
    checkout_service, completion_service, gateway, store, placed_order
):
    await _started(checkout_service, gateway, billing_address=BILLING_ADDRESS)
    await completion_service.on_return("1")
    await completion_service.on_notify("1")

    assert gateway.count("update") == 1
    assert gateway.calls_in_transaction == []
    assert store.open_writes == 0


@pytest.mark.asyncio
async def test_stale_order_read_validates_once(
    checkout_service, completion_service, gateway, store, uow_factory, placed_order, monkeypatch
):
    await _started(checkout_service, gateway)
    await completion_service.on_notify("1")
    assert store.orders["1"].state == "completed"

    # A second push that read the order before the first one committed
    repository_cls = type(uow_factory().order_repository)
    stale = copy.deepcopy(store.orders["1"])
    stale.state = "validation"
    applied = []
    transition_state = repository_cls.transition_state

    async def get_by_id(self, order_id):
        return copy.deepcopy(stale)

    async def recording_transition_state(self, order_id, transition):
        result = await transition_state(self, order_id, transition)
        applied.append(result)
        return result

    monkeypatch.setattr(repository_cls, "get_by_id", get_by_id)
    monkeypatch.setattr(repository_cls, "transition_state", recording_transition_state)

    gateway.complete("rt_1")
    payment = await completion_service.on_notify("1")

    assert applied == [False]
    assert payment.state == PaymentState.COMPLETED
    assert store.orders["1"].state == "completed"
    assert len(store.payments) == 1
