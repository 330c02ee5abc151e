import pytest

from domain.checkout.exceptions import CheckoutValidationError, RemoteTransactionError
from domain.checkout.remote import REMOTE_ID_KEY
from domain.common.exceptions import OrderNotFoundException


@pytest.mark.asyncio
async def test_create_stores_remote_id(checkout_service, gateway, store, placed_order):
    remote = await checkout_service.create_checkout(placed_order.id)

    assert remote.id == "rt_1"
    assert remote.status == "checkout_incomplete"
    assert remote.snippet == "<div id='rt_1'></div>"
    assert store.orders["1"].get_data(REMOTE_ID_KEY) == "rt_1"
    assert gateway.count("create") == 1


@pytest.mark.asyncio
async def test_second_start_updates_existing_transaction(checkout_service, gateway, store, placed_order):
    await checkout_service.create_checkout(placed_order.id)
    remote = await checkout_service.create_checkout(placed_order.id)

    assert remote.id == "rt_1"
    assert gateway.count("create") == 1
    assert gateway.count("update") == 1
    assert store.orders["1"].get_data(REMOTE_ID_KEY) == "rt_1"


@pytest.mark.asyncio
async def test_update_does_not_overwrite_stored_id(checkout_service, gateway, store, placed_order):
    await checkout_service.create_checkout(placed_order.id)
    store.orders["1"].data["unrelated"] = "kept"

    await checkout_service.create_checkout(placed_order.id)
    assert store.orders["1"].data == {REMOTE_ID_KEY: "rt_1", "unrelated": "kept"}


@pytest.mark.asyncio
async def test_unknown_remote_id_falls_back_to_create(checkout_service, gateway, store, placed_order):
    store.orders["1"].set_data(REMOTE_ID_KEY, "rt_gone")

    remote = await checkout_service.create_checkout(placed_order.id)

    assert remote.id == "rt_1"
    assert gateway.count("create") == 1
    assert store.orders["1"].get_data(REMOTE_ID_KEY) == "rt_1"


@pytest.mark.asyncio
async def test_missing_remote_id_is_validation_error(checkout_service, gateway, store, placed_order, monkeypatch):
    from application.dtos.checkout import RemoteTransaction

    async def create(payload):
        return RemoteTransaction()

    monkeypatch.setattr(gateway, "create", create)
    with pytest.raises(CheckoutValidationError):
        await checkout_service.create_checkout(placed_order.id)
    assert store.orders["1"].get_data(REMOTE_ID_KEY) is None


@pytest.mark.asyncio
async def test_remote_errors_propagate(checkout_service, gateway, placed_order, monkeypatch):
    async def create(payload):
        raise RemoteTransactionError("boom", provider="fake", status_code=500)

    monkeypatch.setattr(gateway, "create", create)
    with pytest.raises(RemoteTransactionError):
        await checkout_service.create_checkout(placed_order.id)


@pytest.mark.asyncio
async def test_unknown_order(checkout_service):
    with pytest.raises(OrderNotFoundException):
        await checkout_service.create_checkout("404")


@pytest.mark.asyncio
async def test_completion_snippet(checkout_service, placed_order):
    assert await checkout_service.get_completion_snippet(placed_order.id) is None
    await checkout_service.create_checkout(placed_order.id)
    assert await checkout_service.get_completion_snippet(placed_order.id) == "<div id='rt_1'></div>"


@pytest.mark.asyncio
async def test_provider_calls_run_outside_write_transaction(checkout_service, gateway, store, placed_order):
    await checkout_service.create_checkout(placed_order.id)
    await checkout_service.create_checkout(placed_order.id)

    assert gateway.count("create") == 1
    assert gateway.count("update") == 1
    assert gateway.calls_in_transaction == []
    assert store.open_writes == 0


@pytest.mark.asyncio
async def test_missing_snippet_is_remote_error(checkout_service, gateway, store, placed_order):
    gateway.render_snippets = False

    with pytest.raises(RemoteTransactionError) as exc_info:
        await checkout_service.create_checkout(placed_order.id)

    assert exc_info.value.details["remote_id"] == "rt_1"
    # The id is kept so the next start updates instead of creating again
    assert store.orders["1"].get_data(REMOTE_ID_KEY) == "rt_1"
