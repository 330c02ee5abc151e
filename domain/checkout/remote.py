"""
Remote transaction reference stored on the order's data bag.

The stored id is the only evidence that a remote transaction exists. It is
written when the transaction is created and never overwritten on update.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from domain.order.entity import Order

REMOTE_ID_KEY = "checkout_transaction_id"


@dataclass(frozen=True)
class NoRemoteTransaction:
    pass


@dataclass(frozen=True)
class RemoteTransactionRef:
    remote_id: str


RemoteReference = Union[NoRemoteTransaction, RemoteTransactionRef]


def remote_reference(order: Order) -> RemoteReference:
    remote_id = order.get_data(REMOTE_ID_KEY)
    if not remote_id:
        return NoRemoteTransaction()
    return RemoteTransactionRef(str(remote_id))


def remote_id_of(order: Order) -> str | None:
    ref = remote_reference(order)
    return ref.remote_id if isinstance(ref, RemoteTransactionRef) else None


def store_remote_id(order: Order, remote_id: str) -> None:
    order.set_data(REMOTE_ID_KEY, remote_id)
