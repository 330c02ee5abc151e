"""
Remote transaction gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.checkout import RemoteTransaction


@runtime_checkable
class RemoteTransactionGateway(Protocol):
    """Create, fetch and update a provider-side transaction by remote id.

    Every failure surfaces as ``RemoteTransactionError``; a remote id the
    provider does not know raises ``RemoteTransactionNotFound``.
    """

    provider: str

    async def create(self, payload: dict[str, Any]) -> RemoteTransaction: ...

    async def fetch(self, remote_id: str) -> RemoteTransaction: ...

    async def update(self, remote_id: str, payload: dict[str, Any]) -> RemoteTransaction: ...
