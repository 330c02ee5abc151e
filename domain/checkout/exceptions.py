"""
Checkout engine exceptions mapped to unified BusinessException variants.

Every error carries the identifiers an operator needs to diagnose a failed
reconciliation: order id, remote transaction id and the observed status.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.checkout_codes import CheckoutCode


def _context(
    order_id: Optional[str] = None,
    remote_id: Optional[str] = None,
    status: Optional[str] = None,
    extra: Optional[dict] = None,
) -> dict:
    details: dict = {"order_id": order_id, "remote_id": remote_id}
    if status is not None:
        details["status"] = status
    if extra:
        details.update(extra)
    return details


class CheckoutConfigurationError(BusinessException):
    """Gateway configuration cannot produce a valid transaction. Never retried."""

    def __init__(self, message: str, *, setting: Optional[str] = None, details: Optional[dict] = None):
        full_details = {"setting": setting}
        if details:
            full_details.update(details)
        super().__init__(
            code=CheckoutCode.CONFIGURATION_ERROR,
            message=message,
            error_type="CheckoutConfigurationError",
            details=full_details,
            field=setting,
        )


class RemoteTransactionError(BusinessException):
    """Transport, authentication or provider-side rejection."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        remote_id: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
        code: int = CheckoutCode.REMOTE_ERROR,
        error_type: str = "RemoteTransactionError",
    ):
        full_details = {"provider": provider, "remote_id": remote_id, "status_code": status_code}
        if details:
            full_details.update(details)
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=full_details,
        )


class RemoteTransactionNotFound(RemoteTransactionError):
    def __init__(self, message: str, *, provider: str, remote_id: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(
            message,
            provider=provider,
            remote_id=remote_id,
            status_code=status_code,
            code=CheckoutCode.REMOTE_NOT_FOUND,
            error_type="RemoteTransactionNotFound",
        )


class CheckoutValidationError(BusinessException):
    """Missing or unexpected remote state. Safe to retry."""

    def __init__(
        self,
        message: str,
        *,
        order_id: Optional[str] = None,
        remote_id: Optional[str] = None,
        status: Optional[str] = None,
        details: Optional[dict] = None,
        code: int = CheckoutCode.VALIDATION_ERROR,
        error_type: str = "CheckoutValidationError",
    ):
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=_context(order_id, remote_id, status, details),
        )


class CheckoutPendingAcknowledgement(CheckoutValidationError):
    """The provider did not reflect the acknowledged status after an update."""

    def __init__(self, message: str, *, order_id: Optional[str] = None, remote_id: Optional[str] = None, status: Optional[str] = None):
        super().__init__(
            message,
            order_id=order_id,
            remote_id=remote_id,
            status=status,
            code=CheckoutCode.PENDING_ACKNOWLEDGEMENT,
            error_type="CheckoutPendingAcknowledgement",
        )


class CheckoutGatewayException(BusinessException):
    """Raised on the redirect path while the provider has not finalized the checkout."""

    def __init__(self, message: str, *, order_id: Optional[str] = None, remote_id: Optional[str] = None, status: Optional[str] = None):
        super().__init__(
            code=CheckoutCode.GATEWAY_ERROR,
            message=message,
            error_type="CheckoutGatewayException",
            details=_context(order_id, remote_id, status),
        )


class InvalidOrderReferenceError(BusinessException):
    """The notification does not reference a resolvable local order."""

    def __init__(self, message: str, *, order_ref: Optional[str] = None, query: Optional[dict] = None):
        super().__init__(
            code=CheckoutCode.BAD_REQUEST,
            message=message,
            error_type="InvalidOrderReference",
            details={"order_ref": order_ref, "query": query or {}},
            field="order_id",
        )
