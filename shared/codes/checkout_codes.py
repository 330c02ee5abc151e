"""
Checkout specific codes and the provider's remote status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class CheckoutCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    REMOTE_ERROR = 60000
    REMOTE_NOT_FOUND = 60001
    CONFIGURATION_ERROR = 60002

    # Reconciliation errors (7xxxx)
    VALIDATION_ERROR = 70000
    PENDING_ACKNOWLEDGEMENT = 70001
    GATEWAY_ERROR = 70002
    BAD_REQUEST = 70003
    PAYMENT_ALREADY_EXISTS = 70004


# Remote transaction statuses as reported by the provider
REMOTE_STATUS_INCOMPLETE = "checkout_incomplete"
REMOTE_STATUS_COMPLETE = "checkout_complete"
REMOTE_STATUS_CREATED = "created"
