"""
Business codes shared by the domain, core and API layers.

`BusinessCode` covers the generic request and order failures; checkout and
provider failures live in `shared.codes.checkout_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # Request errors (1xxxx)
    PARAM_VALIDATION_ERROR = 10003

    # Lookup errors (2xxxx)
    NOT_FOUND = 20006
    ORDER_NOT_FOUND = 20007

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
