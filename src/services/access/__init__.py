from .access_control import (
    FreeAppPaymentError,
    user_has_access,
    get_access_status,
    has_access_via_bundle,
    get_bundle_access_message,
    ensure_payable_app,
)
from .entitlement_writer import EntitlementWriter

__all__ = [
    "FreeAppPaymentError",
    "user_has_access",
    "get_access_status",
    "has_access_via_bundle",
    "get_bundle_access_message",
    "ensure_payable_app",
    "EntitlementWriter",
]
