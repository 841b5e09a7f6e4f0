"""
Core package initializer.

This package provides the static app registry, OTP security helpers and
the Redis-backed OTP rate limiter.
"""

from .security import (
    generate_otp,
    hash_otp,
)

from .registry import (
    APPS,
    BUNDLES,
    AppDescriptor,
    Bundle,
    Price,
    RegistryError,
    get_app_config,
    get_bundle_config,
    get_free_apps,
    get_paid_apps,
    is_free_app,
    requires_payment,
    is_bundle_app,
    get_bundle_info,
    get_apps_to_unlock,
)

__all__ = [
    # Security
    "generate_otp",
    "hash_otp",
    # Registry
    "APPS",
    "BUNDLES",
    "AppDescriptor",
    "Bundle",
    "Price",
    "RegistryError",
    "get_app_config",
    "get_bundle_config",
    "get_free_apps",
    "get_paid_apps",
    "is_free_app",
    "requires_payment",
    "is_bundle_app",
    "get_bundle_info",
    "get_apps_to_unlock",
]
