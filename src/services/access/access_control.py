"""
Universal access control.

Read-side decisions about which apps a user may open. Users are any object
with an `id` and an iterable `entitlements` of records exposing `app_id`,
`is_active`, `expires_at` and `granted_via` (the `UserAccess` schema and
`UserAppAccess` rows both qualify). Everything here is recomputed per call.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from src.core.registry import (
    get_app_config,
    get_bundle_config,
    get_bundle_info,
    get_free_apps,
    is_free_app,
)
from src.models.base import utcnow
from src.models.enums import GrantedVia
from src.schemas.access import AccessStatus, BundleAccess

logger = logging.getLogger(__name__)


class FreeAppPaymentError(ValueError):
    """A payment or OTP was requested for an app that is free."""


def _entitlements(user: Any) -> Iterable[Any]:
    # Entitlements only count for an identified user
    if user is None or not getattr(user, "id", None):
        return ()
    records = getattr(user, "entitlements", None)
    if records is None:
        return ()
    return records


def _is_live(record: Any, now: datetime) -> bool:
    if not record.is_active:
        return False
    expires_at = record.expires_at
    return expires_at is None or now <= expires_at


def _granted_via(record: Any) -> Optional[GrantedVia]:
    value = record.granted_via
    if value is None:
        return None
    return GrantedVia(value)


def user_has_access(user: Any, app_id: str, now: Optional[datetime] = None) -> bool:
    """
    Decide whether `user` may open `app_id`.

    Free apps are open to everyone, anonymous users included. Paid apps need
    an active entitlement for that exact app that has not expired.
    """
    if is_free_app(app_id):
        return True

    now = now or utcnow()
    record = next(
        (r for r in _entitlements(user) if r.app_id == app_id and r.is_active),
        None,
    )
    if record is None:
        return False

    return _is_live(record, now)


def get_access_status(user: Any, now: Optional[datetime] = None) -> AccessStatus:
    """Every app the user can open, plus which bundle app was bought versus unlocked."""
    now = now or utcnow()
    free_apps = get_free_apps()
    accessible_apps = list(free_apps)
    bundle_access = {}

    for record in _entitlements(user):
        if not _is_live(record, now):
            continue

        if record.app_id not in accessible_apps:
            accessible_apps.append(record.app_id)

        app = get_app_config(record.app_id)
        if app is None or app.bundle_id is None:
            continue

        entry = bundle_access.get(app.bundle_id)
        if entry is None:
            bundle = get_bundle_config(app.bundle_id)
            entry = BundleAccess(
                id=bundle.id,
                name=bundle.name,
                apps=sorted(bundle.member_app_ids),
            )
            bundle_access[app.bundle_id] = entry

        granted_via = _granted_via(record)
        if granted_via == GrantedVia.bundle:
            if record.app_id not in entry.unlocked_apps:
                entry.unlocked_apps.append(record.app_id)
        elif granted_via == GrantedVia.payment:
            entry.purchased_app = record.app_id

    return AccessStatus(
        free_apps=free_apps,
        accessible_apps=accessible_apps,
        bundle_access=bundle_access,
        total_access=len(accessible_apps),
    )


def has_access_via_bundle(user: Any, app_id: str, now: Optional[datetime] = None) -> bool:
    """True iff the live entitlement for `app_id` came from a bundle unlock. Messaging only."""
    now = now or utcnow()
    return any(
        r.app_id == app_id and _is_live(r, now) and _granted_via(r) == GrantedVia.bundle
        for r in _entitlements(user)
    )


def get_bundle_access_message(app_id: str, purchased_app_id: str) -> str:
    bundle = get_bundle_info(app_id)
    if bundle is None:
        return ""

    current_app = get_app_config(app_id)
    purchased_app = get_app_config(purchased_app_id)
    if current_app is None or purchased_app is None:
        return f"You have bundle access to {app_id}!"

    return (
        f"Congratulations! You unlocked {current_app.name} by purchasing "
        f"{purchased_app.name}. Enjoy your {bundle.name}!"
    )


def ensure_payable_app(app_id: str) -> None:
    """Reject payment flows for free apps before any OTP is issued."""
    if is_free_app(app_id):
        logger.warning("Payment attempted for free app %s", app_id)
        raise FreeAppPaymentError(f"{app_id} is a free app and does not require payment")
