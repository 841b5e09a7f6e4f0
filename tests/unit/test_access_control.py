from datetime import datetime, timedelta

import pytest

from src.core.registry import get_free_apps
from src.models.enums import GrantedVia
from src.schemas.access import EntitlementRecord, UserAccess
from src.services.access import (
    FreeAppPaymentError,
    ensure_payable_app,
    get_access_status,
    get_bundle_access_message,
    has_access_via_bundle,
    user_has_access,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _user(*records: EntitlementRecord) -> UserAccess:
    return UserAccess(id="user-1", entitlements=list(records))


def test_free_apps_open_to_everyone():
    for app_id in get_free_apps():
        assert user_has_access(None, app_id, NOW)
        assert user_has_access(UserAccess(), app_id, NOW)
        assert user_has_access(_user(), app_id, NOW)


def test_paid_app_needs_entitlement():
    assert not user_has_access(None, "learn-ai", NOW)
    assert not user_has_access(_user(), "learn-ai", NOW)
    assert user_has_access(_user(EntitlementRecord(app_id="learn-ai")), "learn-ai", NOW)


def test_unknown_app_is_denied():
    assert not user_has_access(_user(), "nonexistent-app", NOW)


def test_entitlement_expiry():
    user = _user(EntitlementRecord(app_id="learn-pr", expires_at=NOW))
    assert user_has_access(user, "learn-pr", NOW)
    assert not user_has_access(user, "learn-pr", NOW + timedelta(seconds=1))


def test_inactive_entitlement_is_ignored():
    user = _user(EntitlementRecord(app_id="learn-pr", is_active=False))
    assert not user_has_access(user, "learn-pr", NOW)


def test_entitlement_is_per_app():
    user = _user(EntitlementRecord(app_id="learn-ai"))
    assert not user_has_access(user, "learn-developer", NOW)


def test_access_status_for_anonymous_user():
    status = get_access_status(None, NOW)
    assert status.free_apps == get_free_apps()
    assert status.accessible_apps == get_free_apps()
    assert status.bundle_access == {}
    assert status.total_access == len(get_free_apps())


def test_access_status_tracks_bundle():
    user = _user(
        EntitlementRecord(app_id="learn-ai", granted_via=GrantedVia.payment),
        EntitlementRecord(app_id="learn-developer", granted_via=GrantedVia.bundle),
        EntitlementRecord(app_id="learn-pr", expires_at=NOW - timedelta(days=1)),
    )
    status = get_access_status(user, NOW)

    assert "learn-ai" in status.accessible_apps
    assert "learn-developer" in status.accessible_apps
    assert "learn-pr" not in status.accessible_apps
    assert status.total_access == len(get_free_apps()) + 2

    bundle = status.bundle_access["ai-developer-bundle"]
    assert bundle.apps == ["learn-ai", "learn-developer"]
    assert bundle.purchased_app == "learn-ai"
    assert bundle.unlocked_apps == ["learn-developer"]


def test_has_access_via_bundle():
    user = _user(
        EntitlementRecord(app_id="learn-ai", granted_via=GrantedVia.payment),
        EntitlementRecord(app_id="learn-developer", granted_via=GrantedVia.bundle),
    )
    assert has_access_via_bundle(user, "learn-developer", NOW)
    assert not has_access_via_bundle(user, "learn-ai", NOW)
    assert not has_access_via_bundle(None, "learn-developer", NOW)


def test_bundle_access_message():
    message = get_bundle_access_message("learn-developer", "learn-ai")
    assert "Learn-Developer" in message
    assert "Learn-AI" in message
    assert "AI + Developer Bundle" in message
    assert get_bundle_access_message("learn-pr", "learn-ai") == ""


def test_free_apps_cannot_be_paid_for():
    with pytest.raises(FreeAppPaymentError):
        ensure_payable_app("learn-math")
    ensure_payable_app("learn-ai")
    ensure_payable_app("nonexistent-app")


def test_entitlements_need_an_identified_user():
    anonymous = UserAccess(
        id=None,
        entitlements=[
            EntitlementRecord(app_id="learn-ai", granted_via=GrantedVia.payment),
            EntitlementRecord(app_id="learn-developer", granted_via=GrantedVia.bundle),
        ],
    )
    assert not user_has_access(anonymous, "learn-developer", NOW)
    assert not has_access_via_bundle(anonymous, "learn-developer", NOW)

    status = get_access_status(anonymous, NOW)
    assert status.accessible_apps == get_free_apps()
    assert status.bundle_access == {}
