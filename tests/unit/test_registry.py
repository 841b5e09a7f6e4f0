import pytest

from src.core.registry import (
    APPS,
    AppDescriptor,
    Bundle,
    Price,
    RegistryError,
    build_registry,
    get_apps_to_unlock,
    get_bundle_info,
    get_free_apps,
    get_paid_apps,
    is_bundle_app,
    is_free_app,
    requires_payment,
)
from src.models.enums import AccessTier


def test_free_apps_are_free_and_not_payable():
    for app_id in get_free_apps():
        assert is_free_app(app_id)
        assert not requires_payment(app_id)
        assert not is_bundle_app(app_id)


def test_paid_apps_require_payment():
    for app_id in get_paid_apps():
        assert requires_payment(app_id)
        assert not is_free_app(app_id)


def test_unknown_app_fails_closed(caplog):
    assert requires_payment("nonexistent-app") is True
    assert is_free_app("nonexistent-app") is False
    assert is_bundle_app("nonexistent-app") is False
    assert "nonexistent-app" in caplog.text


def test_free_apps_carry_no_bundle_or_price():
    for app in APPS.values():
        if app.access_tier == AccessTier.free:
            assert app.bundle_id is None
            assert app.price is None


def test_bundle_membership_is_symmetric():
    ai = get_bundle_info("learn-ai")
    dev = get_bundle_info("learn-developer")
    assert ai is not None
    assert ai is dev
    assert ai.member_app_ids == {"learn-ai", "learn-developer"}
    assert get_apps_to_unlock("learn-ai") == get_apps_to_unlock("learn-developer")


def test_unbundled_app_unlocks_only_itself():
    assert get_bundle_info("learn-pr") is None
    assert get_apps_to_unlock("learn-pr") == {"learn-pr"}
    assert get_apps_to_unlock("nonexistent-app") == {"nonexistent-app"}


def test_bundle_includes_purchased_app():
    assert "learn-ai" in get_apps_to_unlock("learn-ai")


def test_registry_rejects_priced_free_app():
    apps = [AppDescriptor("x", "X", AccessTier.free, price=Price(1, 2))]
    with pytest.raises(RegistryError):
        build_registry(apps, [])


def test_registry_rejects_single_member_bundle():
    apps = [AppDescriptor("x", "X", AccessTier.paid, bundle_id="b")]
    bundles = [Bundle(id="b", name="B", member_app_ids=frozenset({"x"}), price=Price(1, 2))]
    with pytest.raises(RegistryError):
        build_registry(apps, bundles)


def test_registry_rejects_asymmetric_membership():
    apps = [
        AppDescriptor("x", "X", AccessTier.paid, bundle_id="b"),
        AppDescriptor("y", "Y", AccessTier.paid),
    ]
    bundles = [Bundle(id="b", name="B", member_app_ids=frozenset({"x", "y"}), price=Price(1, 2))]
    with pytest.raises(RegistryError):
        build_registry(apps, bundles)
