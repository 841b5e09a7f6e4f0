from datetime import timedelta

import pytest

from src.models import UserAppAccess, GrantedVia, utcnow
from src.services.access import EntitlementWriter, user_has_access


@pytest.fixture
def writer(db_session):
    return EntitlementWriter(db_session)


def test_bundle_purchase_unlocks_both_apps(writer, db_session):
    result = writer.grant_bundle_access("user-1", "learn-ai", payment_id="pay_1")

    assert result.bundled_apps == ["learn-ai", "learn-developer"]
    assert result.unlocked_apps == ["learn-developer"]

    rows = {row.app_id: row for row in db_session.query(UserAppAccess).all()}
    assert rows["learn-ai"].granted_via == GrantedVia.payment
    assert rows["learn-developer"].granted_via == GrantedVia.bundle
    assert rows["learn-ai"].payment_id == "pay_1"

    user = writer.get_user_with_access("user-1")
    assert user_has_access(user, "learn-ai")
    assert user_has_access(user, "learn-developer")
    assert not user_has_access(user, "learn-pr")


def test_unbundled_purchase_unlocks_one_app(writer, db_session):
    result = writer.grant_bundle_access("user-1", "learn-pr")
    assert result.bundled_apps == ["learn-pr"]
    assert result.unlocked_apps == []
    assert db_session.query(UserAppAccess).count() == 1


def test_regrant_reactivates_single_row(writer, db_session):
    writer.grant_app_access("user-1", "learn-pr", GrantedVia.payment)
    assert writer.revoke_app_access("user-1", "learn-pr", reason="refund") is True
    assert not user_has_access(writer.get_user_with_access("user-1"), "learn-pr")

    writer.grant_app_access("user-1", "learn-pr", GrantedVia.admin)
    rows = db_session.query(UserAppAccess).all()
    assert len(rows) == 1
    assert rows[0].is_active is True
    assert rows[0].revoke_reason is None
    assert rows[0].granted_via == GrantedVia.admin


def test_revoke_unknown_row(writer):
    assert writer.revoke_app_access("user-1", "learn-pr") is False


def test_expired_rows_are_not_loaded(writer):
    writer.grant_app_access(
        "user-1", "learn-pr", GrantedVia.admin, expires_at=utcnow() - timedelta(days=1)
    )
    user = writer.get_user_with_access("user-1")
    assert user.entitlements == []


def test_user_apps(writer):
    writer.grant_bundle_access("user-1", "learn-developer")
    status = writer.get_user_apps("user-1")
    bundle = status.bundle_access["ai-developer-bundle"]
    assert bundle.purchased_app == "learn-developer"
    assert bundle.unlocked_apps == ["learn-ai"]

    anonymous = writer.get_user_apps(None)
    assert anonymous.accessible_apps == anonymous.free_apps


def test_access_stats(writer):
    writer.grant_bundle_access("user-1", "learn-ai")
    writer.grant_bundle_access("user-2", "learn-pr")
    writer.revoke_app_access("user-2", "learn-pr")

    stats = writer.get_access_stats()
    assert stats.total == 2
    assert stats.by_grant_type == {"payment": 1, "bundle": 1}
    assert stats.by_app == {"learn-ai": 1, "learn-developer": 1}

    assert writer.get_access_stats("learn-ai").total == 1


def test_uncommitted_bundle_grant_rolls_back(writer, db_session):
    writer.grant_bundle_access("user-1", "learn-ai", commit=False)
    assert db_session.query(UserAppAccess).count() == 2

    db_session.rollback()
    assert db_session.query(UserAppAccess).count() == 0
