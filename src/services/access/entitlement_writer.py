"""Entitlement writer.

Write side of access control: turns a completed purchase into one
`user_app_access` row per app it unlocks. Access decisions never call this.
"""
import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from src.core.registry import get_apps_to_unlock
from src.models.app_access import UserAppAccess
from src.models.base import utcnow
from src.models.enums import GrantedVia
from src.repositories.app_access_repo import AppAccessRepository
from src.schemas.access import (
    AccessStatsResponse,
    AccessStatus,
    BundleGrantResult,
    EntitlementRecord,
    UserAccess,
)
from .access_control import get_access_status

logger = logging.getLogger(__name__)


class EntitlementWriter:
    """Grant, revoke and read per-user app entitlements."""

    def __init__(self, db: Session):
        self.repo = AppAccessRepository(db)

    def grant_app_access(
        self,
        user_id: str,
        app_id: str,
        granted_via: GrantedVia,
        payment_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> UserAppAccess:
        access = self.repo.upsert(user_id, app_id, granted_via, payment_id, expires_at, commit=commit)
        logger.info("Granted %s access to user %s via %s", app_id, user_id, GrantedVia(granted_via).value)
        return access

    def grant_bundle_access(
        self,
        user_id: str,
        purchased_app_id: str,
        payment_id: Optional[str] = None,
        commit: bool = True,
    ) -> BundleGrantResult:
        """
        Grant perpetual access to every app a purchase unlocks.

        The purchased app is recorded as `payment`, its bundle-mates as `bundle`.
        All rows are written in one transaction; with `commit=False` the
        caller owns it.
        """
        apps_to_unlock = sorted(get_apps_to_unlock(purchased_app_id))
        for app_id in apps_to_unlock:
            granted_via = GrantedVia.payment if app_id == purchased_app_id else GrantedVia.bundle
            self.grant_app_access(user_id, app_id, granted_via, payment_id=payment_id, commit=False)
        if commit:
            self.repo.commit()

        unlocked = [app_id for app_id in apps_to_unlock if app_id != purchased_app_id]
        logger.info("Bundle access granted: %s for user %s", ", ".join(apps_to_unlock), user_id)
        return BundleGrantResult(
            user_id=user_id,
            purchased_app=purchased_app_id,
            bundled_apps=apps_to_unlock,
            unlocked_apps=unlocked,
        )

    def revoke_app_access(self, user_id: str, app_id: str, reason: str = "manual") -> bool:
        revoked = self.repo.deactivate(user_id, app_id, reason) > 0
        if revoked:
            logger.info("Revoked %s access for user %s (reason: %s)", app_id, user_id, reason)
        return revoked

    def get_user_with_access(self, user_id: str, now: Optional[datetime] = None) -> UserAccess:
        rows = self.repo.list_live_for_user(user_id, now or utcnow())
        return UserAccess(
            id=user_id,
            entitlements=[EntitlementRecord.model_validate(row) for row in rows],
        )

    def get_user_apps(self, user_id: Optional[str], now: Optional[datetime] = None) -> AccessStatus:
        if not user_id:
            return get_access_status(None, now)
        return get_access_status(self.get_user_with_access(user_id, now), now)

    def get_access_stats(self, app_id: Optional[str] = None) -> AccessStatsResponse:
        rows = self.repo.list_active(app_id)
        by_grant_type = Counter(GrantedVia(row.granted_via).value for row in rows)
        by_app = Counter(row.app_id for row in rows)
        return AccessStatsResponse(
            total=len(rows),
            by_grant_type=dict(by_grant_type),
            by_app=dict(by_app),
        )
