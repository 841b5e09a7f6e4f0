"""Access-control schemas."""
from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime

from src.models.enums import GrantedVia


class EntitlementRecord(BaseModel):
    """A user's grant for one app, as read by access decisions."""
    model_config = ConfigDict(from_attributes=True)

    app_id: str
    is_active: bool = True
    expires_at: Optional[datetime] = None
    granted_via: GrantedVia = GrantedVia.payment


class UserAccess(BaseModel):
    """A user together with their entitlement records."""
    id: Optional[str] = None
    entitlements: List[EntitlementRecord] = []


class BundleAccess(BaseModel):
    id: str
    name: str
    apps: List[str]
    purchased_app: Optional[str] = None
    unlocked_apps: List[str] = []


class AccessStatus(BaseModel):
    free_apps: List[str]
    accessible_apps: List[str]
    bundle_access: Dict[str, BundleAccess] = {}
    total_access: int


class BundleGrantResult(BaseModel):
    user_id: str
    purchased_app: str
    bundled_apps: List[str]
    unlocked_apps: List[str]


class AppAccessResponse(BaseModel):
    user_id: str
    app_id: str
    has_access: bool
    via_bundle: bool
    requires_payment: bool
    message: str = ""


class AccessStatsResponse(BaseModel):
    total: int
    by_grant_type: Dict[str, int]
    by_app: Dict[str, int]
