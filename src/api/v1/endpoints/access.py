"""Access-control endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.app.dependencies import get_entitlement_writer
from src.core.registry import get_bundle_info, requires_payment
from src.schemas.access import AccessStatsResponse, AccessStatus, AppAccessResponse
from src.services.access import (
    EntitlementWriter,
    get_access_status,
    get_bundle_access_message,
    has_access_via_bundle,
    user_has_access,
)

router = APIRouter()


@router.get("/stats", response_model=AccessStatsResponse)
async def access_stats(
    app_id: Optional[str] = Query(None),
    writer: EntitlementWriter = Depends(get_entitlement_writer),
):
    return writer.get_access_stats(app_id)


@router.get("/{user_id}", response_model=AccessStatus)
async def user_access_status(
    user_id: str,
    writer: EntitlementWriter = Depends(get_entitlement_writer),
):
    """Every app the user can open right now."""
    return writer.get_user_apps(user_id)


@router.get("/{user_id}/{app_id}", response_model=AppAccessResponse)
async def user_app_access(
    user_id: str,
    app_id: str,
    writer: EntitlementWriter = Depends(get_entitlement_writer),
):
    """Access decision for one app, with the bundle unlock message where relevant."""
    user = writer.get_user_with_access(user_id)
    via_bundle = has_access_via_bundle(user, app_id)

    message = ""
    bundle = get_bundle_info(app_id)
    if via_bundle and bundle is not None:
        entry = get_access_status(user).bundle_access.get(bundle.id)
        if entry is not None and entry.purchased_app:
            message = get_bundle_access_message(app_id, entry.purchased_app)

    return AppAccessResponse(
        user_id=user_id,
        app_id=app_id,
        has_access=user_has_access(user, app_id),
        via_bundle=via_bundle,
        requires_payment=requires_payment(app_id),
        message=message,
    )
