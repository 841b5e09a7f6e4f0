"""
App registry.

Static catalogue of every app on the platform: whether it is free or paid,
and which paid apps are sold together as a bundle. This is the single source
of truth for access-control decisions and is read-only after import.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from src.models.enums import AccessTier

logger = logging.getLogger(__name__)


class RegistryError(ValueError):
    """Raised when the static app catalogue violates its invariants."""


@dataclass(frozen=True)
class Price:
    """Amounts in paisa, GST inclusive."""
    introductory: int
    regular: int


@dataclass(frozen=True)
class AppDescriptor:
    id: str
    name: str
    access_tier: AccessTier
    bundle_id: Optional[str] = None
    price: Optional[Price] = None


@dataclass(frozen=True)
class Bundle:
    id: str
    name: str
    member_app_ids: FrozenSet[str]
    price: Price
    description: str = ""
    features: Tuple[str, ...] = field(default_factory=tuple)
    highlight: str = ""


# ---------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------

STANDARD_PRICE = Price(introductory=11682, regular=35282)  # Rs 99 / Rs 299 + 18% GST

_BUNDLES: List[Bundle] = [
    Bundle(
        id="ai-developer-bundle",
        name="AI + Developer Bundle",
        description="Learn AI and Learn Developer - Two Apps for the Price of One",
        member_app_ids=frozenset({"learn-ai", "learn-developer"}),
        price=STANDARD_PRICE,
        features=(
            "Complete Learn AI course access",
            "Complete Learn Developer course access",
            "Shared progress tracking",
            "Universal certification",
            "Mentor Mode unlock at 30% completion",
        ),
        highlight="Special Offer: Get BOTH courses for the price of one!",
    ),
]

_APPS: List[AppDescriptor] = [
    AppDescriptor("main", "iiskills.cloud", AccessTier.paid, price=STANDARD_PRICE),
    AppDescriptor("learn-ai", "Learn-AI", AccessTier.paid, bundle_id="ai-developer-bundle"),
    AppDescriptor("learn-apt", "Learn-Apt", AccessTier.free),
    AppDescriptor("learn-chemistry", "Learn-Chemistry", AccessTier.free),
    AppDescriptor("learn-developer", "Learn-Developer", AccessTier.paid, bundle_id="ai-developer-bundle"),
    AppDescriptor("learn-geography", "Learn-Geography", AccessTier.free),
    AppDescriptor("learn-management", "Learn-Management", AccessTier.paid, price=STANDARD_PRICE),
    AppDescriptor("learn-math", "Learn-Math", AccessTier.free),
    AppDescriptor("learn-physics", "Learn-Physics", AccessTier.free),
    AppDescriptor("learn-pr", "Learn-PR", AccessTier.paid, price=STANDARD_PRICE),
]


def build_registry(
    apps: List[AppDescriptor],
    bundles: List[Bundle],
) -> Tuple[Dict[str, AppDescriptor], Dict[str, Bundle]]:
    """
    Index apps and bundles by id, checking catalogue invariants.

    Raises:
        RegistryError: on duplicate ids, a free app carrying a bundle or price,
            a bundle with fewer than two members, or membership that does not
            agree between the app and the bundle.
    """
    app_index: Dict[str, AppDescriptor] = {}
    for app in apps:
        if app.id in app_index:
            raise RegistryError(f"Duplicate app id: {app.id}")
        if app.access_tier == AccessTier.free and (app.bundle_id is not None or app.price is not None):
            raise RegistryError(f"Free app {app.id} cannot have a bundle or a price")
        app_index[app.id] = app

    bundle_index: Dict[str, Bundle] = {}
    for bundle in bundles:
        if bundle.id in bundle_index:
            raise RegistryError(f"Duplicate bundle id: {bundle.id}")
        if len(bundle.member_app_ids) < 2:
            raise RegistryError(f"Bundle {bundle.id} needs at least two apps")
        for member_id in bundle.member_app_ids:
            member = app_index.get(member_id)
            if member is None:
                raise RegistryError(f"Bundle {bundle.id} references unknown app {member_id}")
            if member.bundle_id != bundle.id:
                raise RegistryError(f"App {member_id} is listed in {bundle.id} but points at {member.bundle_id}")
        bundle_index[bundle.id] = bundle

    for app in app_index.values():
        if app.bundle_id is None:
            continue
        bundle = bundle_index.get(app.bundle_id)
        if bundle is None or app.id not in bundle.member_app_ids:
            raise RegistryError(f"App {app.id} points at bundle {app.bundle_id} which does not list it")

    return app_index, bundle_index


APPS, BUNDLES = build_registry(_APPS, _BUNDLES)


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------

def get_app_config(app_id: str) -> Optional[AppDescriptor]:
    return APPS.get(app_id)


def get_bundle_config(bundle_id: str) -> Optional[Bundle]:
    return BUNDLES.get(bundle_id)


def get_free_apps() -> List[str]:
    return sorted(app.id for app in APPS.values() if app.access_tier == AccessTier.free)


def get_paid_apps() -> List[str]:
    return sorted(app.id for app in APPS.values() if app.access_tier == AccessTier.paid)


def is_free_app(app_id: str) -> bool:
    """True iff the app is free. Unknown apps are not free, but are not known to be paid either."""
    app = APPS.get(app_id)
    if app is None:
        logger.warning("is_free_app: unknown app %r", app_id)
        return False
    return app.access_tier == AccessTier.free


def requires_payment(app_id: str) -> bool:
    """True iff the app is paid. Unknown apps require payment (fail closed)."""
    app = APPS.get(app_id)
    if app is None:
        logger.warning("requires_payment: unknown app %r, failing closed", app_id)
        return True
    return app.access_tier == AccessTier.paid


def is_bundle_app(app_id: str) -> bool:
    app = APPS.get(app_id)
    if app is None:
        logger.warning("is_bundle_app: unknown app %r", app_id)
        return False
    return app.bundle_id is not None


def get_bundle_info(app_id: str) -> Optional[Bundle]:
    """Bundle the app belongs to, or None. All members get the same object."""
    app = APPS.get(app_id)
    if app is None or app.bundle_id is None:
        return None
    return BUNDLES.get(app.bundle_id)


def get_apps_to_unlock(app_id: str) -> FrozenSet[str]:
    """App ids a purchase of `app_id` unlocks: the whole bundle, or just itself."""
    bundle = get_bundle_info(app_id)
    if bundle is not None:
        return bundle.member_app_ids
    return frozenset({app_id})
