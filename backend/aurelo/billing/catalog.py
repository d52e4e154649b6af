from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from aurelo.core.config import settings


class PlanTier(str, Enum):
    STARTER = "starter"
    PRO = "pro"
    STUDIO = "studio"


class FeatureKey(str, Enum):
    FULL_INSIGHTS = "fullInsights"
    CLIENT_INVOICING = "clientInvoicing"
    BATCH_INVOICING = "batchInvoicing"
    RICH_NOTES = "richNotes"
    CUSTOM_CATEGORIES = "customCategories"
    INTEGRATIONS = "integrations"
    PDF_EXPORT = "pdfExport"
    ADVANCED_NOTIFICATIONS = "advancedNotifications"
    WHITE_LABEL_PORTAL = "whiteLabelPortal"
    TEAM_UTILIZATION = "teamUtilization"
    MULTI_WORKSPACE = "multiWorkspace"
    API_ACCESS = "apiAccess"
    WEBHOOKS = "webhooks"
    CUSTOM_INVOICE_TEMPLATES = "customInvoiceTemplates"


class LimitKey(str, Enum):
    SEATS = "seats"
    ACTIVE_CLIENTS = "activeClients"
    PROJECTS_PER_CLIENT = "projectsPerClient"
    DATA_RETENTION_DAYS = "dataRetentionDays"


# Ascending. Upgrade paths and "at least" checks walk this tuple.
PLAN_ORDER: tuple[PlanTier, ...] = (PlanTier.STARTER, PlanTier.PRO, PlanTier.STUDIO)

# Limits: None means unlimited.
PLAN_TIERS = {
    "starter": {
        "plan_name": "Starter",
        "tagline": "For solo freelancers getting started",
        "price_monthly": 0,
        "limits": {
            "seats": 1,
            "activeClients": 5,
            "projectsPerClient": 3,
            "dataRetentionDays": 90,
        },
        "features": {
            "fullInsights": False,
            "clientInvoicing": False,
            "batchInvoicing": False,
            "richNotes": False,
            "customCategories": False,
            "integrations": False,
            "pdfExport": False,
            "advancedNotifications": False,
            "whiteLabelPortal": False,
            "teamUtilization": False,
            "multiWorkspace": False,
            "apiAccess": False,
            "webhooks": False,
            "customInvoiceTemplates": False,
        },
    },
    "pro": {
        "plan_name": "Pro",
        "tagline": "For established freelancers and small teams",
        "price_monthly": 24,
        "limits": {
            "seats": 5,
            "activeClients": None,
            "projectsPerClient": None,
            "dataRetentionDays": None,
        },
        "features": {
            "fullInsights": True,
            "clientInvoicing": True,
            "batchInvoicing": False,
            "richNotes": True,
            "customCategories": True,
            "integrations": True,
            "pdfExport": True,
            "advancedNotifications": True,
            "whiteLabelPortal": False,
            "teamUtilization": False,
            "multiWorkspace": False,
            "apiAccess": False,
            "webhooks": False,
            "customInvoiceTemplates": False,
        },
    },
    "studio": {
        "plan_name": "Studio",
        "tagline": "For agencies and growing studios",
        "price_monthly": 59,
        "limits": {
            "seats": None,
            "activeClients": None,
            "projectsPerClient": None,
            "dataRetentionDays": None,
        },
        "features": {
            "fullInsights": True,
            "clientInvoicing": True,
            "batchInvoicing": True,
            "richNotes": True,
            "customCategories": True,
            "integrations": True,
            "pdfExport": True,
            "advancedNotifications": True,
            "whiteLabelPortal": True,
            "teamUtilization": True,
            "multiWorkspace": True,
            "apiAccess": True,
            "webhooks": True,
            "customInvoiceTemplates": True,
        },
    },
}

# Marketing groupings shown on the plan picker, keyed by the tier that unlocks them.
FEATURE_CATEGORIES = {
    PlanTier.PRO: [
        (FeatureKey.FULL_INSIGHTS, "Full insights suite"),
        (FeatureKey.CLIENT_INVOICING, "Client invoicing"),
        (FeatureKey.RICH_NOTES, "Rich notes & action items"),
        (FeatureKey.CUSTOM_CATEGORIES, "Custom work categories"),
        (FeatureKey.INTEGRATIONS, "Integrations"),
        (FeatureKey.PDF_EXPORT, "PDF & CSV export"),
        (FeatureKey.ADVANCED_NOTIFICATIONS, "Advanced notifications"),
    ],
    PlanTier.STUDIO: [
        (FeatureKey.WHITE_LABEL_PORTAL, "White-label portal"),
        (FeatureKey.TEAM_UTILIZATION, "Team utilization"),
        (FeatureKey.MULTI_WORKSPACE, "Multi-workspace"),
        (FeatureKey.BATCH_INVOICING, "Batch invoicing"),
        (FeatureKey.API_ACCESS, "API access"),
        (FeatureKey.WEBHOOKS, "Webhooks"),
        (FeatureKey.CUSTOM_INVOICE_TEMPLATES, "Custom invoice templates"),
    ],
}

SUPPORT_TIERS = {
    PlanTier.STARTER: "Email support",
    PlanTier.PRO: "Priority support",
    PlanTier.STUDIO: "Dedicated support",
}

EXPORT_FORMATS = {
    PlanTier.STARTER: ("CSV",),
    PlanTier.PRO: ("CSV", "PDF"),
    PlanTier.STUDIO: ("CSV", "PDF"),
}


@dataclass(frozen=True)
class PlanDefinition:
    tier: PlanTier
    name: str
    tagline: str
    price_monthly: int
    limits: Mapping[LimitKey, Optional[int]]
    features: Mapping[FeatureKey, bool]


def _build_definition(tier: PlanTier) -> PlanDefinition:
    raw = PLAN_TIERS[tier.value]
    limits = {key: raw["limits"].get(key.value) for key in LimitKey}
    features = {key: bool(raw["features"].get(key.value, False)) for key in FeatureKey}
    return PlanDefinition(
        tier=tier,
        name=raw["plan_name"],
        tagline=raw["tagline"],
        price_monthly=raw["price_monthly"],
        limits=MappingProxyType(limits),
        features=MappingProxyType(features),
    )


_DEFINITIONS = {tier: _build_definition(tier) for tier in PLAN_ORDER}


def normalize_plan_key(value) -> Optional[PlanTier]:
    if isinstance(value, PlanTier):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return PlanTier(value.strip().lower())
    except ValueError:
        return None


def coerce_tier(value) -> PlanTier:
    """Parse a tier, failing closed to Starter."""
    return normalize_plan_key(value) or PlanTier.STARTER


def definition_of(tier) -> PlanDefinition:
    return _DEFINITIONS[coerce_tier(tier)]


def tier_rank(tier) -> int:
    return PLAN_ORDER.index(coerce_tier(tier))


def get_plan_tiers() -> dict[str, dict[str, object]]:
    return {key: dict(value) for key, value in PLAN_TIERS.items()}


def get_plan_name(plan_key) -> Optional[str]:
    tier = normalize_plan_key(plan_key)
    if tier is None:
        return None
    return _DEFINITIONS[tier].name


def get_plan_catalog() -> dict[str, dict[str, Optional[str]]]:
    return {
        "starter": {"plan_name": "Starter", "price_id": None},
        "pro": {"plan_name": "Pro", "price_id": settings.STRIPE_PRICE_ID_PRO},
        "studio": {"plan_name": "Studio", "price_id": settings.STRIPE_PRICE_ID_STUDIO},
    }


def get_price_id(plan_key) -> Optional[str]:
    tier = normalize_plan_key(plan_key)
    entry = get_plan_catalog().get(tier.value) if tier else None
    return entry.get("price_id") if entry else None


def plan_key_from_price_id(price_id: str | None) -> Optional[PlanTier]:
    if not price_id:
        return None
    for key, entry in get_plan_catalog().items():
        if entry.get("price_id") == price_id:
            return PlanTier(key)
    return None
