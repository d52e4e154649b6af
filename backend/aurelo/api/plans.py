from fastapi import APIRouter

from aurelo.billing.catalog import (
    EXPORT_FORMATS,
    FEATURE_CATEGORIES,
    PLAN_ORDER,
    SUPPORT_TIERS,
    definition_of,
    get_price_id,
)
from aurelo.entitlements.resolver import format_limit
from aurelo.schemas.plans import FeatureCategoryItem, PlanRead


router = APIRouter(tags=["plans"])


@router.get("/plans", response_model=list[PlanRead])
def list_plans():
    plans = []
    for tier in PLAN_ORDER:
        definition = definition_of(tier)
        plans.append(
            PlanRead(
                plan_key=tier.value,
                plan_name=definition.name,
                tagline=definition.tagline,
                price_monthly=definition.price_monthly,
                limits={key.value: value for key, value in definition.limits.items()},
                formatted_limits={
                    key.value: format_limit(value) for key, value in definition.limits.items()
                },
                features={key.value: enabled for key, enabled in definition.features.items()},
                support_tier=SUPPORT_TIERS[tier],
                export_formats=list(EXPORT_FORMATS[tier]),
                unlocks=[
                    FeatureCategoryItem(key=key.value, label=label)
                    for key, label in FEATURE_CATEGORIES.get(tier, [])
                ],
                checkout_available=bool(get_price_id(tier)),
            )
        )
    return plans
