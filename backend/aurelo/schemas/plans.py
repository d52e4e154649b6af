from typing import Optional

from pydantic import BaseModel


class FeatureCategoryItem(BaseModel):
    key: str
    label: str


class PlanRead(BaseModel):
    plan_key: str
    plan_name: str
    tagline: str
    price_monthly: int
    limits: dict[str, Optional[int]]
    formatted_limits: dict[str, str]
    features: dict[str, bool]
    support_tier: str
    export_formats: list[str]
    unlocks: list[FeatureCategoryItem] = []
    checkout_available: bool = False
