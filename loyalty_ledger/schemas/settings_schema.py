# loyalty_ledger/schemas/settings_schema.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from loyalty_ledger.core.tier_rules import DeadlineSettings, DiscountSettings, TierSettings


class SettingsOut(BaseModel):
    business_name: str
    tier_settings: TierSettings
    discount_settings: DiscountSettings
    deadline_settings: DeadlineSettings
    version: int


class SettingsUpdate(BaseModel):
    """Whole-object replacement per settings group; omitted groups stay as they are."""
    model_config = ConfigDict(extra="forbid")

    tier_settings: Optional[TierSettings] = None
    discount_settings: Optional[DiscountSettings] = None
    deadline_settings: Optional[DeadlineSettings] = None
