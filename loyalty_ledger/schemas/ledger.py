from __future__ import annotations

from loyalty_ledger.core.tier_rules import DeadlineSettings, DiscountSettings, TierSettings
from loyalty_ledger.schemas.customer import Customer, LedgerModel


class LedgerSnapshot(LedgerModel):
    """One tenant's customers and settings as loaded from a store."""

    business_name: str
    customers: tuple[Customer, ...] = ()
    tier_settings: TierSettings = TierSettings()
    discount_settings: DiscountSettings = DiscountSettings()
    deadline_settings: DeadlineSettings = DeadlineSettings()
    version: int = 0

    def find(self, mobile: str) -> Customer | None:
        for c in self.customers:
            if c.mobile == mobile:
                return c
        return None
