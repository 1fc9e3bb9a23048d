"""Revenue streams, total revenue and revenue growth."""

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.line_items import LineItemExtractor
from deal_brain.models import Domain, DomainRecord
from deal_brain.pattern_rules import REVENUE_ITEM_RANGE

_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("subscription", ("subscription", "saas", "recurring", "licens", "licenc", "membership")),
    ("service", ("service", "consulting", "support", "maintenance", "training", "commission", "advisory")),
    ("product", ("product", "hardware", "software sales", "goods", "merchandise", "sales")),
)


class RevenueItemsExtractor(LineItemExtractor):
    domain = Domain.REVENUE_ITEMS
    field_names = ("revenueItems", "totalRevenue", "revenueGrowthRate", "revenueCurrency")
    list_fields = ("revenueItems",)
    item_range = REVENUE_ITEM_RANGE
    snapshot_hints = {
        "revenueItems": (("historical_financials", "revenue_streams"),),
        "totalRevenue": (("key_metrics", "current_revenue"),),
        "revenueGrowthRate": (("key_metrics", "revenue_growth_rate"),),
        "revenueCurrency": (("transaction_details", "currency"),),
    }

    def categorize(self, name: str, field: str) -> str:
        lowered = name.lower()
        for category, keywords in _CATEGORY_KEYWORDS:
            if any(k in lowered for k in keywords):
                return category
        return "other"

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        record = self.check_total(record, "revenueItems", "totalRevenue")
        if not record.get("revenueGrowthRate").found:
            growth = self.weighted_growth(record, "revenueItems")
            if growth is not None:
                record = record.with_field("revenueGrowthRate", growth)
        return record
