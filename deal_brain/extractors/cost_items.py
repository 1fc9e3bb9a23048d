"""Operating and capital expenses with their totals."""

import re
from typing import Any

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.line_items import LineItemExtractor
from deal_brain.models import Domain, DomainRecord
from deal_brain.pattern_rules import COST_ITEM_RANGE

_OPEX_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("personnel", ("salar", "wage", "payroll", "staff", "personnel", "employee", "benefit", "bonus")),
    ("office", ("rent", "lease", "office", "utilit", "facilit", "premises")),
    ("marketing", ("marketing", "advertis", "promotion", "brand")),
    ("professional", ("legal", "accounting", "audit", "consult", "professional", "advisory")),
    ("technology", ("software", "hosting", "cloud", "technology", "licens", "telecom", " it ")),
)

_CAPEX_CATEGORIES: tuple[tuple[str, int, tuple[str, ...]], ...] = (
    # category, estimated depreciation years, keywords
    ("technology", 3, ("computer", "hardware", "software", "it equipment", "laptop", "server")),
    ("equipment", 5, ("equipment", "machinery", "vehicle", "furniture", "tools")),
    ("property", 10, ("building", "property", "plant", "renovation", "construction", "fit-out", "fitout", "leasehold")),
)

_FIXED_KEYWORDS = ("rent", "lease", "salar", "insurance", "depreciation", "subscription", "licens", "payroll")
_VARIABLE_KEYWORDS = ("commission", "marketing", "advertis", "travel", "material", "shipping", "freight", "bonus")
_CAPEX_NAME = re.compile(
    r"capex|capital|equipment|machinery|building|property|vehicle|hardware|renovation|construction|furniture",
    re.IGNORECASE,
)


def _capex_category(name: str) -> tuple[str, int | None]:
    lowered = name.lower()
    for category, years, keywords in _CAPEX_CATEGORIES:
        if any(k in lowered for k in keywords):
            return category, years
    return "other", None


class CostItemsExtractor(LineItemExtractor):
    domain = Domain.COST_ITEMS
    field_names = (
        "operatingExpenses", "capitalExpenses", "totalOpEx",
        "totalCapEx", "costInflationRate", "costCurrency",
    )
    list_fields = ("operatingExpenses", "capitalExpenses")
    item_range = COST_ITEM_RANGE
    snapshot_hints = {
        "operatingExpenses": (("historical_financials", "operating_expenses"),),
        "capitalExpenses": (("historical_financials", "capital_expenses"),),
        "costCurrency": (("transaction_details", "currency"),),
    }

    def categorize(self, name: str, field: str) -> str:
        if field == "capitalExpenses":
            return _capex_category(name)[0]
        lowered = f" {name.lower()} "
        for category, keywords in _OPEX_CATEGORIES:
            if any(k in lowered for k in keywords):
                return category
        return "other"

    def accepts_name(self, field: str, name: str) -> bool:
        if not super().accepts_name(field, name):
            return False
        if field == "operatingExpenses":
            return not _CAPEX_NAME.search(name)
        return True

    def item_extras(self, field: str, name: str, raw: dict[str, Any]) -> dict[str, Any]:
        if field == "operatingExpenses":
            is_fixed = raw.get("isFixed")
            if not isinstance(is_fixed, bool):
                is_fixed = self._is_fixed(name)
            return {"is_fixed": is_fixed}

        years = raw.get("depreciationYears", raw.get("years"))
        try:
            years = int(float(years)) if years not in (None, "") else None
        except (TypeError, ValueError):
            years = None
        if years is None or not 1 <= years <= 50:
            years = _capex_category(name)[1]
        return {"depreciation_years": years}

    @staticmethod
    def _is_fixed(name: str) -> bool | None:
        lowered = name.lower()
        if any(k in lowered for k in _FIXED_KEYWORDS):
            return True
        if any(k in lowered for k in _VARIABLE_KEYWORDS):
            return False
        return None

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        record = self.check_total(record, "operatingExpenses", "totalOpEx")
        return self.check_total(record, "capitalExpenses", "totalCapEx")
