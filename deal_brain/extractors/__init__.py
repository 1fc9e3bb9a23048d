"""The six domain extractors."""

from deal_brain.extractors.base import DomainExtractor
from deal_brain.extractors.cost_items import CostItemsExtractor
from deal_brain.extractors.deal_assumptions import DealAssumptionsExtractor
from deal_brain.extractors.debt_model import DebtModelExtractor
from deal_brain.extractors.exit_assumptions import ExitAssumptionsExtractor
from deal_brain.extractors.high_level import HighLevelParametersExtractor
from deal_brain.extractors.revenue_items import RevenueItemsExtractor

EXTRACTOR_CLASSES: tuple[type[DomainExtractor], ...] = (
    HighLevelParametersExtractor,
    DealAssumptionsExtractor,
    RevenueItemsExtractor,
    CostItemsExtractor,
    DebtModelExtractor,
    ExitAssumptionsExtractor,
)


def build_extractors(**kwargs) -> list[DomainExtractor]:
    """One instance of each extractor, in output order, sharing ``kwargs``."""
    return [cls(**kwargs) for cls in EXTRACTOR_CLASSES]


__all__ = [
    "CostItemsExtractor",
    "DealAssumptionsExtractor",
    "DebtModelExtractor",
    "DomainExtractor",
    "EXTRACTOR_CLASSES",
    "ExitAssumptionsExtractor",
    "HighLevelParametersExtractor",
    "RevenueItemsExtractor",
    "build_extractors",
]
