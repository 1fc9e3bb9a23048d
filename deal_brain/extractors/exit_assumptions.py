"""Exit timing, route, multiples and return targets."""

import logging
import re
from collections.abc import Callable
from datetime import date

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.base import DomainExtractor
from deal_brain.extractors.high_level import parse_date
from deal_brain.models import Domain, DomainRecord, ExtractedField
from deal_brain.pattern_rules import MULTIPLE_RANGES
from deal_brain.scoring import calculated, penalize
from deal_brain.standardizer import StandardizationFailure, normalize_enum

logger = logging.getLogger(__name__)

PAST_EXIT_FACTOR = 0.5
DAYS_PER_YEAR = 365.25

_YEAR_ONLY = re.compile(r"^(?:19|20)\d{2}$")


class ExitAssumptionsExtractor(DomainExtractor):
    domain = Domain.EXIT_ASSUMPTIONS
    field_names = (
        "disposalCost", "terminalCapRate", "exitMultiple", "exitMultipleType",
        "terminalGrowthRate", "discountRate", "expectedExitDate", "exitRoute",
        "targetIRR", "holdingPeriod", "exitValue",
    )
    snapshot_hints = {
        "disposalCost": (("exit_assumptions", "disposal_costs"),),
        "exitMultiple": (("exit_assumptions", "exit_multiple"),),
        "expectedExitDate": (("transaction_details", "expected_exit_date"),),
        "exitRoute": (("exit_assumptions", "exit_strategy"),),
        "targetIRR": (("exit_assumptions", "expected_irr"),),
        "exitValue": (("exit_assumptions", "terminal_value"),),
        "holdingPeriod": (("exit_assumptions", "holding_period_years"),),
    }

    def __init__(self, *args, today: Callable[[], date] = date.today, **kwargs):
        super().__init__(*args, **kwargs)
        self._today = today

    def post_match(self, name: str, field: ExtractedField) -> ExtractedField:
        # "exit in 2029" means the end of that year
        if name == "expectedExitDate" and _YEAR_ONLY.match(str(field.value)):
            return field.model_copy(update={"value": f"{field.value}-12-31"})
        return field

    def coerce(self, name, value, confidence, source):
        if name == "expectedExitDate" and _YEAR_ONLY.match(str(value).strip()):
            value = f"{str(value).strip()}-12-31"
        if name == "exitRoute":
            try:
                value = normalize_enum("exitRoute", value)
            except StandardizationFailure:
                logger.info("Ignoring unrecognised exit route %r", value)
                return None
        return super().coerce(name, value, confidence, source)

    def plausible_range(self, name: str, record: DomainRecord) -> tuple[float, float] | None:
        if name == "exitMultiple":
            multiple_type = record.value("exitMultipleType")
            if multiple_type is not None:
                try:
                    return MULTIPLE_RANGES[normalize_enum("exitMultipleType", multiple_type)]
                except StandardizationFailure:
                    return MULTIPLE_RANGES["other"]
        return super().plausible_range(name, record)

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        today = self._today()
        exit_date = parse_date(record.value("expectedExitDate"))

        if exit_date is not None:
            exit_day = date.fromisoformat(exit_date)
            if exit_day <= today:
                record = penalize(
                    record, ["expectedExitDate"],
                    f"Expected exit date {exit_date} is not in the future",
                    factor=PAST_EXIT_FACTOR,
                )
            elif not record.get("holdingPeriod").found:
                years = round((exit_day - today).days / DAYS_PER_YEAR, 1)
                record = record.with_field(
                    "holdingPeriod", calculated(years, record.get("expectedExitDate")),
                )

        growth, discount = record.get("terminalGrowthRate"), record.get("discountRate")
        if growth.found and discount.found and growth.value >= discount.value:
            record = penalize(
                record, ["terminalGrowthRate", "discountRate"],
                f"Terminal growth rate {growth.value:g}% is not below discount rate {discount.value:g}%",
            )
        return record
