"""Currency, project dates and model periodicity."""

import logging

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.base import DomainExtractor
from deal_brain.models import Domain, DomainRecord, ExtractedField
from deal_brain.scoring import penalize
from deal_brain.standardizer import StandardizationFailure, normalize_enum, standardize_date

logger = logging.getLogger(__name__)


def parse_date(value) -> str | None:
    """ISO form of ``value``, or None when it is not a recognisable date."""
    if value is None:
        return None
    try:
        return standardize_date(value)
    except StandardizationFailure:
        return None


class HighLevelParametersExtractor(DomainExtractor):
    domain = Domain.HIGH_LEVEL_PARAMETERS
    field_names = ("currency", "projectStartDate", "projectEndDate", "modelPeriods")
    snapshot_hints = {
        "currency": (("transaction_details", "currency"),),
        "projectStartDate": (("transaction_details", "closing_date"),),
        "projectEndDate": (("transaction_details", "expected_exit_date"),),
        "modelPeriods": (("projection_assumptions", "reporting_frequency"),),
    }

    def post_match(self, name: str, field: ExtractedField) -> ExtractedField:
        if name in ("currency", "modelPeriods"):
            try:
                return field.model_copy(update={"value": normalize_enum(name, field.value)})
            except StandardizationFailure:
                return field
        return field

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        start = parse_date(record.value("projectStartDate"))
        end = parse_date(record.value("projectEndDate"))
        if start and end and end <= start:
            logger.debug("Project dates out of order: start=%s end=%s", start, end)
            record = penalize(
                record,
                ["projectStartDate", "projectEndDate"],
                f"Project end date {end} is not after start date {start}",
            )
        return record
