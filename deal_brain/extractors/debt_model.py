"""Loan terms: rates, fees, tenor, amount and structure."""

import logging

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.base import DomainExtractor, percent_field
from deal_brain.models import Domain, DomainRecord, ExtractedField, FieldSource
from deal_brain.scoring import calculated, clamp, penalize

logger = logging.getLogger(__name__)

# Allowed gap between interestRate and baseRate + creditMargin, in points
RATE_TOLERANCE = 0.5


class DebtModelExtractor(DomainExtractor):
    domain = Domain.DEBT_MODEL
    field_names = (
        "loanIssuanceFees", "interestRateType", "interestRate", "baseRate",
        "creditMargin", "loanTerm", "loanAmount", "commitmentFee",
        "prepaymentPenalty", "debtType", "debtCurrency", "amortizationType",
        "annualDebtService",
    )
    snapshot_hints = {
        "interestRate": (("financing_structure", "interest_rate"),),
        "loanAmount": (("financing_structure", "debt_financing"),),
        "debtCurrency": (("transaction_details", "currency"),),
    }

    def _is_floating(self, record: DomainRecord) -> bool:
        rate_type = record.value("interestRateType")
        if rate_type is None:
            # A base rate plus margin only exists for floating loans
            return record.get("baseRate").found and record.get("creditMargin").found
        return str(rate_type).strip().lower() in ("floating", "variable")

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        base, margin, rate = record.get("baseRate"), record.get("creditMargin"), record.get("interestRate")

        if self._is_floating(record) and base.found and margin.found:
            expected = round(base.value + margin.value, 4)
            if not rate.found:
                logger.info("Deriving interest rate %.2f%% from base rate + margin", expected)
                derived = calculated(expected, base, margin)
                rate = percent_field(expected, derived.confidence, FieldSource.CALCULATED)
                record = record.with_field("interestRate", rate)
            elif abs(rate.value - expected) > RATE_TOLERANCE:
                record = penalize(
                    record, ["interestRate"],
                    f"Interest rate {rate.value:g}% does not match base rate + margin ({expected:g}%)",
                )
                rate = record.get("interestRate")

            if not record.get("interestRateType").found:
                record = record.with_field("interestRateType", ExtractedField(
                    value="floating",
                    confidence=clamp(min(base.confidence, margin.confidence)),
                    source=FieldSource.CALCULATED,
                ))

        amount = record.get("loanAmount")
        if amount.found and rate.found and not record.get("annualDebtService").found:
            service = round(amount.value * rate.value / 100, 2)
            record = record.with_field("annualDebtService", calculated(service, amount, rate))

        return record
