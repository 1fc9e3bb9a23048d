"""Deal value, equity/debt split, LTV and transaction fees."""

import logging

from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors.base import DomainExtractor
from deal_brain.models import Domain, DomainRecord
from deal_brain.scoring import calculated, penalize, relative_gap

logger = logging.getLogger(__name__)

# |equity + debt - dealValue| / dealValue above this is inconsistent
SUM_TOLERANCE = 0.05
# |debt / dealValue - LTV| / LTV above this is inconsistent
LTV_TOLERANCE = 0.10


class DealAssumptionsExtractor(DomainExtractor):
    domain = Domain.DEAL_ASSUMPTIONS
    field_names = (
        "dealName", "dealValue", "transactionFee",
        "dealLTV", "equityContribution", "debtFinancing",
    )
    snapshot_hints = {
        "dealName": (("transaction_details", "deal_name"), ("company_overview", "company_name")),
        "dealValue": (("transaction_details", "deal_value"), ("financing_structure", "total_deal_value")),
        "transactionFee": (("transaction_details", "transaction_fees"),),
        "dealLTV": (("financing_structure", "debt_ltv"),),
        "equityContribution": (("financing_structure", "equity_contribution"),),
        "debtFinancing": (("financing_structure", "debt_financing"),),
    }

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        deal, equity, debt = record.get("dealValue"), record.get("equityContribution"), record.get("debtFinancing")

        if deal.found and equity.found and debt.found:
            if relative_gap(equity.value + debt.value, deal.value) > SUM_TOLERANCE:
                record = penalize(
                    record,
                    ["dealValue", "equityContribution", "debtFinancing"],
                    f"Equity ({equity.value:,.0f}) + debt ({debt.value:,.0f}) "
                    f"does not match deal value ({deal.value:,.0f})",
                )
            return self._check_ltv(record)

        return self._check_ltv(self.derive(record))

    def derive(self, record: DomainRecord) -> DomainRecord:
        """Fill missing members of dealValue / equity / debt / LTV from the others."""
        deal, equity, debt, ltv = (
            record.get("dealValue"), record.get("equityContribution"),
            record.get("debtFinancing"), record.get("dealLTV"),
        )

        if not deal.found and equity.found and debt.found:
            deal = calculated(equity.value + debt.value, equity, debt)
            record = record.with_field("dealValue", deal)

        # LTV only splits the deal when neither part is known
        if deal.found and ltv.found and 0 < ltv.value <= 100 and not debt.found and not equity.found:
            debt = calculated(deal.value * ltv.value / 100, deal, ltv)
            equity = calculated(deal.value * (100 - ltv.value) / 100, deal, ltv)
            record = record.with_field("debtFinancing", debt).with_field("equityContribution", equity)

        if deal.found and equity.found and not debt.found and deal.value > equity.value:
            debt = calculated(deal.value - equity.value, deal, equity)
            record = record.with_field("debtFinancing", debt)
        if deal.found and debt.found and not equity.found and deal.value > debt.value:
            equity = calculated(deal.value - debt.value, deal, debt)
            record = record.with_field("equityContribution", equity)

        if deal.found and debt.found and not ltv.found and deal.value > 0:
            record = record.with_field(
                "dealLTV", calculated(round(debt.value / deal.value * 100, 4), deal, debt),
            )

        derived = [k for k, f in record.fields.items() if f.source.value == "calculated"]
        if derived:
            logger.debug("Derived deal fields: %s", ", ".join(derived))
        return record

    def _check_ltv(self, record: DomainRecord) -> DomainRecord:
        deal, debt, ltv = record.get("dealValue"), record.get("debtFinancing"), record.get("dealLTV")
        if not (deal.found and debt.found and ltv.found) or deal.value <= 0:
            return record
        implied = debt.value / deal.value * 100
        if relative_gap(implied, ltv.value) > LTV_TOLERANCE:
            record = penalize(
                record, ["dealLTV"],
                f"LTV {ltv.value:g}% does not match debt / deal value ({implied:.1f}%)",
            )
        return record
