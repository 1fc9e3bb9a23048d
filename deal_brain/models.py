"""Pydantic models for extracted deal data.

Every record is frozen: pipeline stages return updated copies instead of
mutating shared state.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class MimeClass(str, Enum):
    TABULAR = "tabular"
    NARRATIVE = "narrative"
    IMAGE_DERIVED = "image-derived"


class FieldSource(str, Enum):
    AI = "ai"
    PATTERN = "pattern"
    DERIVED = "derived"
    CALCULATED = "calculated"
    NONE = "none"


class GrowthType(str, Enum):
    LINEAR = "linear"
    COMPOUND = "compound"
    CUSTOM = "custom"


class DataSourceQuality(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SnapshotOrigin(str, Enum):
    AI = "ai"
    PATTERN = "pattern"
    NONE = "none"


class Domain(str, Enum):
    HIGH_LEVEL_PARAMETERS = "highLevelParameters"
    DEAL_ASSUMPTIONS = "dealAssumptions"
    REVENUE_ITEMS = "revenueItems"
    COST_ITEMS = "costItems"
    DEBT_MODEL = "debtModel"
    EXIT_ASSUMPTIONS = "exitAssumptions"
    MASTER_ANALYSIS = "masterAnalysis"


# Fixed output order of the six domain records
DOMAIN_ORDER: tuple[Domain, ...] = (
    Domain.HIGH_LEVEL_PARAMETERS,
    Domain.DEAL_ASSUMPTIONS,
    Domain.REVENUE_ITEMS,
    Domain.COST_ITEMS,
    Domain.DEBT_MODEL,
    Domain.EXIT_ASSUMPTIONS,
)


class DocumentText(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source_name: str
    mime_class: MimeClass = MimeClass.NARRATIVE
    content: str = ""


class ExtractedField(BaseModel):
    """A single extracted value with its confidence and provenance.

    ``value=None`` with ``source=none`` and ``confidence=0`` means "not found".
    ``raw`` keeps the matched source text, ``error`` carries a standardization
    failure annotation.
    """

    model_config = ConfigDict(frozen=True)

    value: Any = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source: FieldSource = FieldSource.NONE
    raw: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_presence(self) -> "ExtractedField":
        if self.value is None and self.source != FieldSource.NONE:
            raise ValueError(f"field with source={self.source.value} must carry a value")
        if self.value is not None and self.source == FieldSource.NONE:
            raise ValueError("field with a value must declare its source")
        if self.source == FieldSource.NONE and self.confidence != 0.0:
            raise ValueError("missing field must have zero confidence")
        return self

    @classmethod
    def missing(cls) -> "ExtractedField":
        return cls()

    @property
    def found(self) -> bool:
        return self.value is not None

    def with_confidence(self, confidence: float) -> "ExtractedField":
        if not self.found:
            return self
        return self.model_copy(update={"confidence": min(1.0, max(0.0, confidence))})


class LineItem(BaseModel):
    """One revenue stream, operating expense or capital expense."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    value: float
    growth_type: GrowthType = GrowthType.CUSTOM
    growth_rate: float | None = None
    category: str = "other"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    source: FieldSource = FieldSource.PATTERN
    is_fixed: bool | None = None
    depreciation_years: int | None = None


class DomainRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: Domain
    fields: dict[str, ExtractedField] = Field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @classmethod
    def empty(cls, domain: Domain, names) -> "DomainRecord":
        return cls(domain=domain, fields={name: ExtractedField.missing() for name in names})

    def get(self, name: str) -> ExtractedField:
        return self.fields.get(name, ExtractedField.missing())

    def value(self, name: str) -> Any:
        return self.get(name).value

    def with_field(self, name: str, field: ExtractedField) -> "DomainRecord":
        return self.model_copy(update={"fields": {**self.fields, name: field}})

    def with_warning(self, message: str) -> "DomainRecord":
        return self.model_copy(update={"warnings": (*self.warnings, message)})


class StandardizedRecord(DomainRecord):
    standardized_at: datetime
    target_currency: str
    version: str = "1.0"

    def to_form_values(self) -> dict[str, Any]:
        """Flat ``{fieldName: value}`` mapping for form population."""
        values: dict[str, Any] = {}
        for name, field in self.fields.items():
            if isinstance(field.value, list):
                values[name] = [
                    item.model_dump(mode="json") if isinstance(item, BaseModel) else item
                    for item in field.value
                ]
            else:
                values[name] = field.value
        return values

    def confidence_metadata(self) -> dict[str, dict[str, Any]]:
        return {
            name: {
                "confidence": round(field.confidence, 3),
                "source": field.source.value,
                **({"error": field.error} if field.error else {}),
            }
            for name, field in self.fields.items()
        }


# --- Master snapshot -------------------------------------------------------


def _loose_number(v: Any) -> Any:
    """Parse "50,000,000" or "$50000000" style strings; unparseable text becomes None."""
    if isinstance(v, str):
        cleaned = re.sub(r"[\$€£¥,%\s]", "", v)
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return v


class _Section(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def has_data(self) -> bool:
        for value in self.__dict__.values():
            if value not in (None, "", [], {}):
                return True
        return False


class CompanyOverview(_Section):
    company_name: str | None = None
    industry: str | None = None
    business_description: str | None = None
    key_business_metrics: Any = None


class TransactionDetails(_Section):
    deal_name: str | None = None
    deal_value: float | None = None
    currency: str | None = None
    transaction_type: str | None = None
    transaction_fees: float | None = None
    closing_date: str | None = None
    expected_exit_date: str | None = None

    @field_validator("deal_value", "transaction_fees", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> Any:
        return _loose_number(v)


class FinancingStructure(_Section):
    total_deal_value: float | None = None
    debt_ltv: float | None = Field(default=None, alias="debtLTV")
    equity_contribution: float | None = None
    debt_financing: float | None = None
    interest_rate: float | None = None
    loan_terms: Any = None

    @field_validator(
        "total_deal_value", "debt_ltv", "equity_contribution", "debt_financing", "interest_rate",
        mode="before",
    )
    @classmethod
    def _numbers(cls, v: Any) -> Any:
        return _loose_number(v)


class HistoricalFinancials(_Section):
    base_year: Any = None
    revenue_streams: list[Any] | None = None
    operating_expenses: list[Any] | None = None
    capital_expenses: list[Any] | None = None


class ProjectionAssumptions(_Section):
    projection_period: Any = None
    reporting_frequency: str | None = None
    key_growth_drivers: Any = None
    market_assumptions: Any = None
    risk_factors: Any = None


class ExitSnapshot(_Section):
    exit_strategy: str | None = None
    exit_multiple: float | None = None
    terminal_value: float | None = None
    disposal_costs: float | None = None
    expected_irr: float | None = Field(default=None, alias="expectedIRR")
    holding_period_years: float | None = None

    @field_validator(
        "exit_multiple", "terminal_value", "disposal_costs", "expected_irr", "holding_period_years",
        mode="before",
    )
    @classmethod
    def _numbers(cls, v: Any) -> Any:
        return _loose_number(v)


class KeyMetrics(_Section):
    current_ebitda: float | None = Field(default=None, alias="currentEBITDA")
    ebitda_margin: float | None = Field(default=None, alias="EBITDAMargin")
    current_revenue: float | None = None
    revenue_growth_rate: float | None = None
    payback_period: float | None = None

    @field_validator(
        "current_ebitda", "ebitda_margin", "current_revenue", "revenue_growth_rate", "payback_period",
        mode="before",
    )
    @classmethod
    def _numbers(cls, v: Any) -> Any:
        return _loose_number(v)


class DataQuality(_Section):
    overall_confidence: float = 0.0
    missing_critical_data: list[str] = Field(default_factory=list)
    assumptions: list[str] = Field(default_factory=list)
    data_source_quality: DataSourceQuality = DataSourceQuality.LOW

    @field_validator("overall_confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, v: Any) -> float:
        if v is None:
            return 0.0
        v = float(v)
        # Some models report 0-100 instead of 0-1
        if v > 1.0:
            v = v / 100.0
        return min(1.0, max(0.0, v))

    @field_validator("missing_critical_data", "assumptions", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("data_source_quality", mode="before")
    @classmethod
    def _lower_quality(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in {q.value for q in DataSourceQuality}:
            return v.strip().lower()
        if isinstance(v, DataSourceQuality):
            return v
        return DataSourceQuality.LOW


class MasterSnapshot(_Section):
    """Coarse cross-domain view of the deal, used as a hint by the extractors."""

    company_overview: CompanyOverview = Field(default_factory=CompanyOverview)
    transaction_details: TransactionDetails = Field(default_factory=TransactionDetails)
    financing_structure: FinancingStructure = Field(default_factory=FinancingStructure)
    historical_financials: HistoricalFinancials = Field(default_factory=HistoricalFinancials)
    projection_assumptions: ProjectionAssumptions = Field(default_factory=ProjectionAssumptions)
    exit_assumptions: ExitSnapshot = Field(default_factory=ExitSnapshot)
    key_metrics: KeyMetrics = Field(default_factory=KeyMetrics)
    data_quality: DataQuality = Field(default_factory=DataQuality)
    origin: SnapshotOrigin = SnapshotOrigin.NONE

    @field_validator(
        "company_overview", "transaction_details", "financing_structure",
        "historical_financials", "projection_assumptions", "exit_assumptions",
        "key_metrics", "data_quality",
        mode="before",
    )
    @classmethod
    def _none_section(cls, v: Any) -> Any:
        return {} if v is None else v

    @classmethod
    def empty(cls) -> "MasterSnapshot":
        return cls()

    def is_empty(self) -> bool:
        sections = (
            self.company_overview, self.transaction_details, self.financing_structure,
            self.historical_financials, self.projection_assumptions,
            self.exit_assumptions, self.key_metrics,
        )
        return not any(section.has_data() for section in sections)

    @property
    def overall_confidence(self) -> float:
        return self.data_quality.overall_confidence


# --- Pipeline output -------------------------------------------------------


class ExtractionResult(BaseModel):
    snapshot: MasterSnapshot
    records: list[StandardizedRecord]
    processing_time_ms: int
    warnings: list[str] = []

    def record(self, domain: Domain) -> StandardizedRecord:
        for rec in self.records:
            if rec.domain == domain:
                return rec
        raise KeyError(domain.value)


class DomainResponse(BaseModel):
    values: dict[str, Any]
    confidence: dict[str, dict[str, Any]]
    warnings: list[str] = []
    standardized_at: datetime
    target_currency: str
    version: str


class ExtractionResponse(BaseModel):
    domains: dict[str, DomainResponse]
    snapshot: dict[str, Any]
    warnings: list[str] = []
    processing_time_ms: int

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractionResponse":
        return cls(
            domains={
                rec.domain.value: DomainResponse(
                    values=rec.to_form_values(),
                    confidence=rec.confidence_metadata(),
                    warnings=list(rec.warnings),
                    standardized_at=rec.standardized_at,
                    target_currency=rec.target_currency,
                    version=rec.version,
                )
                for rec in result.records
            },
            snapshot=result.snapshot.model_dump(mode="json", by_alias=True),
            warnings=result.warnings,
            processing_time_ms=result.processing_time_ms,
        )
