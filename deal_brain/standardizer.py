"""Unit and format normalization for extracted records.

Representation changes only: ISO dates, target-currency amounts, 0-100
percentages, absolute magnitudes and canonical enum spellings. A value that
cannot be normalized keeps its original form and gets an ``error``
annotation; nothing here raises to the caller of ``DataStandardizer``.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any

from dateutil import parser as date_parser

from deal_brain.models import (
    DomainRecord,
    ExtractedField,
    FieldSource,
    GrowthType,
    LineItem,
    StandardizedRecord,
)
from deal_brain.patterns import MULTIPLIERS

logger = logging.getLogger(__name__)

STANDARD_VERSION = "1.0"

# Units of currency per 1 USD
CURRENCY_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "JPY": 110.0,
    "CAD": 1.25,
    "AUD": 1.35,
    "CHF": 0.92,
    "CNY": 6.45,
}

FIELD_TYPES: dict[str, str] = {
    # dates
    "projectStartDate": "date",
    "projectEndDate": "date",
    "expectedExitDate": "date",
    # money, converted to the target currency
    "dealValue": "currency",
    "equityContribution": "currency",
    "debtFinancing": "currency",
    "totalRevenue": "currency",
    "totalOpEx": "currency",
    "totalCapEx": "currency",
    "loanAmount": "currency",
    "annualDebtService": "currency",
    "exitValue": "currency",
    # percentages on the 0-100 scale
    "transactionFee": "percentage",
    "dealLTV": "percentage",
    "revenueGrowthRate": "percentage",
    "costInflationRate": "percentage",
    "loanIssuanceFees": "percentage",
    "interestRate": "percentage",
    "baseRate": "percentage",
    "creditMargin": "percentage",
    "commitmentFee": "percentage",
    "prepaymentPenalty": "percentage",
    "disposalCost": "percentage",
    "terminalCapRate": "percentage",
    "terminalGrowthRate": "percentage",
    "discountRate": "percentage",
    "targetIRR": "percentage",
    # plain numbers
    "loanTerm": "number",
    "holdingPeriod": "number",
    "exitMultiple": "number",
    # line items
    "revenueItems": "array",
    "operatingExpenses": "array",
    "capitalExpenses": "array",
    # categorical
    "currency": "enum",
    "revenueCurrency": "enum",
    "costCurrency": "enum",
    "debtCurrency": "enum",
    "modelPeriods": "enum",
    "interestRateType": "enum",
    "debtType": "enum",
    "amortizationType": "enum",
    "exitMultipleType": "enum",
    "exitRoute": "enum",
    # free text
    "dealName": "text",
}

CURRENCY_FIELDS = ("currency", "revenueCurrency", "costCurrency", "debtCurrency")

ENUM_VALUES: dict[str, set[str]] = {
    "modelPeriods": {"daily", "monthly", "quarterly", "yearly"},
    "interestRateType": {"fixed", "floating"},
    "debtType": {"senior", "subordinated", "revolving", "term"},
    "amortizationType": {"bullet", "linear", "custom"},
    "exitMultipleType": {"EV/EBITDA", "P/E", "EV/Revenue", "other"},
    "exitRoute": {"IPO", "trade_sale", "secondary_buyout", "management_buyout", "refinancing"},
}

_ENUM_ALIASES: dict[str, dict[str, str]] = {
    "modelPeriods": {
        "annual": "yearly", "annually": "yearly", "year": "yearly", "years": "yearly",
        "month": "monthly", "months": "monthly",
        "quarter": "quarterly", "quarters": "quarterly",
        "day": "daily", "days": "daily",
    },
    "interestRateType": {"variable": "floating", "float": "floating", "floating rate": "floating", "fixed rate": "fixed"},
    "debtType": {"mezzanine": "subordinated", "junior": "subordinated", "revolver": "revolving", "rcf": "revolving", "term loan": "term"},
    "amortizationType": {"straight-line": "linear", "straight line": "linear", "amortizing": "linear", "balloon": "bullet"},
    "exitMultipleType": {
        "ev/ebitda": "EV/EBITDA", "ebitda": "EV/EBITDA",
        "p/e": "P/E", "pe": "P/E", "price/earnings": "P/E",
        "ev/revenue": "EV/Revenue", "ev/sales": "EV/Revenue", "revenue": "EV/Revenue",
    },
    "exitRoute": {
        "ipo": "IPO", "initial public offering": "IPO",
        "trade sale": "trade_sale", "strategic sale": "trade_sale",
        "secondary buyout": "secondary_buyout", "secondary sale": "secondary_buyout", "sbo": "secondary_buyout",
        "management buyout": "management_buyout", "mbo": "management_buyout",
        "refinance": "refinancing", "recapitalization": "refinancing",
    },
}

_CURRENCY_ALIASES: dict[str, str] = {
    "$": "USD", "US$": "USD", "DOLLAR": "USD", "DOLLARS": "USD", "US DOLLARS": "USD",
    "€": "EUR", "EURO": "EUR", "EUROS": "EUR",
    "£": "GBP", "POUND": "GBP", "POUNDS": "GBP", "STERLING": "GBP",
    "¥": "JPY", "YEN": "JPY",
}

_MONTH_NUMBERS: dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ][\d:.]+(?:Z|[+-]\d{2}:?\d{2})?)?$")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2}|\d{4})$")
_MONTH_DAY_YEAR = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]+)\.?,?\s+(\d{4})$")
_MAGNITUDE_NUMBER = re.compile(
    r"^([-+]?(?:\d[\d,]*(?:\.\d+)?|\.\d+))\s*(billion|bn|million|mn|mm|thousand|[bmk])?\.?$",
    re.IGNORECASE,
)
_CURRENCY_NOISE = re.compile(r"[$€£¥]|\b(?:USD|EUR|GBP|JPY|CAD|AUD|CHF|CNY)\b", re.IGNORECASE)
# Sentinels for spotting date parts dateutil filled in itself
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2004, 12, 28)


class StandardizationFailure(ValueError):
    """A value could not be normalized to its canonical representation."""


# --- Scalar conversions ------------------------------------------------------


def _month_number(name: str) -> int:
    number = _MONTH_NUMBERS.get(name[:3].lower())
    if number is None:
        raise ValueError(f"unknown month: {name}")
    return number


def _full_year(year: str) -> int:
    y = int(year)
    if len(year) == 2:
        return 2000 + y if y < 70 else 1900 + y
    return y


def standardize_date(value: Any) -> str:
    """Return ``value`` as an ISO ``YYYY-MM-DD`` string.

    Numeric slash/dash/dot dates are read month-first; a first component
    greater than 12 must be the day, so day and month are swapped.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        raise StandardizationFailure("no date value")

    text = str(value).strip()

    m = _ISO_DATE.match(text)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3))).isoformat()
        except ValueError:
            pass

    m = _NUMERIC_DATE.match(text)
    if m:
        first, second, year = int(m.group(1)), int(m.group(2)), _full_year(m.group(3))
        month, day = first, second
        if first > 12:
            month, day = second, first
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            pass

    m = _MONTH_DAY_YEAR.match(text)
    if m:
        try:
            return date(int(m.group(3)), _month_number(m.group(1)), int(m.group(2))).isoformat()
        except ValueError:
            pass

    m = _DAY_MONTH_YEAR.match(text)
    if m:
        try:
            return date(int(m.group(3)), _month_number(m.group(2)), int(m.group(1))).isoformat()
        except ValueError:
            pass

    # Generic parse, but only when a full year is present. Parsing against two
    # different defaults exposes any day or month the text does not state.
    if re.search(r"\d{4}", text):
        try:
            first = date_parser.parse(text, default=_DEFAULT_A, fuzzy=False).date()
            second = date_parser.parse(text, default=_DEFAULT_B, fuzzy=False).date()
        except (ValueError, OverflowError) as e:
            raise StandardizationFailure(f"unparseable date: {text!r}") from e
        if first != second:
            raise StandardizationFailure(f"incomplete date: {text!r}")
        return first.isoformat()

    raise StandardizationFailure(f"unparseable date: {text!r}")


def standardize_number(value: Any) -> float:
    """Parse a magnitude: ``"2.5 million"`` -> 2500000.0, ``"150k"`` -> 150000.0."""
    if isinstance(value, bool):
        raise StandardizationFailure(f"not a number: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        raise StandardizationFailure("no numeric value")

    text = _CURRENCY_NOISE.sub("", str(value)).strip().rstrip("%").strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1].strip()

    m = _MAGNITUDE_NUMBER.match(text)
    if not m:
        raise StandardizationFailure(f"not a number: {value!r}")

    number = float(m.group(1).replace(",", ""))
    unit = m.group(2)
    if unit:
        number *= MULTIPLIERS[unit.lower()]
    return -number if negative else number


def to_number(value: Any) -> float | None:
    """Non-raising variant of ``standardize_number``."""
    try:
        return standardize_number(value)
    except StandardizationFailure:
        return None


def standardize_percentage(value: Any, already_scaled: bool = False) -> float:
    """Return a percentage on the 0-100 scale.

    Numbers below 1 are fractions and get multiplied by 100 unless
    ``already_scaled`` says the value was read from a percent-scale source.
    A string with a literal ``%`` is always on the 0-100 scale.
    """
    if isinstance(value, str):
        text = value.strip()
        if "%" in text:
            number = standardize_number(text.replace("%", ""))
            return round(number, 6)
        value = standardize_number(text)
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StandardizationFailure(f"not a percentage: {value!r}")

    number = float(value)
    if not already_scaled and abs(number) < 1:
        number *= 100
    return round(number, 6)


def convert_currency(amount: float, from_currency: str, to_currency: str, rates: dict[str, float] | None = None) -> float:
    rates = rates or CURRENCY_RATES
    source = (from_currency or "").upper()
    target = (to_currency or "").upper()
    if source == target:
        return amount
    if source not in rates or target not in rates:
        raise StandardizationFailure(f"no exchange rate for {source}->{target}")
    return amount * rates[target] / rates[source]


def standardize_currency(value: Any, from_currency: str, to_currency: str, rates: dict[str, float] | None = None) -> float:
    return convert_currency(standardize_number(value), from_currency, to_currency, rates)


def normalize_currency_code(value: Any) -> str:
    text = str(value).strip().upper()
    text = _CURRENCY_ALIASES.get(text, text)
    if text not in CURRENCY_RATES:
        raise StandardizationFailure(f"unknown currency: {value!r}")
    return text


def normalize_growth_type(value: Any) -> GrowthType:
    if isinstance(value, GrowthType):
        return value
    text = str(value or "").strip().lower()
    if text in ("linear", "flat"):
        return GrowthType.LINEAR
    if text in ("compound", "annual", "exponential"):
        return GrowthType.COMPOUND
    return GrowthType.CUSTOM


def normalize_enum(name: str, value: Any) -> str:
    """Canonical spelling for a categorical field."""
    if name in CURRENCY_FIELDS:
        return normalize_currency_code(value)

    allowed = ENUM_VALUES.get(name)
    if allowed is None:
        return str(value).strip()

    text = str(value).strip()
    if text in allowed:
        return text
    key = " ".join(text.lower().replace("_", " ").split())
    alias = _ENUM_ALIASES.get(name, {}).get(key)
    if alias:
        return alias
    for option in allowed:
        if option.lower() == key or option.lower().replace("_", " ") == key:
            return option
    if name == "exitMultipleType":
        return "other"
    raise StandardizationFailure(f"unexpected {name} value: {value!r}")


# --- Record level ------------------------------------------------------------


class DataStandardizer:
    """Applies the per-field conversions to a whole domain record."""

    def __init__(self, rates: dict[str, float] | None = None):
        self._rates = rates or CURRENCY_RATES

    def standardize(
        self,
        record: DomainRecord,
        target_currency: str,
        source_currency: str | None = None,
    ) -> StandardizedRecord:
        target = target_currency.upper()
        source = (source_currency or self._record_currency(record) or target).upper()
        fields: dict[str, ExtractedField] = {}
        warnings = list(record.warnings)

        for name, field in record.fields.items():
            if not field.found:
                fields[name] = field
                continue
            try:
                value = self._convert(name, field, source, target)
                fields[name] = field.model_copy(update={"value": value, "error": None})
            except StandardizationFailure as e:
                logger.info("Could not standardize %s: %s", name, e)
                fields[name] = field.model_copy(update={"error": str(e)})
                warnings.append(f"{name}: {e}")

        return StandardizedRecord(
            domain=record.domain,
            fields=fields,
            warnings=tuple(warnings),
            standardized_at=datetime.now(timezone.utc),
            target_currency=target,
            version=STANDARD_VERSION,
        )

    def _record_currency(self, record: DomainRecord) -> str | None:
        for name in CURRENCY_FIELDS:
            value = record.value(name)
            if value:
                try:
                    return normalize_currency_code(value)
                except StandardizationFailure:
                    continue
        return None

    def _convert(self, name: str, field: ExtractedField, source: str, target: str) -> Any:
        kind = FIELD_TYPES.get(name, "text")
        value = field.value

        if kind == "date":
            return standardize_date(value)
        if kind == "currency":
            return round(standardize_currency(value, source, target, self._rates), 2)
        if kind == "percentage":
            already_scaled = field.source in (FieldSource.PATTERN, FieldSource.CALCULATED) or (
                field.raw is not None and "%" in field.raw
            )
            return standardize_percentage(value, already_scaled=already_scaled)
        if kind == "number":
            return standardize_number(value)
        if kind == "array":
            return self._standardize_items(name, value, source, target)
        if kind == "enum":
            return normalize_enum(name, value)
        return str(value).strip() if isinstance(value, str) else value

    def _standardize_items(self, name: str, items: Any, source: str, target: str) -> list[LineItem]:
        if not isinstance(items, list):
            raise StandardizationFailure(f"expected a list of items, got {type(items).__name__}")

        result = []
        for index, item in enumerate(items, start=1):
            if isinstance(item, dict):
                item = self._item_from_dict(item)
            elif not isinstance(item, LineItem):
                raise StandardizationFailure(f"unexpected line item: {item!r}")
            value = round(standardize_currency(item.value, source, target, self._rates), 2)
            result.append(item.model_copy(update={
                "id": f"{name}_{index}",
                "value": value,
                "growth_type": normalize_growth_type(item.growth_type),
            }))
        return result

    def _item_from_dict(self, raw: dict[str, Any]) -> LineItem:
        """Build a LineItem from a loose ``{name, value, growthType, growthRate, ...}`` dict.

        Typed items already carry 0-100 growth rates; loose dicts get the
        percentage rules applied here.
        """
        growth_rate = raw.get("growthRate", raw.get("growth_rate"))
        if growth_rate is not None and growth_rate != "":
            growth_rate = standardize_percentage(growth_rate)
        else:
            growth_rate = None
        return LineItem(
            name=str(raw.get("name") or "").strip() or "Unnamed item",
            value=standardize_number(raw.get("value")),
            growth_type=normalize_growth_type(raw.get("growthType", raw.get("growth_type"))),
            growth_rate=growth_rate,
            category=str(raw.get("category") or "other"),
            confidence=raw.get("confidence", 0.5),
            source=raw.get("source", FieldSource.AI),
            is_fixed=raw.get("isFixed", raw.get("is_fixed")),
            depreciation_years=raw.get("depreciationYears", raw.get("depreciation_years")),
        )
