"""Per-domain pattern rules and plausible ranges.

Weights follow one scale across domains: 1.0 for an explicit label next to
the value, 0.9 for a near-explicit phrasing, 0.7-0.8 for generic mentions.
"""

from deal_brain.models import Domain
from deal_brain.patterns import (
    CURRENCY_PREFIX,
    LABEL_GAP,
    NO_MAGNITUDE,
    NUMBER,
    UNIT,
    Candidate,
    FieldKind,
    FieldSpec,
)

# Shared by the pattern filter and the confidence scorer
PLAUSIBLE_RANGES: dict[str, tuple[float, float]] = {
    # deal assumptions
    "dealValue": (1e6, 1e12),
    "transactionFee": (0.1, 10),
    "dealLTV": (10, 95),
    "equityContribution": (1e5, 5e11),
    "debtFinancing": (1e5, 5e11),
    # revenue / cost
    "totalRevenue": (1e4, 1e11),
    "revenueGrowthRate": (-50, 200),
    "totalOpEx": (1e3, 1e11),
    "totalCapEx": (1e3, 1e11),
    "costInflationRate": (0, 20),
    # debt model
    "loanIssuanceFees": (0.1, 5),
    "interestRate": (0.1, 25),
    "baseRate": (0.1, 10),
    "creditMargin": (0.1, 15),
    "loanTerm": (1, 30),
    "loanAmount": (1e5, 1e11),
    "commitmentFee": (0.1, 2),
    "prepaymentPenalty": (0.1, 5),
    "annualDebtService": (1e3, 1e11),
    # exit assumptions
    "disposalCost": (0.1, 10),
    "terminalCapRate": (3, 20),
    "exitMultiple": (1, 50),
    "terminalGrowthRate": (0, 10),
    "discountRate": (1, 30),
    "targetIRR": (5, 50),
    "holdingPeriod": (1, 15),
    "exitValue": (1e6, 1e13),
}

# Exit multiple ranges by multiple type
MULTIPLE_RANGES: dict[str, tuple[float, float]] = {
    "EV/EBITDA": (3, 25),
    "P/E": (5, 40),
    "EV/Revenue": (0.5, 10),
    "other": (1, 50),
}

BASIS_POINTS: dict[str, float] = {"bps": 0.01, "bp": 0.01, "basis points": 0.01}
MONTHS_TO_YEARS: dict[str, float] = {"month": 1 / 12, "months": 1 / 12}

REVENUE_ITEM_RANGE = (1e4, 1e11)
COST_ITEM_RANGE = (1e3, 1e11)

CURRENCY_CODES = r"(?P<value>USD|EUR|GBP|JPY|CAD|AUD|CHF|CNY)"
_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
DATE = (
    r"(?P<value>\d{4}-\d{1,2}-\d{1,2}"
    r"|\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}"
    r"|" + _MONTHS + r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}"
    r"|\d{1,2}(?:st|nd|rd|th)?\s+" + _MONTHS + r",?\s+\d{4})"
)
PERCENT = NUMBER + NO_MAGNITUDE + r"\s*(?P<pct>%|percent|pct)?"
MONEY = CURRENCY_PREFIX + NUMBER + UNIT


def _money(label: str, weight: float) -> Candidate:
    return Candidate(label + LABEL_GAP + MONEY, weight)


def _pct(label: str, weight: float, gap: str = r"[^\d\n$€£¥+]{0,30}?[ \t,|]*") -> Candidate:
    return Candidate(label + gap + PERCENT, weight)


def _years(label: str, weight: float) -> Candidate:
    return Candidate(
        label + r"[^\d\n$€£¥]{0,20}?" + NUMBER + r"(?![\d/\-]|\.\d)" + NO_MAGNITUDE + r"\s*(?:years?|yrs?)?", weight,
    )


def _currency(name: str, label: str) -> FieldSpec:
    return FieldSpec(name, FieldKind.ENUM, (
        Candidate(label + r"[\s:=,|]*" + CURRENCY_CODES + r"\b", 1.0),
        Candidate(r"(?:expressed|denominated|presented|reported|stated)\s+in\s+" + CURRENCY_CODES + r"\b", 0.9),
        Candidate(r"\d[\d,.]*\s*(?:billion|bn|million|mm|m|thousand|k)?\s*" + CURRENCY_CODES + r"\b", 0.8),
        Candidate(r"€\s*\d", 0.8, value="EUR"),
        Candidate(r"£\s*\d", 0.8, value="GBP"),
        Candidate(r"¥\s*\d", 0.8, value="JPY"),
        Candidate(r"\$\s*\d", 0.7, value="USD"),
    ))


# --- High-level parameters -------------------------------------------------

HIGH_LEVEL_PARAMETERS: dict[str, FieldSpec] = {
    "currency": _currency("currency", r"(?:reporting\s+|base\s+|deal\s+)?currency"),
    "projectStartDate": FieldSpec("projectStartDate", FieldKind.DATE, (
        Candidate(r"(?:closing|acquisition|start)\s+date" + LABEL_GAP + DATE, 1.0),
        Candidate(r"(?:transaction|completion|effective|commencement)(?:\s+date)?" + LABEL_GAP + DATE, 0.9),
        Candidate(r"(?:closes|closing|completed|acquired)\s+(?:on\s+)?" + DATE, 0.7),
    )),
    "projectEndDate": FieldSpec("projectEndDate", FieldKind.DATE, (
        Candidate(r"(?:expected\s+)?exit\s+date" + LABEL_GAP + DATE, 1.0),
        Candidate(r"(?:maturity|end|termination)\s+date" + LABEL_GAP + DATE, 0.9),
        Candidate(r"expected\s+exit" + LABEL_GAP + r"(?:in|on|by)?\s*" + DATE, 0.8),
    )),
    "modelPeriods": FieldSpec("modelPeriods", FieldKind.ENUM, (
        Candidate(
            r"(?:model|projection|reporting|forecast)\s+(?:periods?|frequency|periodicity)"
            r"[\s:=,|]*(?P<value>daily|monthly|quarterly|yearly|annual(?:ly)?)\b",
            1.0,
        ),
        Candidate(r"\b(?P<value>daily|monthly|quarterly|yearly|annual)\s+(?:projections?|model|forecasts?|periods?|cash\s*flows?)", 0.9),
        Candidate(r"(?:on|in)\s+an?\s+(?P<value>daily|monthly|quarterly|yearly|annual)\s+basis", 0.8),
        Candidate(r"\b(?P<value>quarterly|monthly)\b", 0.7),
    )),
}

# --- Deal assumptions --------------------------------------------------------

DEAL_ASSUMPTIONS: dict[str, FieldSpec] = {
    "dealName": FieldSpec("dealName", FieldKind.TEXT, (
        Candidate(r"(?:deal|project|transaction)\s+name[\s:=,|]+(?P<value>[^\n,|]{2,80})", 1.0),
        Candidate(r"\bProject\s+(?P<value>[A-Z][\w-]+(?:\s+[A-Z][\w-]+)?)", 0.8, flags=0),
        Candidate(r"(?:acquisition|purchase)\s+of\s+(?P<value>[A-Z][\w&.-]*(?:\s+[A-Z][\w&.-]*){0,4})", 0.7, flags=0),
    )),
    "dealValue": FieldSpec("dealValue", FieldKind.NUMBER, (
        _money(r"(?:total\s+)?(?:deal|transaction|purchase|acquisition)\s+(?:value|price|size|consideration)", 1.0),
        _money(r"enterprise\s+value", 0.9),
        Candidate(r"\b(?:for|of|worth)\s+(?:approximately\s+|about\s+|around\s+)?[$€£¥]\s*" + NUMBER + UNIT, 0.8),
        _money(r"(?:total\s+)?investment", 0.7),
        Candidate(r"[$€£¥]\s*" + NUMBER + UNIT, 0.7),
    ), (1e6, 1e12)),
    "transactionFee": FieldSpec("transactionFee", FieldKind.PERCENTAGE, (
        _pct(r"transaction\s+(?:fees?|costs?)", 1.0),
        _pct(r"(?:deal|advisory|acquisition)\s+(?:fees?|costs?)", 0.8),
    ), PLAUSIBLE_RANGES["transactionFee"]),
    "dealLTV": FieldSpec("dealLTV", FieldKind.PERCENTAGE, (
        _pct(r"\b(?:LTV|loan[- ]to[- ]value)(?:\s+ratio)?", 1.0),
        Candidate(PERCENT + r"\s*(?:LTV|loan[- ]to[- ]value)", 0.9),
        Candidate(PERCENT + r"\s*(?:debt|leverage)\b", 0.7),
    ), PLAUSIBLE_RANGES["dealLTV"]),
    "equityContribution": FieldSpec("equityContribution", FieldKind.NUMBER, (
        _money(r"equity\s+(?:contribution|investment|financing|cheque|check)", 1.0),
        _money(r"(?:sponsor\s+)?equity", 0.8),
        Candidate(r"[$€£¥]\s*" + NUMBER + UNIT + r"\s+(?:of\s+)?(?:sponsor\s+)?equity", 0.7),
    ), PLAUSIBLE_RANGES["equityContribution"]),
    "debtFinancing": FieldSpec("debtFinancing", FieldKind.NUMBER, (
        _money(r"debt\s+(?:financing|funding|facility|package)", 1.0),
        _money(r"(?:senior|total|acquisition)\s+debt", 0.9),
        Candidate(r"[$€£¥]\s*" + NUMBER + UNIT + r"\s+(?:of\s+)?(?:debt|loan|borrowings?)", 0.7),
    ), PLAUSIBLE_RANGES["debtFinancing"]),
}

# --- Revenue items -----------------------------------------------------------

_ITEM_NAME = r"(?P<name>[A-Za-z][A-Za-z &/()-]{1,60}?)"
_GROWTH_TAIL = r"(?:[\s,|]+(?P<growth>-?\d+(?:\.\d+)?)\s*%)?"

REVENUE_ITEMS: dict[str, FieldSpec] = {
    "revenueItems": FieldSpec("revenueItems", FieldKind.NUMBER, (
        Candidate(r"revenue\s+from\s+" + _ITEM_NAME + r"\s*:\s*" + MONEY + _GROWTH_TAIL, 0.7),
        Candidate(r"^\s*" + _ITEM_NAME + r"\s+(?:sales|revenues?|income|fees)\s*:\s*" + MONEY + _GROWTH_TAIL, 0.7),
        Candidate(
            r"^\s*(?P<name>[^,\n|]*?(?:revenue|sales|income|subscriptions?|licen[cs]ing|fees)[^,\n|]*?)"
            r"\s*[,|][,|\s]*" + MONEY + _GROWTH_TAIL,
            0.6,
        ),
    ), REVENUE_ITEM_RANGE),
    "totalRevenue": FieldSpec("totalRevenue", FieldKind.NUMBER, (
        _money(r"(?:total|gross|annual|net)\s+(?:revenues?|sales)", 1.0),
        _money(r"\brevenues?\s+of", 0.8),
        Candidate(r"generated\s+[$€£¥]?\s*" + NUMBER + UNIT + r"\s+(?:in|of)\s+revenue", 0.8),
    ), PLAUSIBLE_RANGES["totalRevenue"]),
    "revenueGrowthRate": FieldSpec("revenueGrowthRate", FieldKind.PERCENTAGE, (
        _pct(r"revenue\s+growth(?:\s+rate)?", 1.0),
        Candidate(PERCENT + r"\s+(?:annual\s+)?revenue\s+growth", 0.9),
        Candidate(r"(?:growing|grow|growth)\s+(?:at\s+|of\s+|by\s+)?(?:approximately\s+)?" + NUMBER + r"\s*%", 0.7),
        Candidate(r"\bCAGR\s*(?:of\s+)?" + NUMBER + r"\s*%", 0.8),
    ), PLAUSIBLE_RANGES["revenueGrowthRate"]),
    "revenueCurrency": _currency("revenueCurrency", r"(?:revenue\s+)?currency"),
}

# --- Cost items --------------------------------------------------------------

_OPEX_WORDS = (
    r"salar(?:y|ies)|wages|payroll|staff|personnel|employee|rent|lease|office|utilities|"
    r"marketing|advertising|insurance|legal|accounting|audit|consulting|professional|"
    r"software|hosting|IT|telecom|travel|maintenance|operating|admin(?:istrative)?|general"
)
_CAPEX_WORDS = (
    r"capex|capital\s+expenditures?|equipment|machinery|buildings?|property|plant|"
    r"vehicles?|hardware|fit-?out|renovation|construction|furniture"
)

COST_ITEMS: dict[str, FieldSpec] = {
    "operatingExpenses": FieldSpec("operatingExpenses", FieldKind.NUMBER, (
        Candidate(
            r"^\s*(?P<name>[^,:\n|]*?\b(?:" + _OPEX_WORDS + r")\b[^,:\n|]*?)"
            r"\s*(?:expenses?|costs?)?\s*[,:|][,|\s]*" + MONEY + _GROWTH_TAIL,
            0.7,
        ),
        Candidate(
            r"^\s*(?P<name>[^,:\n|]*?)\s+(?:expenses?|costs?)\s*[,:|][,|\s]*" + MONEY + _GROWTH_TAIL,
            0.6,
        ),
    ), COST_ITEM_RANGE),
    "capitalExpenses": FieldSpec("capitalExpenses", FieldKind.NUMBER, (
        Candidate(
            r"^\s*(?P<name>[^,:\n|]*?\b(?:" + _CAPEX_WORDS + r")\b[^,:\n|]*?)"
            r"\s*[,:|][,|\s]*" + MONEY
            + r"(?:[^\n\d]{0,30}?(?P<years>\d{1,2})\s*(?:years?|yrs?))?",
            0.7,
        ),
    ), COST_ITEM_RANGE),
    "totalOpEx": FieldSpec("totalOpEx", FieldKind.NUMBER, (
        _money(r"total\s+(?:operating\s+(?:expenses|costs)|opex)", 1.0),
        _money(r"\b(?:opex|operating\s+expenses)\s+(?:of|total)", 0.8),
    ), PLAUSIBLE_RANGES["totalOpEx"]),
    "totalCapEx": FieldSpec("totalCapEx", FieldKind.NUMBER, (
        _money(r"total\s+(?:capital\s+expenditures?|capex)", 1.0),
        _money(r"\b(?:capex|capital\s+expenditures?)\s+(?:of|budget)", 0.8),
    ), PLAUSIBLE_RANGES["totalCapEx"]),
    "costInflationRate": FieldSpec("costInflationRate", FieldKind.PERCENTAGE, (
        _pct(r"(?:cost\s+)?inflation(?:\s+rate)?", 1.0),
        _pct(r"(?:cost|expense)\s+(?:growth|escalation)(?:\s+rate)?", 0.9),
        Candidate(PERCENT + r"\s+(?:annual\s+)?(?:cost\s+)?inflation", 0.8),
    ), PLAUSIBLE_RANGES["costInflationRate"]),
    "costCurrency": _currency("costCurrency", r"(?:cost\s+)?currency"),
}

# --- Debt model ----------------------------------------------------------------

DEBT_MODEL: dict[str, FieldSpec] = {
    "loanIssuanceFees": FieldSpec("loanIssuanceFees", FieldKind.PERCENTAGE, (
        _pct(r"(?:loan\s+)?(?:issuance|arrangement)\s+fees?", 1.0),
        _pct(r"upfront\s+fees?", 0.9),
        _pct(r"(?:financing|origination)\s+fees?", 0.8),
        _pct(r"loan\s+fees?", 0.7),
    ), PLAUSIBLE_RANGES["loanIssuanceFees"]),
    "interestRateType": FieldSpec("interestRateType", FieldKind.ENUM, (
        Candidate(r"(?:interest\s+)?rate\s+type[\s:=,|]*(?P<value>fixed|floating|variable)\b", 1.0),
        Candidate(r"\b(?:floating|variable)(?:[- ]rate)?\b", 0.9, value="floating"),
        Candidate(r"\b(?:SOFR|EURIBOR|LIBOR|SONIA|base\s+rate)\s*\+", 0.9, value="floating"),
        Candidate(r"\bfixed(?:[- ]rate)?\b", 0.9, value="fixed"),
    )),
    "interestRate": FieldSpec("interestRate", FieldKind.PERCENTAGE, (
        _pct(r"(?:all-in\s+)?interest\s+rate", 1.0),
        _pct(r"fixed\s+(?:interest\s+)?rate", 0.9),
        _pct(r"\bcoupon", 0.9),
        Candidate(r"(?:bearing|bears|at)\s+(?:an?\s+)?(?:interest\s+)?(?:of\s+)?" + NUMBER + r"\s*%\s*(?:interest|p\.?a\.?|per\s+annum)", 0.8),
    ), PLAUSIBLE_RANGES["interestRate"]),
    "baseRate": FieldSpec("baseRate", FieldKind.PERCENTAGE, (
        _pct(r"(?:base|reference|benchmark)\s+rate", 1.0),
        _pct(r"\b(?:SOFR|EURIBOR|LIBOR|SONIA)\b(?!\s*\+)", 0.8),
    ), PLAUSIBLE_RANGES["baseRate"]),
    "creditMargin": FieldSpec("creditMargin", FieldKind.PERCENTAGE, (
        _pct(r"(?:credit\s+)?(?:margin|spread)", 1.0),
        Candidate(r"(?:SOFR|EURIBOR|LIBOR|SONIA|base\s+rate)\s*\+\s*" + NUMBER + r"\s*%", 0.9),
        Candidate(
            r"(?:SOFR|EURIBOR|LIBOR|SONIA|base\s+rate)\s*\+\s*(?P<value>\d+)\s*(?P<unit>bps|bp|basis\s+points)",
            0.8,
            unit_table=BASIS_POINTS,
        ),
    ), PLAUSIBLE_RANGES["creditMargin"]),
    "loanTerm": FieldSpec("loanTerm", FieldKind.NUMBER, (
        _years(r"(?:loan\s+)?(?:term|tenor|maturity)", 1.0),
        Candidate(NUMBER + r"[- ]years?\s+(?:term\s+)?(?:loan|facility|debt|tenor)", 0.9),
    ), PLAUSIBLE_RANGES["loanTerm"]),
    "loanAmount": FieldSpec("loanAmount", FieldKind.NUMBER, (
        _money(r"(?:loan|facility|principal)\s+(?:amount|size)", 1.0),
        _money(r"(?:debt\s+financing|senior\s+debt|term\s+loan|borrowing)", 0.9),
        Candidate(r"[$€£¥]\s*" + NUMBER + UNIT + r"\s+(?:term\s+)?(?:loan|facility)", 0.8),
    ), PLAUSIBLE_RANGES["loanAmount"]),
    "commitmentFee": FieldSpec("commitmentFee", FieldKind.PERCENTAGE, (
        _pct(r"commitment\s+fees?", 1.0),
        _pct(r"(?:undrawn|non-?utili[sz]ation)\s+fees?", 0.8),
    ), PLAUSIBLE_RANGES["commitmentFee"]),
    "prepaymentPenalty": FieldSpec("prepaymentPenalty", FieldKind.PERCENTAGE, (
        _pct(r"(?:prepayment|early\s+repayment)\s+(?:penalty|fee|premium)", 1.0),
        _pct(r"(?:call\s+protection|make[- ]whole)", 0.8),
    ), PLAUSIBLE_RANGES["prepaymentPenalty"]),
    "debtType": FieldSpec("debtType", FieldKind.ENUM, (
        Candidate(r"(?:debt|loan|facility)\s+type[\s:=,|]*(?P<value>senior|subordinated|revolving|term)\b", 1.0),
        Candidate(r"\bsenior\s+(?:secured\s+)?(?:debt|loan|facility|notes?|term\s+loan)", 1.0, value="senior"),
        Candidate(r"\b(?:subordinated|mezzanine|junior)\s+(?:debt|loan|facility|notes?)", 1.0, value="subordinated"),
        Candidate(r"\brevolving\s+(?:credit\s+)?(?:facility|loan|line)|\bRCF\b", 0.9, value="revolving"),
        Candidate(r"\bterm\s+loan\b", 0.9, value="term"),
    )),
    "debtCurrency": _currency("debtCurrency", r"(?:debt|loan|facility)\s+currency"),
    "amortizationType": FieldSpec("amortizationType", FieldKind.ENUM, (
        Candidate(r"(?:amorti[sz]ation|repayment)(?:\s+(?:type|profile|schedule))?[\s:=,|]*(?P<value>bullet|linear|straight[- ]line|custom)\b", 1.0),
        Candidate(r"\bbullet\s+(?:repayment|maturity|loan)", 0.9, value="bullet"),
        Candidate(r"\b(?:linear|straight[- ]line)\s+amorti[sz]ation", 0.9, value="linear"),
    )),
}

# --- Exit assumptions ---------------------------------------------------------

EXIT_ASSUMPTIONS: dict[str, FieldSpec] = {
    "disposalCost": FieldSpec("disposalCost", FieldKind.PERCENTAGE, (
        _pct(r"(?:disposal|exit|transaction)\s+costs?(?:\s+at\s+exit)?", 1.0),
        _pct(r"exit\s+(?:fees?|expenses)", 0.9),
        _pct(r"selling\s+(?:costs?|expenses|fees?)", 0.8),
    ), PLAUSIBLE_RANGES["disposalCost"]),
    "terminalCapRate": FieldSpec("terminalCapRate", FieldKind.PERCENTAGE, (
        _pct(r"(?:terminal|exit)\s+cap(?:italization)?\s+rate", 1.0),
        _pct(r"\bcap\s+rate", 0.8),
    ), PLAUSIBLE_RANGES["terminalCapRate"]),
    "exitMultiple": FieldSpec("exitMultiple", FieldKind.MULTIPLE, (
        Candidate(r"exit\s+multiple[^\d\n]{0,30}?" + NUMBER + r"\s*x?", 1.0),
        Candidate(NUMBER + r"\s*x\s*(?:EV\s*/\s*)?EBITDA", 0.9),
        Candidate(r"(?:EV\s*/\s*EBITDA|P\s*/\s*E|EV\s*/\s*Revenue)\s*(?:multiple\s*)?(?:of\s+)?" + NUMBER + r"\s*x?", 0.9),
        Candidate(NUMBER + r"\s*x\s*(?:revenue|sales|earnings)", 0.8),
        Candidate(r"\b" + NUMBER + r"\s*x\s+multiple", 0.7),
    ), PLAUSIBLE_RANGES["exitMultiple"]),
    "exitMultipleType": FieldSpec("exitMultipleType", FieldKind.ENUM, (
        Candidate(r"EV\s*/\s*EBITDA|x\s*EBITDA|EBITDA\s+multiple", 1.0, value="EV/EBITDA"),
        Candidate(r"\bP\s*/\s*E\b|price[- ]to[- ]earnings|x\s*earnings", 1.0, value="P/E"),
        Candidate(r"EV\s*/\s*(?:Revenue|Sales)|x\s*(?:revenue|sales)|revenue\s+multiple", 1.0, value="EV/Revenue"),
    )),
    "terminalGrowthRate": FieldSpec("terminalGrowthRate", FieldKind.PERCENTAGE, (
        _pct(r"(?:terminal|perpetual|long[- ]term)\s+growth(?:\s+rate)?", 1.0),
        Candidate(PERCENT + r"\s+(?:terminal|perpetual|perpetuity)\s+growth", 0.9),
    ), PLAUSIBLE_RANGES["terminalGrowthRate"]),
    "discountRate": FieldSpec("discountRate", FieldKind.PERCENTAGE, (
        _pct(r"discount\s+rate", 1.0),
        _pct(r"\bWACC\b", 0.9),
        _pct(r"cost\s+of\s+capital", 0.8),
    ), PLAUSIBLE_RANGES["discountRate"]),
    "expectedExitDate": FieldSpec("expectedExitDate", FieldKind.DATE, (
        Candidate(r"(?:expected\s+|anticipated\s+|target\s+)?exit\s+date" + LABEL_GAP + DATE, 1.0),
        Candidate(r"exit\s+(?:by|on|in)\s+" + DATE, 0.9),
        Candidate(r"\bexit\s+(?:by|in|during)\s+(?P<value>(?:19|20)\d{2})\b", 0.8),
    )),
    "exitRoute": FieldSpec("exitRoute", FieldKind.ENUM, (
        Candidate(r"\bIPO\b|initial\s+public\s+offering|public\s+listing", 1.0, value="IPO"),
        Candidate(r"trade\s+sale|strategic\s+(?:sale|buyer|acquirer)", 1.0, value="trade_sale"),
        Candidate(r"secondary\s+(?:buyout|sale)|sale\s+to\s+(?:another\s+)?(?:financial\s+sponsor|private\s+equity)", 1.0, value="secondary_buyout"),
        Candidate(r"management\s+buy-?out|\bMBO\b", 0.9, value="management_buyout"),
        Candidate(r"\brefinanc(?:ing|e)\b|recapitali[sz]ation", 0.8, value="refinancing"),
    )),
    "targetIRR": FieldSpec("targetIRR", FieldKind.PERCENTAGE, (
        _pct(r"(?:target|expected|projected)\s+IRR", 1.0),
        _pct(r"\bIRR", 0.9),
        Candidate(PERCENT + r"\s+IRR\b", 0.8),
        _pct(r"internal\s+rate\s+of\s+return", 0.8),
    ), PLAUSIBLE_RANGES["targetIRR"]),
    "holdingPeriod": FieldSpec("holdingPeriod", FieldKind.NUMBER, (
        Candidate(
            r"(?:holding|hold|investment)\s+(?:period|horizon)[^\d\n]{0,20}?" + NUMBER + r"\s*(?P<unit>months?)\b",
            1.0,
            unit_table=MONTHS_TO_YEARS,
        ),
        _years(r"(?:holding|hold|investment)\s+(?:period|horizon)", 1.0),
        Candidate(NUMBER + r"[- ]years?\s+(?:holding|hold|investment)\s+(?:period|horizon)", 0.9),
        Candidate(r"\bexit\s+(?:after|within|in)\s+" + NUMBER + r"\s*years?", 0.8),
    ), PLAUSIBLE_RANGES["holdingPeriod"]),
    "exitValue": FieldSpec("exitValue", FieldKind.NUMBER, (
        _money(r"(?:exit|terminal)\s+(?:value|valuation|proceeds)", 1.0),
        _money(r"(?:sale|exit)\s+price", 0.8),
    ), PLAUSIBLE_RANGES["exitValue"]),
}


PATTERN_LIBRARY: dict[Domain, dict[str, FieldSpec]] = {
    Domain.HIGH_LEVEL_PARAMETERS: HIGH_LEVEL_PARAMETERS,
    Domain.DEAL_ASSUMPTIONS: DEAL_ASSUMPTIONS,
    Domain.REVENUE_ITEMS: REVENUE_ITEMS,
    Domain.COST_ITEMS: COST_ITEMS,
    Domain.DEBT_MODEL: DEBT_MODEL,
    Domain.EXIT_ASSUMPTIONS: EXIT_ASSUMPTIONS,
}
