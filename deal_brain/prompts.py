"""Per-domain prompts for structured deal-parameter extraction.

Each prompt names the exact JSON keys the extractors read back. Values the
model cannot find must be null, never guessed.
"""

_JSON_SUFFIX = """

CRITICAL OUTPUT RULES:
- Return ONLY a single valid JSON object. No other text before or after.
- Do NOT include any thinking, preamble, explanation, or markdown formatting.
- Do NOT wrap in code fences. Just raw JSON.
- Use null for any value that is not stated in the documents. Never invent values.
- Monetary amounts are plain numbers in absolute units (50000000, not "50M").
- Percentages are numbers on the 0-100 scale (7.5 for 7.5%)."""

PROMPTS: dict[str, str] = {
    "highLevelParameters": """You are analyzing financial deal documents.
Extract the high-level model parameters and return them as a JSON object.
Use EXACTLY these keys:

{
  "currency": "3-letter ISO currency code of the deal, e.g. USD",
  "projectStartDate": "YYYY-MM-DD, the closing / acquisition / start date",
  "projectEndDate": "YYYY-MM-DD, the exit / maturity / end date",
  "modelPeriods": "one of daily, monthly, quarterly, yearly"
}""",

    "dealAssumptions": """You are analyzing financial deal documents.
Extract the deal assumptions and return them as a JSON object.
Use EXACTLY these keys:

{
  "dealName": "name of the deal or project",
  "dealValue": "total transaction value as a number",
  "transactionFee": "transaction fees as a percentage of deal value",
  "dealLTV": "loan-to-value ratio as a percentage",
  "equityContribution": "equity amount as a number",
  "debtFinancing": "debt amount as a number"
}""",

    "revenueItems": """You are analyzing financial deal documents.
Extract every revenue stream and return them as a JSON object.
Use EXACTLY these keys:

{
  "revenueItems": [
    {
      "name": "revenue stream name",
      "value": "annual amount as a number",
      "growthType": "one of linear, compound, custom",
      "growthRate": "annual growth as a percentage",
      "category": "one of subscription, service, product, other"
    }
  ],
  "totalRevenue": "total annual revenue as a number",
  "revenueGrowthRate": "overall revenue growth as a percentage",
  "revenueCurrency": "3-letter ISO currency code"
}""",

    "costItems": """You are analyzing financial deal documents.
Extract operating and capital expenses and return them as a JSON object.
Use EXACTLY these keys:

{
  "operatingExpenses": [
    {
      "name": "expense name",
      "value": "annual amount as a number",
      "growthType": "one of linear, compound, custom",
      "growthRate": "annual growth as a percentage",
      "category": "one of personnel, office, marketing, professional, technology, other",
      "isFixed": "true for fixed costs, false for variable costs"
    }
  ],
  "capitalExpenses": [
    {
      "name": "capital item name",
      "value": "amount as a number",
      "growthType": "one of linear, compound, custom",
      "growthRate": "growth as a percentage",
      "category": "asset category",
      "depreciationYears": "useful life in years"
    }
  ],
  "totalOpEx": "total operating expenses as a number",
  "totalCapEx": "total capital expenses as a number",
  "costInflationRate": "annual cost inflation as a percentage",
  "costCurrency": "3-letter ISO currency code"
}""",

    "debtModel": """You are analyzing financial deal documents.
Extract the debt financing terms and return them as a JSON object.
Use EXACTLY these keys:

{
  "loanIssuanceFees": "issuance / arrangement fees as a percentage",
  "interestRateType": "fixed or floating",
  "interestRate": "all-in interest rate as a percentage",
  "baseRate": "reference rate (SOFR, EURIBOR, ...) as a percentage",
  "creditMargin": "margin over the base rate as a percentage",
  "loanTerm": "loan term in years",
  "loanAmount": "principal amount as a number",
  "commitmentFee": "commitment fee as a percentage",
  "prepaymentPenalty": "prepayment penalty as a percentage",
  "debtType": "one of senior, subordinated, revolving, term",
  "debtCurrency": "3-letter ISO currency code",
  "amortizationType": "one of bullet, linear, custom"
}""",

    "exitAssumptions": """You are analyzing financial deal documents.
Extract the exit assumptions and return them as a JSON object.
Use EXACTLY these keys:

{
  "disposalCost": "exit / disposal costs as a percentage",
  "terminalCapRate": "terminal capitalization rate as a percentage",
  "exitMultiple": "exit multiple as a number, e.g. 8.5",
  "exitMultipleType": "one of EV/EBITDA, P/E, EV/Revenue, other",
  "terminalGrowthRate": "perpetual growth rate as a percentage",
  "discountRate": "discount rate as a percentage",
  "expectedExitDate": "YYYY-MM-DD",
  "exitRoute": "one of IPO, trade_sale, secondary_buyout, management_buyout, refinancing",
  "targetIRR": "target IRR as a percentage",
  "holdingPeriod": "holding period in years",
  "exitValue": "expected exit value as a number"
}""",

    "masterAnalysis": """You are a financial analyst reviewing all documents of a deal.
Build a holistic overview and return it as a JSON object.
Use EXACTLY this structure:

{
  "companyOverview": {"companyName": null, "industry": null, "businessDescription": null, "keyBusinessMetrics": null},
  "transactionDetails": {"dealName": null, "dealValue": null, "currency": null, "transactionType": null,
                         "transactionFees": null, "closingDate": "YYYY-MM-DD", "expectedExitDate": "YYYY-MM-DD"},
  "financingStructure": {"totalDealValue": null, "debtLTV": null, "equityContribution": null,
                         "debtFinancing": null, "interestRate": null, "loanTerms": null},
  "historicalFinancials": {"baseYear": null, "revenueStreams": [], "operatingExpenses": [], "capitalExpenses": []},
  "projectionAssumptions": {"projectionPeriod": null, "reportingFrequency": null, "keyGrowthDrivers": null,
                            "marketAssumptions": null, "riskFactors": null},
  "exitAssumptions": {"exitStrategy": null, "exitMultiple": null, "terminalValue": null,
                      "disposalCosts": null, "expectedIRR": null, "holdingPeriodYears": null},
  "keyMetrics": {"currentEBITDA": null, "EBITDAMargin": null, "currentRevenue": null,
                 "revenueGrowthRate": null, "paybackPeriod": null},
  "dataQuality": {"overallConfidence": "0.0-1.0", "missingCriticalData": [], "assumptions": [],
                  "dataSourceQuality": "one of high, medium, low"}
}""",
}


def prompt_for(domain: str) -> str:
    prompt = PROMPTS.get(domain)
    if prompt is None:
        raise KeyError(f"No prompt defined for domain: {domain}")
    return prompt + _JSON_SUFFIX
