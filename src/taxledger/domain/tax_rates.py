"""Nigerian statutory tax rate tables."""

from decimal import Decimal

VAT_RATE = Decimal("0.075")

# payment type -> (resident rate, non-resident rate)
WHT_RATES = {
    "dividends": (Decimal("0.10"), Decimal("0.10")),
    "interest": (Decimal("0.10"), Decimal("0.10")),
    "royalties": (Decimal("0.10"), Decimal("0.10")),
    "rent": (Decimal("0.10"), Decimal("0.10")),
    "professional_fees_individual": (Decimal("0.05"), Decimal("0.10")),
    "professional_fees_company": (Decimal("0.10"), Decimal("0.15")),
    "consultancy": (Decimal("0.10"), Decimal("0.10")),
    "technical_services": (Decimal("0.10"), Decimal("0.10")),
    "commissions": (Decimal("0.10"), Decimal("0.10")),
    "construction": (Decimal("0.05"), Decimal("0.05")),
    "contracts": (Decimal("0.05"), Decimal("0.05")),
    "other": (Decimal("0"), Decimal("0")),
}

CGT_RATE = Decimal("0.10")

# document type -> ("percentage" | "flat", rate or amount, minimum value)
STAMP_DUTY_RATES = {
    "agreement": ("flat", Decimal("500"), Decimal("0")),
    "deed": ("percentage", Decimal("0.015"), Decimal("0")),
    "lease": ("percentage", Decimal("0.0078"), Decimal("0")),
    "mortgage": ("percentage", Decimal("0.00375"), Decimal("0")),
    "share_transfer": ("percentage", Decimal("0.0075"), Decimal("0")),
    "bank_transfer": ("flat", Decimal("50"), Decimal("10000")),
    "other": ("percentage", Decimal("0"), Decimal("0")),
}

# Company income tax tiers by turnover: (upper bound or None, rate, label)
CIT_TIERS = [
    (Decimal("25000000"), Decimal("0"), "small"),
    (Decimal("100000000"), Decimal("0.20"), "medium"),
    (None, Decimal("0.30"), "large"),
]

TERTIARY_EDUCATION_TAX_RATE = Decimal("0.03")

# Personal income tax bands: (band width or None for the remainder, rate)
PIT_BANDS = [
    (Decimal("300000"), Decimal("0.07")),
    (Decimal("300000"), Decimal("0.11")),
    (Decimal("500000"), Decimal("0.15")),
    (Decimal("500000"), Decimal("0.19")),
    (Decimal("1600000"), Decimal("0.21")),
    (None, Decimal("0.24")),
]

CRA_FIXED = Decimal("200000")
CRA_GROSS_PERCENT = Decimal("0.01")
CRA_ADDITIONAL_PERCENT = Decimal("0.20")
MINIMUM_TAX_RATE = Decimal("0.01")

# Days after period end, or day of the following month, that a tax is due
DUE_DAY_OF_NEXT_MONTH = {
    "VAT": 21,
    "WHT": 21,
}
DUE_DAYS_AFTER_PERIOD = {
    "STAMP_DUTY": 30,
    "CGT": 30,
}

# Company levies
POLICE_TRUST_FUND_LEVY_RATE = Decimal("0.00005")
NASENI_LEVY_RATE = Decimal("0.0025")
NASENI_INDUSTRIES = ("banking", "mobile_telecom", "ict", "aviation", "maritime", "oil_gas")
NSITF_RATE = Decimal("0.01")
ITF_RATE = Decimal("0.01")
ITF_EMPLOYEE_THRESHOLD = 5
ITF_TURNOVER_THRESHOLD = Decimal("50000000")
