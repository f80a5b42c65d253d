"""Tax computation engine.

Computes VAT, withholding tax, capital gains tax and stamp duty for each
transaction, keeps running totals keyed by transaction id, buckets liabilities
into remittance schedules and assesses company or personal income tax over a
year's aggregate figures.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from taxledger.domain.entities import (
    ZERO,
    Classification,
    CompanyLevies,
    IncomeTaxAssessment,
    LevyResult,
    RawTransaction,
    ScheduleStatus,
    TaxBand,
    TaxComputationResult,
    TaxLineItem,
    TaxProfile,
    TaxScheduleEntry,
    TaxSummary,
    TaxType,
    TaxpayerType,
)
from taxledger.domain import tax_rates
from taxledger.utils.amount_parser import round_money
from taxledger.utils.date_parser import get_period_range, month_period, next_month_day, year_period

logger = logging.getLogger(__name__)

TRACKED_TAXES = (
    TaxType.VAT,
    TaxType.INPUT_VAT,
    TaxType.WHT,
    TaxType.CGT,
    TaxType.STAMP_DUTY,
)


def calculate_vat(amount: Decimal, inclusive: bool = False, tax_type: TaxType = TaxType.VAT) -> TaxLineItem:
    """Calculate VAT on an amount.

    Args:
        amount: Transaction value
        inclusive: True when the amount already contains VAT
        tax_type: VAT for output tax, INPUT_VAT for tax paid on purchases

    Returns:
        VAT line item
    """
    rate = tax_rates.VAT_RATE
    if inclusive:
        tax = round_money(amount - amount / (1 + rate))
        note = "VAT extracted from VAT-inclusive amount"
    else:
        tax = round_money(amount * rate)
        note = "VAT at 7.5%"
    if tax_type == TaxType.INPUT_VAT:
        note = "Input VAT on purchase"
    return TaxLineItem(tax_type=tax_type, rate=rate, tax_amount=tax, note=note)


def calculate_wht(payment_type: Optional[str], amount: Decimal, is_resident: bool = True) -> TaxLineItem:
    """Calculate withholding tax for a payment.

    Unknown payment types are charged at the "other" rate of zero and the
    line item carries a warning.

    Args:
        payment_type: Key in the WHT rate table, e.g. "rent"
        amount: Gross payment
        is_resident: Whether the payee is a Nigerian resident

    Returns:
        WHT line item
    """
    warning = None
    if payment_type not in tax_rates.WHT_RATES:
        warning = f"Unknown WHT payment type '{payment_type}'; applied rate 0"
        logger.warning(warning)
        payment_type = "other"
    resident_rate, non_resident_rate = tax_rates.WHT_RATES[payment_type]
    rate = resident_rate if is_resident else non_resident_rate
    residency = "resident" if is_resident else "non-resident"
    return TaxLineItem(
        tax_type=TaxType.WHT,
        rate=rate,
        tax_amount=round_money(amount * rate),
        note=f"WHT on {payment_type.replace('_', ' ')} ({residency})",
        warning=warning,
    )


def calculate_cgt(
    disposal_proceeds: Decimal,
    acquisition_cost: Optional[Decimal],
    selling_expenses: Decimal = ZERO,
    improvement_costs: Decimal = ZERO,
) -> TaxLineItem:
    """Calculate capital gains tax on a disposal.

    Args:
        disposal_proceeds: Amount received for the asset
        acquisition_cost: Original cost; None when unknown
        selling_expenses: Costs of making the disposal
        improvement_costs: Capital improvements added to the cost base

    Returns:
        CGT line item; an unknown cost treats the whole proceeds as gain
    """
    warning = None
    if acquisition_cost is None:
        warning = "Acquisition cost not supplied; whole proceeds treated as gain"
        logger.warning(warning)
        acquisition_cost = ZERO
    cost_base = acquisition_cost + improvement_costs
    gain = max(ZERO, disposal_proceeds - selling_expenses - cost_base)
    return TaxLineItem(
        tax_type=TaxType.CGT,
        rate=tax_rates.CGT_RATE,
        tax_amount=round_money(gain * tax_rates.CGT_RATE),
        note=f"CGT on chargeable gain of {round_money(gain)}",
        warning=warning,
    )


def calculate_stamp_duty(document_type: Optional[str], value: Decimal) -> TaxLineItem:
    """Calculate stamp duty for an instrument.

    Args:
        document_type: Key in the stamp duty table, e.g. "deed"
        value: Transaction value

    Returns:
        Stamp duty line item
    """
    warning = None
    if document_type not in tax_rates.STAMP_DUTY_RATES:
        warning = f"Unknown stamp duty document type '{document_type}'; applied rate 0"
        logger.warning(warning)
        document_type = "other"
    kind, rate, minimum_value = tax_rates.STAMP_DUTY_RATES[document_type]
    label = document_type.replace("_", " ")
    if value < minimum_value:
        return TaxLineItem(
            tax_type=TaxType.STAMP_DUTY,
            rate=ZERO,
            tax_amount=ZERO,
            note=f"No stamp duty on {label} below {minimum_value}",
        )
    if kind == "flat":
        return TaxLineItem(
            tax_type=TaxType.STAMP_DUTY,
            rate=ZERO,
            tax_amount=round_money(rate),
            note=f"Flat stamp duty on {label}",
            warning=warning,
        )
    return TaxLineItem(
        tax_type=TaxType.STAMP_DUTY,
        rate=rate,
        tax_amount=round_money(value * rate),
        note=f"Stamp duty on {label}",
        warning=warning,
    )


def calculate_police_levy(net_profit: Decimal, is_company: bool = True) -> LevyResult:
    """Nigeria Police Trust Fund levy at 0.005% of a company's net profit."""
    rate = tax_rates.POLICE_TRUST_FUND_LEVY_RATE
    if not is_company:
        return LevyResult(
            name="Police Trust Fund",
            base=round_money(net_profit),
            rate=rate,
            levy_payable=ZERO,
            is_applicable=False,
            note="Police Trust Fund levy applies only to companies",
        )
    return LevyResult(
        name="Police Trust Fund",
        base=round_money(net_profit),
        rate=rate,
        levy_payable=round_money(max(ZERO, net_profit) * rate),
        is_applicable=True,
        note="Police Trust Fund levy at 0.005% of net profit",
    )


def calculate_naseni_levy(
    profit_before_tax: Decimal, industry: Optional[str], is_company: bool = True
) -> LevyResult:
    """NASENI levy at 0.25% of profit before tax for listed industries.

    Args:
        profit_before_tax: Profit before tax for the year
        industry: Industry key, e.g. "banking" or "ict"; None when unknown
        is_company: Whether the taxpayer is a company

    Returns:
        Levy result; not applicable outside the listed industries
    """
    rate = tax_rates.NASENI_LEVY_RATE
    base = round_money(profit_before_tax)
    if not is_company:
        note = "NASENI levy applies only to companies"
    elif (industry or "").strip().lower() not in tax_rates.NASENI_INDUSTRIES:
        note = "NASENI levy applies only to " + ", ".join(tax_rates.NASENI_INDUSTRIES)
    else:
        return LevyResult(
            name="NASENI",
            base=base,
            rate=rate,
            levy_payable=round_money(max(ZERO, profit_before_tax) * rate),
            is_applicable=True,
            note="NASENI levy at 0.25% of profit before tax",
        )
    return LevyResult(
        name="NASENI", base=base, rate=rate, levy_payable=ZERO, is_applicable=False, note=note
    )


def calculate_nsitf(monthly_payroll: Decimal, months: int = 12) -> LevyResult:
    """NSITF employer contribution at 1% of payroll."""
    total_payroll = round_money(max(ZERO, monthly_payroll) * months)
    return LevyResult(
        name="NSITF",
        base=total_payroll,
        rate=tax_rates.NSITF_RATE,
        levy_payable=round_money(total_payroll * tax_rates.NSITF_RATE),
        is_applicable=total_payroll > 0,
        note="NSITF employer contribution at 1% of payroll",
    )


def calculate_itf(annual_payroll: Decimal, employee_count: int, annual_turnover: Decimal) -> LevyResult:
    """Industrial Training Fund levy at 1% of annual payroll.

    Applies to employers with at least 5 employees or a turnover of at
    least NGN 50m.
    """
    payroll = round_money(max(ZERO, annual_payroll))
    applicable = (
        employee_count >= tax_rates.ITF_EMPLOYEE_THRESHOLD
        or annual_turnover >= tax_rates.ITF_TURNOVER_THRESHOLD
    )
    if not applicable:
        return LevyResult(
            name="ITF",
            base=payroll,
            rate=tax_rates.ITF_RATE,
            levy_payable=ZERO,
            is_applicable=False,
            note="ITF levy applies to employers with 5+ employees or NGN 50m+ turnover",
        )
    return LevyResult(
        name="ITF",
        base=payroll,
        rate=tax_rates.ITF_RATE,
        levy_payable=round_money(payroll * tax_rates.ITF_RATE),
        is_applicable=True,
        note="Industrial Training Fund levy at 1% of annual payroll",
    )


def calculate_company_levies(
    net_profit: Decimal,
    profit_before_tax: Decimal,
    industry: Optional[str],
    monthly_payroll: Decimal,
    employee_count: int,
    annual_turnover: Decimal,
) -> CompanyLevies:
    """All statutory company levies for a year."""
    return CompanyLevies(
        police_levy=calculate_police_levy(net_profit),
        naseni_levy=calculate_naseni_levy(profit_before_tax, industry),
        nsitf=calculate_nsitf(monthly_payroll),
        itf=calculate_itf(monthly_payroll * 12, employee_count, annual_turnover),
    )


def calculate_cra(gross_income: Decimal) -> Decimal:
    """Consolidated relief allowance for an individual."""
    fixed = max(tax_rates.CRA_FIXED, gross_income * tax_rates.CRA_GROSS_PERCENT)
    return round_money(fixed + gross_income * tax_rates.CRA_ADDITIONAL_PERCENT)


def apply_pit_bands(taxable_income: Decimal) -> list[TaxBand]:
    """Split taxable income across the progressive PIT bands."""
    bands = []
    remaining = taxable_income
    lower = ZERO
    for width, rate in tax_rates.PIT_BANDS:
        if remaining <= 0:
            break
        portion = remaining if width is None else min(remaining, width)
        upper = None if width is None else lower + width
        bands.append(
            TaxBand(
                lower=lower,
                upper=upper,
                rate=rate,
                taxable_amount=round_money(portion),
                tax=round_money(portion * rate),
            )
        )
        remaining -= portion
        if upper is not None:
            lower = upper
    return bands


def assess_company_income_tax(
    year: int,
    turnover: Decimal,
    cost_of_sales: Decimal,
    operating_expenses: Decimal,
    annual_payroll: Decimal = ZERO,
    employee_count: int = 0,
    industry: Optional[str] = None,
) -> IncomeTaxAssessment:
    """Company income tax by turnover tier, with tertiary education tax.

    Statutory levies (Police Trust Fund, NASENI, NSITF, ITF) are attached to
    the assessment but are remitted separately, so they are not part of
    total_due.
    """
    profit = max(ZERO, turnover - cost_of_sales - operating_expenses)
    lower = ZERO
    for upper, rate, label in tax_rates.CIT_TIERS:
        if upper is None or turnover <= upper:
            break
        lower = upper
    tax = round_money(profit * rate)
    notes = [f"{label.capitalize()} company: turnover {round_money(turnover)}"]
    tet = ZERO
    if label != "small":
        tet = round_money(profit * tax_rates.TERTIARY_EDUCATION_TAX_RATE)
        notes.append("Tertiary education tax at 3% of assessable profit")
    else:
        notes.append("Small companies are exempt from CIT and tertiary education tax")
    levies = calculate_company_levies(
        net_profit=profit,
        profit_before_tax=profit,
        industry=industry,
        monthly_payroll=annual_payroll / 12,
        employee_count=employee_count,
        annual_turnover=turnover,
    )
    if levies.total_levies > 0:
        notes.append(f"Company levies: {levies.total_levies}")
    return IncomeTaxAssessment(
        year=year,
        taxpayer_type=TaxpayerType.COMPANY,
        tax_type=TaxType.CIT,
        turnover=round_money(turnover),
        taxable_income=round_money(profit),
        bands=(
            TaxBand(lower=lower, upper=upper, rate=rate, taxable_amount=round_money(profit), tax=tax),
        ),
        tax_due=tax,
        tertiary_education_tax=tet,
        notes=tuple(notes),
        levies=levies,
    )


def assess_personal_income_tax(
    year: int, turnover: Decimal, cost_of_sales: Decimal, operating_expenses: Decimal
) -> IncomeTaxAssessment:
    """Personal income tax with CRA, progressive bands and minimum tax."""
    gross_after_expenses = max(ZERO, turnover - cost_of_sales - operating_expenses)
    cra = calculate_cra(turnover)
    taxable_income = max(ZERO, gross_after_expenses - cra)
    bands = apply_pit_bands(taxable_income)
    tax = sum((band.tax for band in bands), ZERO)
    notes = [f"Consolidated relief allowance: {cra}"]

    minimum_tax = round_money(turnover * tax_rates.MINIMUM_TAX_RATE)
    minimum_applied = False
    if turnover > 0 and tax < minimum_tax:
        tax = minimum_tax
        minimum_applied = True
        notes.append(f"Minimum tax applied: 1% of gross income = {minimum_tax}")

    return IncomeTaxAssessment(
        year=year,
        taxpayer_type=TaxpayerType.INDIVIDUAL,
        tax_type=TaxType.PIT,
        turnover=round_money(turnover),
        taxable_income=round_money(taxable_income),
        bands=tuple(bands),
        tax_due=round_money(tax),
        minimum_tax_applied=minimum_applied,
        notes=tuple(notes),
    )


class TaxComputationEngine:
    """Per-transaction tax computations with running totals."""

    def __init__(self, profile: Optional[TaxProfile] = None):
        """Initialize the engine.

        Args:
            profile: Taxpayer settings; defaults to an unregistered company
        """
        self.profile = profile or TaxProfile()
        self._results: dict[str, TaxComputationResult] = {}
        self._totals: dict[TaxType, Decimal] = defaultdict(lambda: ZERO)

    def line_items(self, transaction: RawTransaction, classification: Classification) -> list[TaxLineItem]:
        """Tax line items for a transaction, without recording them."""
        amount = transaction.amount
        items = []
        for tax_type in classification.tax_types:
            if tax_type == TaxType.VAT:
                items.append(calculate_vat(amount, inclusive=self.profile.prices_include_vat))
            elif tax_type == TaxType.INPUT_VAT:
                items.append(
                    calculate_vat(amount, inclusive=self.profile.prices_include_vat,
                                  tax_type=TaxType.INPUT_VAT)
                )
            elif tax_type == TaxType.WHT:
                items.append(calculate_wht(classification.payment_type, amount, transaction.is_resident))
            elif tax_type == TaxType.CGT:
                items.append(calculate_cgt(amount, transaction.acquisition_cost))
            elif tax_type == TaxType.STAMP_DUTY:
                items.append(calculate_stamp_duty(classification.document_type, amount))
            # Income taxes are assessed over the year, not per transaction
        return items

    def evaluate(self, transaction: RawTransaction, classification: Classification) -> TaxComputationResult:
        """Compute taxes for a transaction without recording them."""
        items = self.line_items(transaction, classification)
        total_tax = sum(
            (item.tax_amount for item in items if item.tax_type != TaxType.INPUT_VAT), ZERO
        )
        return TaxComputationResult(
            transaction_id=transaction.id,
            transaction_date=transaction.date,
            amount=transaction.amount,
            taxes_applied=tuple(items),
            total_tax=total_tax,
            net_amount=transaction.amount - total_tax,
            warnings=tuple(item.warning for item in items if item.warning),
        )

    def compute(self, transaction: RawTransaction, classification: Classification) -> TaxComputationResult:
        """Compute and record taxes for a transaction.

        Recomputing for an id that was already computed replaces the earlier
        result; running totals have the old result subtracted before the new
        one is added.

        Args:
            transaction: Raw transaction
            classification: Its classification

        Returns:
            Tax computation result
        """
        result = self.evaluate(transaction, classification)
        self.record(result)
        return result

    def record(self, result: TaxComputationResult) -> None:
        """Store a result, replacing any earlier one for the same transaction."""
        self.remove(result.transaction_id)
        self._results[result.transaction_id] = result
        self._add_to_totals(result, 1)

    def remove(self, transaction_id: str) -> None:
        """Forget the result for a transaction, if any."""
        previous = self._results.pop(transaction_id, None)
        if previous is not None:
            self._add_to_totals(previous, -1)

    def restore(self, results: Iterable[TaxComputationResult]) -> None:
        """Replace all results, recomputing totals from scratch."""
        self._results = {}
        self._totals = defaultdict(lambda: ZERO)
        for result in results:
            self.record(result)

    def results(self) -> dict[str, TaxComputationResult]:
        """Copy of the results keyed by transaction id."""
        return dict(self._results)

    def get_result(self, transaction_id: str) -> Optional[TaxComputationResult]:
        return self._results.get(transaction_id)

    def _add_to_totals(self, result: TaxComputationResult, sign: int) -> None:
        for item in result.taxes_applied:
            if item.tax_type in TRACKED_TAXES:
                self._totals[item.tax_type] += sign * item.tax_amount

    def get_tax_summary(self) -> TaxSummary:
        """Running totals across all recorded results.

        Input VAT is only claimed as a credit by VAT-registered filers.
        """
        return self._summary(self._totals)

    def recalculate_summary(self) -> TaxSummary:
        """Totals rebuilt from the stored results rather than the running sums."""
        totals: dict[TaxType, Decimal] = defaultdict(lambda: ZERO)
        for result in self._results.values():
            for item in result.taxes_applied:
                if item.tax_type in TRACKED_TAXES:
                    totals[item.tax_type] += item.tax_amount
        return self._summary(totals)

    def _summary(self, totals: dict[TaxType, Decimal]) -> TaxSummary:
        total_vat = totals[TaxType.VAT]
        input_vat_credit = totals[TaxType.INPUT_VAT] if self.profile.is_vat_registered else ZERO
        net_vat_payable = total_vat - input_vat_credit
        total_wht = totals[TaxType.WHT]
        total_cgt = totals[TaxType.CGT]
        total_stamp_duty = totals[TaxType.STAMP_DUTY]
        return TaxSummary(
            total_vat=total_vat,
            input_vat_credit=input_vat_credit,
            net_vat_payable=net_vat_payable,
            total_wht=total_wht,
            total_cgt=total_cgt,
            total_stamp_duty=total_stamp_duty,
            grand_total=max(ZERO, net_vat_payable) + total_wht + total_cgt + total_stamp_duty,
        )

    def generate_schedule(
        self,
        as_of: Optional[date] = None,
        remitted: Iterable[str] = (),
        assessments: Iterable[IncomeTaxAssessment] = (),
    ) -> list[TaxScheduleEntry]:
        """Bucket liabilities by tax type and period.

        Args:
            as_of: Date used to decide whether a period has closed; defaults to today
            remitted: Ids of schedule entries already paid
            assessments: Yearly income tax assessments to schedule

        Returns:
            Schedule entries sorted by period then tax type
        """
        as_of = as_of or date.today()
        remitted = set(remitted)
        amounts: dict[tuple[TaxType, str], Decimal] = defaultdict(lambda: ZERO)
        transaction_ids: dict[tuple[TaxType, str], list[str]] = defaultdict(list)

        for result in self._results.values():
            period = month_period(result.transaction_date)
            for item in result.taxes_applied:
                if item.tax_type not in TRACKED_TAXES or item.tax_amount == 0:
                    continue
                amount = item.tax_amount
                tax_type = item.tax_type
                if tax_type == TaxType.INPUT_VAT:
                    if not self.profile.is_vat_registered:
                        continue
                    tax_type = TaxType.VAT
                    amount = -amount
                key = (tax_type, period)
                amounts[key] += amount
                if result.transaction_id not in transaction_ids[key]:
                    transaction_ids[key].append(result.transaction_id)

        entries = []
        for (tax_type, period), amount in amounts.items():
            # Months where input VAT covers output VAT owe nothing
            if round_money(amount) <= 0:
                continue
            _, period_end = get_period_range(period)
            entries.append(
                self._schedule_entry(
                    tax_type, period, period_end, self._due_date(tax_type, period_end),
                    amount, transaction_ids[(tax_type, period)], as_of, remitted,
                )
            )

        for assessment in assessments:
            if assessment.total_due <= 0:
                continue
            period_end = date(assessment.year, 12, 31)
            period = year_period(period_end)
            entries.append(
                self._schedule_entry(
                    assessment.tax_type, period, period_end, date(assessment.year + 1, 6, 30),
                    assessment.total_due, [], as_of, remitted,
                )
            )

        return sorted(entries, key=lambda entry: (entry.period, entry.tax_type.value))

    @staticmethod
    def _due_date(tax_type: TaxType, period_end: date) -> date:
        day = tax_rates.DUE_DAY_OF_NEXT_MONTH.get(tax_type.value)
        if day is not None:
            return next_month_day(period_end, day)
        return period_end + timedelta(days=tax_rates.DUE_DAYS_AFTER_PERIOD[tax_type.value])

    @staticmethod
    def _schedule_entry(
        tax_type, period, period_end, due_date, amount, transaction_ids, as_of, remitted
    ) -> TaxScheduleEntry:
        entry_id = f"{tax_type.value}-{period}"
        if entry_id in remitted:
            status = ScheduleStatus.REMITTED
        elif as_of > period_end:
            status = ScheduleStatus.DUE
        else:
            status = ScheduleStatus.DRAFT
        return TaxScheduleEntry(
            id=entry_id,
            tax_type=tax_type,
            period=period,
            due_date=due_date,
            tax_amount=round_money(amount),
            status=status,
            transaction_ids=tuple(transaction_ids),
        )

    def assess_income_tax(
        self,
        year: int,
        turnover: Decimal,
        cost_of_sales: Decimal,
        operating_expenses: Decimal,
        annual_payroll: Decimal = ZERO,
    ) -> IncomeTaxAssessment:
        """Assess CIT or PIT for a year depending on the taxpayer type.

        Companies also get their statutory levies, using the profile's
        industry and employee count.
        """
        if self.profile.taxpayer_type == TaxpayerType.INDIVIDUAL:
            return assess_personal_income_tax(year, turnover, cost_of_sales, operating_expenses)
        return assess_company_income_tax(
            year,
            turnover,
            cost_of_sales,
            operating_expenses,
            annual_payroll=annual_payroll,
            employee_count=self.profile.employee_count,
            industry=self.profile.industry,
        )
