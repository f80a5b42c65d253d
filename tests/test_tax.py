"""Tests for the tax computation engine and calculators."""

import pytest
from datetime import date
from decimal import Decimal

from taxledger.domain.entities import (
    Classification,
    Confidence,
    RawTransactionType,
    ScheduleStatus,
    TaxProfile,
    TaxType,
    TaxpayerType,
    TransactionType,
)
from taxledger.domain.tax import (
    TaxComputationEngine,
    apply_pit_bands,
    assess_company_income_tax,
    assess_personal_income_tax,
    calculate_cgt,
    calculate_company_levies,
    calculate_itf,
    calculate_naseni_levy,
    calculate_nsitf,
    calculate_police_levy,
    calculate_cra,
    calculate_stamp_duty,
    calculate_vat,
    calculate_wht,
)

SALE = Classification(TransactionType.INCOME, (TaxType.VAT,), Confidence.HIGH, "sales")
PURCHASE = Classification(TransactionType.COST_OF_SALES, (TaxType.INPUT_VAT,), Confidence.HIGH, "cost of sales")
RENT = Classification(TransactionType.EXPENSE, (TaxType.WHT,), Confidence.HIGH, "rent", payment_type="rent")
LAND_SALE = Classification(
    TransactionType.ASSET_DISPOSAL,
    (TaxType.CGT, TaxType.STAMP_DUTY),
    Confidence.HIGH,
    "property disposal",
    document_type="deed",
)


class TestCalculators:
    """Tests for the individual tax calculators."""

    def test_vat_exclusive(self):
        """Test VAT added on top of a net amount."""
        item = calculate_vat(Decimal("100000"))
        assert item.tax_amount == Decimal("7500.00")
        assert item.rate == Decimal("0.075")

    def test_vat_inclusive(self):
        """Test VAT extracted from a gross amount."""
        assert calculate_vat(Decimal("107500"), inclusive=True).tax_amount == Decimal("7500.00")

    def test_wht_rent(self):
        """Test resident rent WHT at 10%."""
        item = calculate_wht("rent", Decimal("500000"))
        assert item.rate == Decimal("0.10")
        assert item.tax_amount == Decimal("50000.00")
        assert item.warning is None

    def test_wht_non_resident_rate(self):
        """Test that non-residents pay the higher professional fee rate."""
        resident = calculate_wht("professional_fees_individual", Decimal("100000"))
        non_resident = calculate_wht("professional_fees_individual", Decimal("100000"), is_resident=False)
        assert resident.tax_amount == Decimal("5000.00")
        assert non_resident.tax_amount == Decimal("10000.00")

    def test_wht_unknown_payment_type(self):
        """Test that an unknown payment type is taxed at zero with a warning."""
        item = calculate_wht("gifts", Decimal("100000"))
        assert item.tax_amount == Decimal("0.00")
        assert "gifts" in item.warning

    def test_cgt(self):
        """Test CGT at 10% of the gain."""
        item = calculate_cgt(Decimal("1500000"), Decimal("1000000"))
        assert item.tax_amount == Decimal("50000.00")

    def test_cgt_with_costs(self):
        """Test that selling expenses and improvements reduce the gain."""
        item = calculate_cgt(Decimal("1500000"), Decimal("1000000"), Decimal("100000"), Decimal("200000"))
        assert item.tax_amount == Decimal("20000.00")

    def test_cgt_loss(self):
        """Test that a loss attracts no CGT."""
        assert calculate_cgt(Decimal("800000"), Decimal("1000000")).tax_amount == Decimal("0.00")

    def test_cgt_without_cost(self):
        """Test that an unknown cost treats the whole proceeds as gain."""
        item = calculate_cgt(Decimal("1000000"), None)
        assert item.tax_amount == Decimal("100000.00")
        assert item.warning is not None

    def test_stamp_duty_deed(self):
        """Test percentage stamp duty on a deed."""
        assert calculate_stamp_duty("deed", Decimal("1000000")).tax_amount == Decimal("15000.00")

    def test_stamp_duty_flat(self):
        """Test flat stamp duty on an agreement."""
        assert calculate_stamp_duty("agreement", Decimal("5000000")).tax_amount == Decimal("500.00")

    def test_stamp_duty_bank_transfer_threshold(self):
        """Test that transfers below 10,000 carry no stamp duty."""
        assert calculate_stamp_duty("bank_transfer", Decimal("9999")).tax_amount == Decimal("0")
        assert calculate_stamp_duty("bank_transfer", Decimal("10000")).tax_amount == Decimal("50.00")


class TestIncomeTax:
    """Tests for company and personal income tax."""

    def test_small_company_exempt(self):
        """Test that small companies pay no CIT or TET."""
        assessment = assess_company_income_tax(
            2024, Decimal("20000000"), Decimal("5000000"), Decimal("5000000")
        )
        assert assessment.tax_due == Decimal("0.00")
        assert assessment.tertiary_education_tax == Decimal("0")
        assert assessment.total_due == Decimal("0")

    def test_medium_company(self):
        """Test CIT at 20% plus tertiary education tax."""
        assessment = assess_company_income_tax(
            2024, Decimal("50000000"), Decimal("10000000"), Decimal("10000000")
        )
        assert assessment.tax_type == TaxType.CIT
        assert assessment.taxable_income == Decimal("30000000.00")
        assert assessment.tax_due == Decimal("6000000.00")
        assert assessment.tertiary_education_tax == Decimal("900000.00")
        assert assessment.total_due == Decimal("6900000.00")

    def test_large_company(self):
        """Test CIT at 30% for large companies."""
        assessment = assess_company_income_tax(
            2024, Decimal("200000000"), Decimal("60000000"), Decimal("40000000")
        )
        assert assessment.tax_due == Decimal("30000000.00")

    def test_cra(self):
        """Test the consolidated relief allowance."""
        assert calculate_cra(Decimal("5000000")) == Decimal("1200000.00")
        assert calculate_cra(Decimal("30000000")) == Decimal("6300000.00")

    def test_pit_bands(self):
        """Test progressive bands on 3.8 million."""
        bands = apply_pit_bands(Decimal("3800000"))
        assert [band.tax for band in bands] == [
            Decimal("21000.00"),
            Decimal("33000.00"),
            Decimal("75000.00"),
            Decimal("95000.00"),
            Decimal("336000.00"),
            Decimal("144000.00"),
        ]
        assert bands[-1].upper is None

    def test_personal_income_tax(self):
        """Test PIT after CRA."""
        assessment = assess_personal_income_tax(2024, Decimal("5000000"), Decimal("0"), Decimal("0"))
        assert assessment.taxpayer_type == TaxpayerType.INDIVIDUAL
        assert assessment.taxable_income == Decimal("3800000.00")
        assert assessment.tax_due == Decimal("704000.00")
        assert not assessment.minimum_tax_applied

    def test_minimum_tax(self):
        """Test that minimum tax applies when computed tax is lower."""
        assessment = assess_personal_income_tax(
            2024, Decimal("1000000"), Decimal("900000"), Decimal("0")
        )
        assert assessment.tax_due == Decimal("10000.00")
        assert assessment.minimum_tax_applied


class TestCompanyLevies:
    """Tests for the Police, NASENI, NSITF and ITF levies."""

    def test_police_levy(self):
        """Test the Police Trust Fund levy at 0.005% of net profit."""
        levy = calculate_police_levy(Decimal("10000000"))
        assert levy.levy_payable == Decimal("500.00")
        assert levy.is_applicable

    def test_police_levy_on_loss(self):
        """Test that a loss carries no police levy."""
        assert calculate_police_levy(Decimal("-250000")).levy_payable == Decimal("0.00")

    def test_naseni_levy_for_listed_industry(self):
        """Test NASENI at 0.25% of profit before tax for ICT."""
        levy = calculate_naseni_levy(Decimal("1000000"), "ICT")
        assert levy.is_applicable
        assert levy.levy_payable == Decimal("2500.00")

    def test_naseni_levy_other_industry(self):
        """Test that NASENI does not apply outside the listed industries."""
        levy = calculate_naseni_levy(Decimal("1000000"), "retail")
        assert not levy.is_applicable
        assert levy.levy_payable == Decimal("0.00")
        assert "banking" in levy.note
        assert not calculate_naseni_levy(Decimal("1000000"), None).is_applicable

    def test_nsitf(self):
        """Test NSITF at 1% of a year of payroll."""
        levy = calculate_nsitf(Decimal("100000"))
        assert levy.base == Decimal("1200000.00")
        assert levy.levy_payable == Decimal("12000.00")
        assert not calculate_nsitf(Decimal("0")).is_applicable

    def test_itf_thresholds(self):
        """Test that ITF needs five employees or NGN 50m turnover."""
        payroll = Decimal("2400000")
        small = calculate_itf(payroll, 4, Decimal("49999999"))
        by_staff = calculate_itf(payroll, 5, Decimal("0"))
        by_turnover = calculate_itf(payroll, 0, Decimal("50000000"))

        assert not small.is_applicable
        assert small.levy_payable == Decimal("0.00")
        assert by_staff.levy_payable == Decimal("24000.00")
        assert by_turnover.is_applicable

    def test_company_levies_total(self):
        """Test the combined levies for a year."""
        levies = calculate_company_levies(
            net_profit=Decimal("10000000"),
            profit_before_tax=Decimal("10000000"),
            industry="banking",
            monthly_payroll=Decimal("200000"),
            employee_count=8,
            annual_turnover=Decimal("80000000"),
        )
        assert levies.total_levies == Decimal("73500.00")

    def test_company_assessment_carries_levies(self):
        """Test that a company assessment reports levies apart from the total due."""
        assessment = assess_company_income_tax(
            2024,
            Decimal("50000000"),
            Decimal("10000000"),
            Decimal("10000000"),
            annual_payroll=Decimal("6000000"),
            employee_count=6,
            industry="ict",
        )

        levies = assessment.levies
        assert levies.police_levy.levy_payable == Decimal("1500.00")
        assert levies.naseni_levy.levy_payable == Decimal("75000.00")
        assert levies.nsitf.levy_payable == Decimal("60000.00")
        assert levies.itf.levy_payable == Decimal("60000.00")
        assert assessment.total_due == Decimal("6900000.00")

    def test_personal_assessment_has_no_levies(self):
        """Test that individuals are not charged company levies."""
        assessment = assess_personal_income_tax(2024, Decimal("5000000"), Decimal("0"), Decimal("0"))
        assert assessment.levies is None


class TestTaxComputationEngine:
    """Tests for per-transaction computation and totals."""

    def test_compute_rent(self, make_transaction):
        """Test WHT on rent and the net payment."""
        engine = TaxComputationEngine()
        result = engine.compute(
            make_transaction(amount="500000", description="Office rent", category="rent"), RENT
        )

        assert result.total_tax == Decimal("50000.00")
        assert result.net_amount == Decimal("450000.00")
        assert engine.get_tax_summary().total_wht == Decimal("50000.00")

    def test_compute_land_sale(self, make_transaction):
        """Test CGT and stamp duty on a disposal."""
        engine = TaxComputationEngine()
        result = engine.compute(
            make_transaction(
                amount="1500000", description="Sold land", acquisition_cost=Decimal("1000000")
            ),
            LAND_SALE,
        )

        taxes = {item.tax_type: item.tax_amount for item in result.taxes_applied}
        assert taxes == {TaxType.CGT: Decimal("50000.00"), TaxType.STAMP_DUTY: Decimal("22500.00")}
        assert result.total_tax == Decimal("72500.00")

    def test_recompute_replaces_previous_result(self, make_transaction):
        """Test that computing twice for one id does not double the totals."""
        engine = TaxComputationEngine()
        transaction = make_transaction()
        engine.compute(transaction, SALE)
        once = engine.get_tax_summary()
        engine.compute(transaction, SALE)

        assert engine.get_tax_summary() == once
        assert engine.recalculate_summary() == once
        assert once.total_vat == Decimal("7500.00")

    def test_input_vat_credit_for_registered_filer(self, make_transaction):
        """Test that registered filers net input VAT against output VAT."""
        engine = TaxComputationEngine(TaxProfile(is_vat_registered=True))
        engine.compute(make_transaction(id="S1"), SALE)
        engine.compute(make_transaction(id="P1", amount="40000", category="purchases"), PURCHASE)

        summary = engine.get_tax_summary()
        assert summary.total_vat == Decimal("7500.00")
        assert summary.input_vat_credit == Decimal("3000.00")
        assert summary.net_vat_payable == Decimal("4500.00")
        assert summary.grand_total == Decimal("4500.00")

    def test_no_input_vat_credit_when_unregistered(self, make_transaction):
        """Test that unregistered businesses cannot claim input VAT."""
        engine = TaxComputationEngine()
        engine.compute(make_transaction(id="S1"), SALE)
        result = engine.compute(make_transaction(id="P1", amount="40000", category="purchases"), PURCHASE)

        assert result.total_tax == Decimal("0")
        summary = engine.get_tax_summary()
        assert summary.input_vat_credit == Decimal("0")
        assert summary.net_vat_payable == Decimal("7500.00")

    def test_grand_total_ignores_vat_refund(self, make_transaction):
        """Test that excess input VAT does not reduce other taxes."""
        engine = TaxComputationEngine(TaxProfile(is_vat_registered=True))
        engine.compute(make_transaction(id="P1", amount="40000", category="purchases"), PURCHASE)
        engine.compute(make_transaction(id="R1", amount="500000", category="rent"), RENT)

        summary = engine.get_tax_summary()
        assert summary.net_vat_payable == Decimal("-3000.00")
        assert summary.grand_total == Decimal("50000.00")

    def test_remove(self, make_transaction):
        """Test that removing a result takes it out of the totals."""
        engine = TaxComputationEngine()
        engine.compute(make_transaction(), SALE)
        engine.remove("T1")

        assert engine.get_result("T1") is None
        assert engine.get_tax_summary().total_vat == Decimal("0")

    def test_assess_income_tax_by_taxpayer_type(self):
        """Test that individuals get PIT and companies CIT."""
        company = TaxComputationEngine()
        individual = TaxComputationEngine(TaxProfile(taxpayer_type=TaxpayerType.INDIVIDUAL))
        args = (2024, Decimal("5000000"), Decimal("0"), Decimal("0"))

        assert company.assess_income_tax(*args).tax_type == TaxType.CIT
        assert individual.assess_income_tax(*args).tax_type == TaxType.PIT


class TestSchedule:
    """Tests for remittance schedules."""

    @pytest.fixture
    def tax_engine(self, make_transaction):
        """Engine with a March sale, a March rent payment and an April land sale."""
        engine = TaxComputationEngine()
        engine.compute(make_transaction(id="S1"), SALE)
        engine.compute(make_transaction(id="R1", amount="500000", category="rent"), RENT)
        engine.compute(
            make_transaction(
                id="L1",
                amount="1500000",
                acquisition_cost=Decimal("1000000"),
                txn_date=date(2024, 4, 2),
            ),
            LAND_SALE,
        )
        return engine

    def test_schedule_entries(self, tax_engine):
        """Test bucketing by tax type and month with due dates."""
        schedule = {entry.id: entry for entry in tax_engine.generate_schedule(as_of=date(2024, 5, 31))}

        assert set(schedule) == {"VAT-2024-03", "WHT-2024-03", "CGT-2024-04", "STAMP_DUTY-2024-04"}
        assert schedule["VAT-2024-03"].tax_amount == Decimal("7500.00")
        assert schedule["VAT-2024-03"].due_date == date(2024, 4, 21)
        assert schedule["WHT-2024-03"].due_date == date(2024, 4, 21)
        assert schedule["CGT-2024-04"].due_date == date(2024, 5, 30)
        assert schedule["STAMP_DUTY-2024-04"].due_date == date(2024, 5, 30)
        assert schedule["WHT-2024-03"].transaction_ids == ("R1",)

    def test_schedule_status(self, tax_engine):
        """Test draft, due and remitted statuses."""
        schedule = {
            entry.id: entry
            for entry in tax_engine.generate_schedule(as_of=date(2024, 4, 10), remitted={"WHT-2024-03"})
        }

        assert schedule["VAT-2024-03"].status == ScheduleStatus.DUE
        assert schedule["WHT-2024-03"].status == ScheduleStatus.REMITTED
        assert schedule["CGT-2024-04"].status == ScheduleStatus.DRAFT

    def test_schedule_sorted_by_period(self, tax_engine):
        """Test that entries are ordered by period."""
        periods = [entry.period for entry in tax_engine.generate_schedule(as_of=date(2024, 5, 31))]
        assert periods == sorted(periods)

    def test_income_tax_scheduled_for_june(self):
        """Test that a yearly assessment is due on 30 June of the following year."""
        engine = TaxComputationEngine()
        assessment = assess_company_income_tax(
            2024, Decimal("50000000"), Decimal("10000000"), Decimal("10000000")
        )
        schedule = engine.generate_schedule(as_of=date(2025, 1, 15), assessments=[assessment])

        assert len(schedule) == 1
        assert schedule[0].id == "CIT-2024"
        assert schedule[0].due_date == date(2025, 6, 30)
        assert schedule[0].tax_amount == Decimal("6900000.00")
        assert schedule[0].status == ScheduleStatus.DUE

    def test_registered_filer_nets_input_vat(self, make_transaction):
        """Test that input VAT reduces the VAT remittance for registered filers."""
        engine = TaxComputationEngine(TaxProfile(is_vat_registered=True))
        engine.compute(make_transaction(id="S1"), SALE)
        engine.compute(make_transaction(id="P1", amount="40000", category="purchases"), PURCHASE)

        (entry,) = engine.generate_schedule(as_of=date(2024, 5, 1))
        assert entry.id == "VAT-2024-03"
        assert entry.tax_amount == Decimal("4500.00")
        assert entry.transaction_ids == ("S1", "P1")

    def test_month_without_net_vat_is_not_scheduled(self, make_transaction):
        """Test that a month whose input VAT covers output VAT owes nothing."""
        engine = TaxComputationEngine(TaxProfile(is_vat_registered=True))
        engine.compute(make_transaction(id="S1", amount="40000"), SALE)
        engine.compute(make_transaction(id="P1", amount="40000", category="purchases"), PURCHASE)
        engine.compute(
            make_transaction(id="P2", amount="10000", category="purchases", txn_date=date(2024, 4, 3)),
            PURCHASE,
        )

        assert engine.generate_schedule(as_of=date(2024, 5, 1)) == []

    def test_income_tax_period_is_the_year(self):
        """Test that a yearly assessment is labelled with its year."""
        assessment = assess_personal_income_tax(2024, Decimal("5000000"), Decimal("0"), Decimal("0"))
        (entry,) = TaxComputationEngine().generate_schedule(
            as_of=date(2025, 1, 15), assessments=[assessment]
        )

        assert entry.period == "2024"
        assert entry.tax_type == TaxType.PIT
