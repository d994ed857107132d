import json
from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from .forms import ContractForm, PropertyExpenseForm, ReconciliationUpdateForm
from .models import (
    Apartment,
    Contract,
    Payment,
    Property,
    PropertyExpense,
    SideCostReconciliation,
    TenantRecord,
)
from .services.payment_tracker_service import MonthlyPaymentTrackerService
from .services.reconciliation_service import (
    ReconciliationExistsError,
    ReconciliationLockedError,
    SideCostReconciliationService,
)
from .services.side_cost_calculation_service import (
    ApartmentInput,
    ContractInput,
    DistributionMethod,
    ReconciliationInput,
    SettlementStatus,
    TenantRecordInput,
    calculate_reconciliation,
    distribution_strategy_for,
    month_difference,
    occupied_months,
    settlement_status,
    summarize_by_category,
)


def full_year_contract(contract_id, status="active", tenant=None):
    return ContractInput(
        id=contract_id,
        status=status,
        start_date=date(2023, 1, 1),
        end_date=None,
        tenant_record=tenant,
    )


class SideCostCalculationTests(SimpleTestCase):
    def _input(self, apartments, *, total="12000.00", method=DistributionMethod.EQUAL, **kwargs):
        return ReconciliationInput(
            total_expenses=Decimal(total),
            apartments=apartments,
            distribution_method=method,
            year=2024,
            **kwargs,
        )

    def test_full_year_equal_distribution_creates_debt(self):
        apartments = [
            ApartmentInput(
                id=index,
                unit_number=f"Top {index}",
                area=Decimal("70.00"),
                additional_costs=Decimal("300.00"),
                contracts=(full_year_contract(index),),
            )
            for index in range(1, 4)
        ]

        result = calculate_reconciliation(self._input(apartments))

        self.assertEqual(result.apartment_count, 3)
        self.assertEqual(result.per_apartment_share, Decimal("4000"))
        for detail in result.details:
            self.assertEqual(detail.months_occupied, Decimal("12"))
            self.assertEqual(detail.total_estimated_paid, Decimal("3600.00"))
            self.assertEqual(detail.difference, Decimal("400.00"))
            self.assertEqual(detail.status, SettlementStatus.DEBT)
        self.assertEqual(result.total_debt, Decimal("1200.00"))
        self.assertEqual(result.total_credit, Decimal("0.00"))

    def test_area_based_distribution_is_proportional(self):
        apartments = [
            ApartmentInput(id=1, unit_number="Top 1", area=Decimal("50.00")),
            ApartmentInput(id=2, unit_number="Top 2", area=Decimal("100.00")),
        ]

        result = calculate_reconciliation(
            self._input(apartments, total="1500.00", method=DistributionMethod.AREA_BASED)
        )

        self.assertEqual([detail.actual_share for detail in result.details], [Decimal("500"), Decimal("1000")])
        self.assertEqual(sum(detail.actual_share for detail in result.details), Decimal("1500.00"))

    def test_area_based_distribution_conserves_total_for_uneven_areas(self):
        areas = [Decimal("33.33"), Decimal("47.10"), Decimal("19.58")]
        total = Decimal("1000.00")
        total_area = sum(areas, Decimal("0"))
        apartments = [
            ApartmentInput(id=index, unit_number=f"Top {index}", area=area)
            for index, area in enumerate(areas, start=1)
        ]

        result = calculate_reconciliation(
            self._input(apartments, total=str(total), method=DistributionMethod.AREA_BASED)
        )

        tolerance = total * Decimal("1e-6")
        shares = [detail.actual_share for detail in result.details]
        self.assertLessEqual(abs(sum(shares, Decimal("0")) - total), tolerance)
        for area, share in zip(areas, shares):
            self.assertLessEqual(abs(share - area / total_area * total), tolerance)

    def test_area_based_with_zero_total_area_yields_zero_shares(self):
        apartments = [
            ApartmentInput(id=1, unit_number="Top 1", area=Decimal("0.00")),
            ApartmentInput(id=2, unit_number="Top 2", area=Decimal("0.00")),
        ]

        result = calculate_reconciliation(
            self._input(apartments, total="1500.00", method=DistributionMethod.AREA_BASED)
        )

        self.assertEqual([detail.actual_share for detail in result.details], [Decimal("0.00"), Decimal("0.00")])
        self.assertTrue(all(detail.status == SettlementStatus.BALANCED for detail in result.details))

    def test_custom_distribution_uses_cost_share(self):
        apartments = [
            ApartmentInput(id=1, unit_number="Top 1", area=Decimal("80.00"), cost_share=Decimal("1.00")),
            ApartmentInput(id=2, unit_number="Top 2", area=Decimal("20.00"), cost_share=Decimal("3.00")),
            ApartmentInput(id=3, unit_number="Top 3", area=Decimal("20.00"), cost_share=None),
        ]

        result = calculate_reconciliation(
            self._input(apartments, total="400.00", method=DistributionMethod.CUSTOM)
        )

        self.assertEqual(
            [detail.actual_share for detail in result.details],
            [Decimal("100"), Decimal("300"), Decimal("0")],
        )

    def test_unknown_distribution_method_raises(self):
        apartments = [ApartmentInput(id=1, unit_number="Top 1", area=Decimal("50.00"))]

        with self.assertRaises(ValueError):
            calculate_reconciliation(self._input(apartments, method="per_person"))
        with self.assertRaises(ValueError):
            distribution_strategy_for("")

    def test_equal_distribution_shares_are_identical(self):
        apartments = [
            ApartmentInput(id=index, unit_number=f"Top {index}", area=Decimal(index * 10))
            for index in range(1, 4)
        ]

        result = calculate_reconciliation(self._input(apartments, total="100.00"))

        shares = {detail.actual_share for detail in result.details}
        self.assertEqual(len(shares), 1)
        self.assertEqual(result.details[0].to_dict()["actual_share"], "33.33")
        self.assertEqual(result.details[0].difference, Decimal("33.33"))

    def test_mid_month_move_in_counts_fraction(self):
        contract = ContractInput(id=1, status="active", start_date=date(2024, 6, 16))

        months = occupied_months([contract], window_start=date(2024, 1, 1), window_end=date(2024, 12, 31))

        self.assertEqual(months, Decimal("6.5"))
        self.assertEqual(month_difference(date(2024, 6, 16), date(2024, 6, 30)), Decimal("0.5"))

    def test_cancelled_and_terminated_contracts_are_ignored(self):
        contracts = [
            full_year_contract(1, status="cancelled"),
            full_year_contract(2, status="terminated"),
        ]

        months = occupied_months(contracts, window_start=date(2024, 1, 1), window_end=date(2024, 12, 31))

        self.assertEqual(months, Decimal("0.00"))

    def test_expired_contract_is_counted_until_end_date(self):
        contract = ContractInput(
            id=1,
            status="expired",
            start_date=date(2022, 1, 1),
            end_date=date(2024, 3, 31),
        )

        months = occupied_months([contract], window_start=date(2024, 1, 1), window_end=date(2024, 12, 31))

        self.assertEqual(months, Decimal("3"))

    def test_overlapping_contracts_are_capped_at_twelve_months(self):
        contracts = [full_year_contract(1), full_year_contract(2)]

        months = occupied_months(contracts, window_start=date(2024, 1, 1), window_end=date(2024, 12, 31))

        self.assertEqual(months, Decimal("12"))

    def test_fiscal_window_overrides_calendar_year(self):
        apartments = [
            ApartmentInput(
                id=1,
                unit_number="Top 1",
                area=Decimal("60.00"),
                additional_costs=Decimal("100.00"),
                contracts=(full_year_contract(1),),
            )
        ]

        result = calculate_reconciliation(
            self._input(
                apartments,
                total="600.00",
                fiscal_year_start=date(2024, 7, 1),
                fiscal_year_end=date(2024, 12, 31),
            )
        )

        detail = result.details[0]
        self.assertEqual(detail.months_occupied, Decimal("6"))
        self.assertEqual(detail.difference, Decimal("0.00"))
        self.assertEqual(detail.status, SettlementStatus.BALANCED)

    def test_overpayment_creates_credit(self):
        apartments = [
            ApartmentInput(
                id=1,
                unit_number="Top 1",
                area=Decimal("60.00"),
                additional_costs=Decimal("150.00"),
                contracts=(full_year_contract(1),),
            )
        ]

        result = calculate_reconciliation(self._input(apartments, total="1200.00"))

        self.assertEqual(result.details[0].difference, Decimal("-600.00"))
        self.assertEqual(result.details[0].status, SettlementStatus.CREDIT)
        self.assertEqual(result.total_credit, Decimal("600.00"))
        self.assertEqual(result.total_debt, Decimal("0.00"))

    def test_settlement_status_tolerance(self):
        self.assertEqual(settlement_status(Decimal("0.01")), SettlementStatus.BALANCED)
        self.assertEqual(settlement_status(Decimal("-0.01")), SettlementStatus.BALANCED)
        self.assertEqual(settlement_status(Decimal("0.02")), SettlementStatus.DEBT)
        self.assertEqual(settlement_status(Decimal("-0.02")), SettlementStatus.CREDIT)

    def test_empty_input_returns_empty_result(self):
        result = calculate_reconciliation(self._input([], total="500.00"))

        self.assertEqual(result.apartment_count, 0)
        self.assertEqual(result.per_apartment_share, Decimal("0.00"))
        self.assertEqual(result.details, [])
        self.assertEqual(result.total_debt, Decimal("0.00"))
        self.assertEqual(result.total_credit, Decimal("0.00"))

    def test_calculation_is_repeatable(self):
        apartments = [
            ApartmentInput(
                id=1,
                unit_number="Top 1",
                area=Decimal("55.50"),
                additional_costs=Decimal("123.45"),
                contracts=(ContractInput(id=1, status="active", start_date=date(2024, 2, 10)),),
            )
        ]
        data = self._input(apartments, total="987.65", method=DistributionMethod.AREA_BASED)

        self.assertEqual(calculate_reconciliation(data).to_dict(), calculate_reconciliation(data).to_dict())

    def test_tenant_info_comes_from_active_contract(self):
        tenant = TenantRecordInput(id=7, first_name="Anna", last_name="Muster")
        apartments = [
            ApartmentInput(
                id=1,
                unit_number="Top 1",
                area=Decimal("40.00"),
                contracts=(
                    full_year_contract(1, status="expired", tenant=TenantRecordInput(id=3, first_name="Alt")),
                    full_year_contract(2, tenant=tenant),
                ),
            ),
            ApartmentInput(id=2, unit_number="Top 2", area=Decimal("40.00")),
        ]

        result = calculate_reconciliation(self._input(apartments, total="100.00"))

        self.assertEqual(result.details[0].tenant_info.to_dict(), {"tenant_id": 7, "name": "Anna Muster"})
        self.assertIsNone(result.details[1].tenant_info)

    def test_summarize_by_category(self):
        expenses = [
            {"category": "utilities", "amount": Decimal("100.00")},
            {"category": "utilities", "amount": "50.50"},
            {"category": "insurance", "amount": Decimal("200.00")},
        ]

        totals = summarize_by_category(expenses)

        self.assertEqual(totals, {"utilities": Decimal("150.50"), "insurance": Decimal("200.00")})
        self.assertEqual(summarize_by_category([]), {})


class SideCostFixtureMixin:
    def setUp(self):
        self.property = Property.objects.create(name="Hauptstraße 1", city="Wien")
        self.tenant = TenantRecord.objects.create(first_name="Anna", last_name="Muster")
        self.apartment_a = Apartment.objects.create(
            property=self.property,
            unit_number="Top 1",
            area=Decimal("50.00"),
            additional_costs=Decimal("100.00"),
            cost_share=Decimal("1.00"),
        )
        self.apartment_b = Apartment.objects.create(
            property=self.property,
            unit_number="Top 2",
            area=Decimal("100.00"),
            additional_costs=Decimal("100.00"),
            cost_share=Decimal("1.00"),
        )
        self.contract = Contract.objects.create(
            apartment=self.apartment_a,
            tenant_record=self.tenant,
            status=Contract.Status.ACTIVE,
            start_date=date(2023, 1, 1),
            monthly_rent=Decimal("700.00"),
        )
        Contract.objects.create(
            apartment=self.apartment_b,
            status=Contract.Status.ACTIVE,
            start_date=date(2023, 1, 1),
            monthly_rent=Decimal("900.00"),
        )
        PropertyExpense.objects.create(
            property=self.property,
            name="Wasser",
            category=PropertyExpense.Category.UTILITIES,
            amount=Decimal("1800.00"),
            expense_date=date(2024, 3, 15),
        )
        PropertyExpense.objects.create(
            property=self.property,
            name="Versicherung",
            category=PropertyExpense.Category.INSURANCE,
            amount=Decimal("1200.00"),
            expense_date=date(2024, 6, 1),
        )
        PropertyExpense.objects.create(
            property=self.property,
            name="Storniert",
            category=PropertyExpense.Category.OTHER,
            amount=Decimal("999.00"),
            expense_date=date(2024, 7, 1),
            is_active=False,
        )
        PropertyExpense.objects.create(
            property=self.property,
            name="Vorjahr",
            category=PropertyExpense.Category.OTHER,
            amount=Decimal("500.00"),
            expense_date=date(2023, 12, 31),
        )


class SideCostReconciliationServiceTests(SideCostFixtureMixin, TestCase):
    def test_total_expenses_only_counts_active_expenses_of_year(self):
        service = SideCostReconciliationService(self.property, 2024)

        self.assertEqual(service.total_expenses(), Decimal("3000.00"))

    def test_create_stores_calculated_reconciliation(self):
        service = SideCostReconciliationService(self.property, 2024)

        reconciliation, result = service.create(distribution_method=DistributionMethod.AREA_BASED)

        reconciliation.refresh_from_db()
        self.assertEqual(reconciliation.status, SideCostReconciliation.Status.CALCULATED)
        self.assertEqual(reconciliation.total_expenses, Decimal("3000.00"))
        self.assertEqual(reconciliation.apartment_count, 2)
        self.assertEqual(reconciliation.per_apartment_share, Decimal("1500.00"))
        self.assertIsNotNone(reconciliation.calculated_at)
        self.assertEqual(
            [row["actual_share"] for row in reconciliation.details],
            ["1000.00", "2000.00"],
        )
        self.assertEqual(
            [row["difference"] for row in reconciliation.details],
            ["-200.00", "800.00"],
        )
        self.assertEqual(reconciliation.details[0]["tenant_info"]["name"], "Anna Muster")
        self.assertEqual(result.total_debt, Decimal("800.00"))
        self.assertEqual(result.total_credit, Decimal("200.00"))
        self.assertEqual(
            service.totals_from_details(reconciliation.details),
            (Decimal("800.00"), Decimal("200.00")),
        )

    def test_create_twice_raises_exists_error(self):
        service = SideCostReconciliationService(self.property, 2024)
        first, _result = service.create(distribution_method=DistributionMethod.EQUAL)

        with self.assertRaises(ReconciliationExistsError) as ctx:
            service.create(distribution_method=DistributionMethod.EQUAL)

        self.assertEqual(ctx.exception.existing.pk, first.pk)
        self.assertIn(str(first.pk), str(ctx.exception))
        self.assertEqual(SideCostReconciliation.objects.count(), 1)

    def test_update_with_new_method_recalculates_details(self):
        service = SideCostReconciliationService(self.property, 2024)
        reconciliation, _result = service.create(distribution_method=DistributionMethod.AREA_BASED)

        reconciliation, result = service.update(
            reconciliation,
            distribution_method=DistributionMethod.EQUAL,
            notes="Neu verteilt",
        )

        reconciliation.refresh_from_db()
        self.assertIsNotNone(result)
        self.assertEqual(reconciliation.distribution_method, DistributionMethod.EQUAL.value)
        self.assertEqual(reconciliation.notes, "Neu verteilt")
        self.assertEqual(
            [row["actual_share"] for row in reconciliation.details],
            ["1500.00", "1500.00"],
        )

    def test_update_without_method_change_does_not_recalculate(self):
        service = SideCostReconciliationService(self.property, 2024)
        reconciliation, _result = service.create(distribution_method=DistributionMethod.AREA_BASED)

        _reconciliation, result = service.update(reconciliation, notes="Nur Notiz")

        self.assertIsNone(result)

    def test_finalized_reconciliation_is_locked(self):
        service = SideCostReconciliationService(self.property, 2024)
        reconciliation, _result = service.create(distribution_method=DistributionMethod.AREA_BASED)

        reconciliation, _result = service.update(reconciliation, status=SideCostReconciliation.Status.FINALIZED)

        self.assertIsNotNone(reconciliation.finalized_at)
        with self.assertRaises(ReconciliationLockedError):
            service.update(reconciliation, notes="Zu spät")
        with self.assertRaises(ReconciliationLockedError):
            SideCostReconciliationService.delete(reconciliation)
        self.assertTrue(SideCostReconciliation.objects.filter(pk=reconciliation.pk).exists())

    def test_delete_removes_draft_reconciliation(self):
        service = SideCostReconciliationService(self.property, 2024)
        reconciliation, _result = service.create(distribution_method=DistributionMethod.AREA_BASED)

        SideCostReconciliationService.delete(reconciliation)

        self.assertFalse(SideCostReconciliation.objects.exists())

    def test_history_is_recorded(self):
        service = SideCostReconciliationService(self.property, 2024)
        reconciliation, _result = service.create(distribution_method=DistributionMethod.AREA_BASED)
        service.update(reconciliation, notes="Geprüft")

        self.assertEqual(reconciliation.history.count(), 2)
        self.assertEqual(self.contract.history.count(), 1)

    def test_expense_summary_groups_by_category(self):
        service = SideCostReconciliationService(self.property, 2024)

        expenses, totals = service.expense_summary()

        self.assertEqual(len(expenses), 2)
        self.assertEqual(
            totals,
            {"utilities": Decimal("1800.00"), "insurance": Decimal("1200.00")},
        )


class ReconciliationApiTests(SideCostFixtureMixin, TestCase):
    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def _create(self, **overrides):
        payload = {"property": self.property.pk, "year": 2024, "distribution_method": "area_based"}
        payload.update(overrides)
        return self._post(reverse("reconciliation_list"), payload)

    def test_create_returns_reconciliation_with_totals(self):
        response = self._create()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        reconciliation = body["data"]["reconciliation"]
        self.assertEqual(reconciliation["status"], "calculated")
        self.assertEqual(reconciliation["total_expenses"], "3000.00")
        self.assertEqual(reconciliation["total_debt"], "800.00")
        self.assertEqual(reconciliation["total_credit"], "200.00")
        self.assertEqual(len(reconciliation["details"]), 2)

    def test_create_duplicate_returns_conflict(self):
        self._create()

        response = self._create()

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertIn("existiert bereits", body["message"])

    def test_create_unknown_property_returns_not_found(self):
        response = self._create(property=999999)

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])

    def test_create_invalid_payload_returns_bad_request(self):
        response = self._create(year="abc")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Validierungsfehler")

    def test_create_with_malformed_json_returns_bad_request(self):
        response = self.client.post(
            reverse("reconciliation_list"),
            data="{nicht json",
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_list_filters_and_paginates(self):
        self._create()
        other = Property.objects.create(name="Nebenstraße 2")
        SideCostReconciliationService(other, 2023).create(distribution_method=DistributionMethod.EQUAL)

        response = self.client.get(reverse("reconciliation_list"), {"property": self.property.pk})
        data = response.json()["data"]
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["reconciliations"][0]["year"], 2024)

        response = self.client.get(reverse("reconciliation_list"), {"page_size": 1, "page": 2})
        data = response.json()["data"]
        self.assertEqual(data["total"], 2)
        self.assertEqual(len(data["reconciliations"]), 1)
        self.assertEqual(data["reconciliations"][0]["year"], 2023)

    def test_detail_includes_expenses_and_category_totals(self):
        pk = self._create().json()["data"]["reconciliation"]["id"]

        response = self.client.get(reverse("reconciliation_detail", args=[pk]))

        self.assertEqual(response.status_code, 200)
        reconciliation = response.json()["data"]["reconciliation"]
        self.assertEqual(len(reconciliation["expenses"]), 2)
        self.assertEqual(
            reconciliation["category_totals"],
            {"utilities": "1800.00", "insurance": "1200.00"},
        )
        self.assertEqual(reconciliation["total_debt"], "800.00")

    def test_detail_unknown_returns_not_found(self):
        response = self.client.get(reverse("reconciliation_detail", args=[999999]))

        self.assertEqual(response.status_code, 404)

    def test_update_changes_method_and_finalize_locks(self):
        pk = self._create().json()["data"]["reconciliation"]["id"]
        url = reverse("reconciliation_update", args=[pk])

        response = self.client.put(
            url,
            data=json.dumps({"distribution_method": "equal", "status": "finalized"}),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        reconciliation = response.json()["data"]["reconciliation"]
        self.assertEqual(reconciliation["distribution_method"], "equal")
        self.assertEqual(reconciliation["status"], "finalized")
        self.assertIsNotNone(reconciliation["finalized_at"])

        response = self._post(url, {"notes": "Nachtrag"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_delete_respects_finalized_status(self):
        pk = self._create().json()["data"]["reconciliation"]["id"]

        response = self.client.delete(reverse("reconciliation_delete", args=[pk]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(SideCostReconciliation.objects.filter(pk=pk).exists())

        pk = self._create().json()["data"]["reconciliation"]["id"]
        SideCostReconciliation.objects.filter(pk=pk).update(status=SideCostReconciliation.Status.FINALIZED)
        response = self.client.post(reverse("reconciliation_delete", args=[pk]))
        self.assertEqual(response.status_code, 400)
        self.assertTrue(SideCostReconciliation.objects.filter(pk=pk).exists())

    def test_preview_does_not_persist(self):
        response = self.client.get(
            reverse("reconciliation_preview"),
            {"property": self.property.pk, "year": 2024, "method": "equal"},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["total_expenses"], "3000.00")
        self.assertEqual(data["per_apartment_share"], "1500.00")
        self.assertFalse(SideCostReconciliation.objects.exists())

    def test_preview_rejects_unknown_method(self):
        response = self.client.get(
            reverse("reconciliation_preview"),
            {"property": self.property.pk, "year": 2024, "method": "per_person"},
        )

        self.assertEqual(response.status_code, 400)

    def test_preview_rejects_out_of_range_year(self):
        for year in ("0", "10000"):
            with self.subTest(year=year):
                response = self.client.get(
                    reverse("reconciliation_preview"),
                    {"property": self.property.pk, "year": year},
                )

                self.assertEqual(response.status_code, 400)
                body = response.json()
                self.assertFalse(body["success"])
                self.assertEqual(body["error"], "Validierungsfehler")

    def test_expense_list_and_create(self):
        response = self.client.get(reverse("expense_list"), {"property": self.property.pk, "year": 2024})
        data = response.json()["data"]
        self.assertEqual(len(data["expenses"]), 2)
        self.assertEqual(data["total"], "3000.00")

        response = self._post(
            reverse("expense_list"),
            {
                "property": self.property.pk,
                "name": "Reinigung",
                "category": "cleaning",
                "amount": "240.00",
                "expense_date": "2024-09-30",
            },
        )
        self.assertEqual(response.status_code, 201)
        expense = response.json()["data"]["expense"]
        self.assertEqual(expense["year"], 2024)
        self.assertEqual(expense["month"], 9)


class MonthlyPaymentTrackerTests(TestCase):
    def setUp(self):
        self.property = Property.objects.create(name="Tracker-Haus")
        self.tenant = TenantRecord.objects.create(first_name="Max", last_name="Mieter")
        self.apartment = Apartment.objects.create(property=self.property, unit_number="Top 3")
        self.contract = Contract.objects.create(
            apartment=self.apartment,
            tenant_record=self.tenant,
            status=Contract.Status.ACTIVE,
            start_date=date(2023, 5, 1),
            monthly_rent=Decimal("500.00"),
        )
        Apartment.objects.create(property=self.property, unit_number="Top 4")

        def payment(month, **kwargs):
            return Payment.objects.create(
                apartment=self.apartment,
                contract=self.contract,
                due_date=date(2024, month, 1),
                amount=Decimal("500.00"),
                **kwargs,
            )

        payment(1, status=Payment.Status.PAID, paid_amount=Decimal("500.00"), paid_date=date(2024, 1, 3))
        payment(2, paid_amount=Decimal("200.00"))
        payment(3)
        payment(7)

    def test_cell_statuses_and_summary(self):
        service = MonthlyPaymentTrackerService(year=2024, today=date(2024, 6, 15))

        data = service.get_tracker_data()

        self.assertEqual(len(data["rows"]), 1)
        row = data["rows"][0]
        self.assertEqual(row["tenant_name"], "Max Mieter")
        self.assertEqual(row["monthly_rent"], "500.00")
        months = row["months"]
        self.assertEqual(months[1]["status"], "paid")
        self.assertEqual(months[2]["status"], "partial")
        self.assertEqual(months[3]["status"], "overdue")
        self.assertEqual(months[7]["status"], "pending")
        self.assertEqual(months[12]["status"], "none")

        summary = data["summary"]
        self.assertEqual(summary["total_payments"], 4)
        self.assertEqual(summary["paid_payments"], 1)
        self.assertEqual(summary["total_amount"], "2000.00")
        self.assertEqual(summary["paid_amount"], "500.00")
        self.assertEqual(summary["pending_amount"], "800.00")
        self.assertEqual(summary["overdue_amount"], "500.00")
        self.assertEqual(summary["collection_rate"], "25.00")
        self.assertEqual(data["properties"], [{"id": self.property.pk, "name": "Tracker-Haus"}])

    def test_empty_year_has_zero_collection_rate(self):
        data = MonthlyPaymentTrackerService(year=2020, today=date(2024, 6, 15)).get_tracker_data()

        self.assertEqual(data["summary"]["total_payments"], 0)
        self.assertEqual(data["summary"]["collection_rate"], "0.00")

    def test_tracker_view(self):
        response = self.client.get(
            reverse("payment_monthly_tracker"),
            {"year": 2024, "property": self.property.pk},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["year"], 2024)
        self.assertEqual(data["rows"][0]["months"]["1"]["status"], "paid")

    def test_tracker_view_rejects_out_of_range_year(self):
        for year in ("0", "10000", "abc"):
            with self.subTest(year=year):
                response = self.client.get(reverse("payment_monthly_tracker"), {"year": year})

                self.assertEqual(response.status_code, 400)
                body = response.json()
                self.assertFalse(body["success"])
                self.assertEqual(body["error"], "Validierungsfehler")


class CalculateSideCostsCommandTests(SideCostFixtureMixin, TestCase):
    def test_dry_run_does_not_persist(self):
        out = StringIO()

        call_command("calculate_side_costs", liegenschaft=self.property.pk, jahr=2024, stdout=out)

        self.assertIn("Dry-Run", out.getvalue())
        self.assertIn("Top 1", out.getvalue())
        self.assertFalse(SideCostReconciliation.objects.exists())

    def test_apply_persists_reconciliation(self):
        out = StringIO()

        call_command(
            "calculate_side_costs",
            liegenschaft=self.property.pk,
            jahr=2024,
            methode="equal",
            apply=True,
            stdout=out,
        )

        reconciliation = SideCostReconciliation.objects.get()
        self.assertEqual(reconciliation.distribution_method, "equal")
        self.assertIn("gespeichert", out.getvalue())

        with self.assertRaises(CommandError):
            call_command("calculate_side_costs", liegenschaft=self.property.pk, jahr=2024, stdout=StringIO())

    def test_unknown_property_raises(self):
        with self.assertRaises(CommandError):
            call_command("calculate_side_costs", liegenschaft=999999, jahr=2024, stdout=StringIO())

    def test_out_of_range_year_raises_command_error(self):
        for year in (0, 10000):
            with self.subTest(year=year):
                with self.assertRaises(CommandError):
                    call_command(
                        "calculate_side_costs",
                        liegenschaft=self.property.pk,
                        jahr=year,
                        stdout=StringIO(),
                    )
        self.assertFalse(SideCostReconciliation.objects.exists())


class FormTests(TestCase):
    def setUp(self):
        self.property = Property.objects.create(name="Formhaus")
        self.apartment = Apartment.objects.create(property=self.property, unit_number="Top 1")

    def test_contract_form_rejects_end_before_start(self):
        form = ContractForm(
            data={
                "apartment": self.apartment.pk,
                "status": Contract.Status.ACTIVE,
                "start_date": "2024-05-01",
                "end_date": "2024-04-30",
                "monthly_rent": "500.00",
            }
        )

        self.assertFalse(form.is_valid())
        self.assertIn("end_date", form.errors)

    def test_expense_form_rejects_non_positive_amount(self):
        form = PropertyExpenseForm(
            data={
                "property": self.property.pk,
                "name": "Gutschrift",
                "category": PropertyExpense.Category.OTHER,
                "amount": "0.00",
                "expense_date": "2024-02-01",
                "is_active": True,
            }
        )

        self.assertFalse(form.is_valid())
        self.assertIn("amount", form.errors)

    def test_expense_year_must_match_date(self):
        form = PropertyExpenseForm(
            data={
                "property": self.property.pk,
                "name": "Strom",
                "category": PropertyExpense.Category.UTILITIES,
                "amount": "10.00",
                "expense_date": "2024-02-01",
                "year": 2023,
                "is_active": True,
            }
        )

        self.assertFalse(form.is_valid())
        self.assertIn("expense_date", form.errors)

    def test_update_form_leaves_notes_untouched_when_missing(self):
        form = ReconciliationUpdateForm(data={"status": "calculated"})

        self.assertTrue(form.is_valid())
        self.assertIsNone(form.update_kwargs()["notes"])
