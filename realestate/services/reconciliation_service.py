from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, Prefetch, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from realestate.models import Apartment, Contract, Property, PropertyExpense, SideCostReconciliation
from realestate.services.side_cost_calculation_service import (
    ZERO,
    ApartmentInput,
    CalculationResult,
    ContractInput,
    DistributionMethod,
    ReconciliationInput,
    TenantRecordInput,
    calculate_reconciliation,
    choice_value,
    quantize_cent,
    summarize_by_category,
)


class ReconciliationError(RuntimeError):
    """Basisfehler für Nebenkostenabrechnungen."""


class ReconciliationExistsError(ReconciliationError):
    def __init__(self, existing: SideCostReconciliation):
        self.existing = existing
        super().__init__(
            f"Für diese Liegenschaft und das Jahr {existing.year} existiert bereits "
            f"eine Abrechnung (ID: {existing.pk})."
        )


class ReconciliationLockedError(ReconciliationError):
    pass


class SideCostReconciliationService:
    logger = logging.getLogger(__name__)

    def __init__(self, property_obj: Property, year: int) -> None:
        self.property = property_obj
        self.year = int(year)

    @classmethod
    def for_reconciliation(cls, reconciliation: SideCostReconciliation) -> "SideCostReconciliationService":
        return cls(reconciliation.property, reconciliation.year)

    def active_expenses(self):
        return PropertyExpense.objects.filter(
            property=self.property,
            year=self.year,
            is_active=True,
        ).order_by("-expense_date", "-id")

    def total_expenses(self) -> Decimal:
        total = self.active_expenses().aggregate(
            total=Coalesce(
                Sum("amount", output_field=DecimalField(max_digits=14, decimal_places=2)),
                Value(ZERO),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            )
        )["total"]
        return quantize_cent(total)

    def apartment_inputs(self) -> list[ApartmentInput]:
        apartments = (
            Apartment.objects.filter(property=self.property)
            .prefetch_related(
                Prefetch(
                    "contracts",
                    queryset=Contract.objects.select_related("tenant_record").order_by("start_date", "id"),
                )
            )
            .order_by("unit_number", "id")
        )

        inputs: list[ApartmentInput] = []
        for apartment in apartments:
            contracts = []
            for contract in apartment.contracts.all():
                tenant = contract.tenant_record
                contracts.append(
                    ContractInput(
                        id=contract.pk,
                        status=contract.status,
                        start_date=contract.start_date,
                        end_date=contract.end_date,
                        tenant_record=(
                            TenantRecordInput(
                                id=tenant.pk,
                                first_name=tenant.first_name,
                                last_name=tenant.last_name,
                            )
                            if tenant is not None
                            else None
                        ),
                    )
                )
            inputs.append(
                ApartmentInput(
                    id=apartment.pk,
                    unit_number=apartment.unit_number,
                    area=apartment.area or ZERO,
                    additional_costs=apartment.additional_costs or ZERO,
                    contracts=tuple(contracts),
                    cost_share=apartment.cost_share,
                )
            )
        return inputs

    def build_input(
        self,
        *,
        distribution_method: DistributionMethod | str,
        fiscal_year_start: date | None = None,
        fiscal_year_end: date | None = None,
        total_expenses: Decimal | None = None,
    ) -> ReconciliationInput:
        return ReconciliationInput(
            total_expenses=self.total_expenses() if total_expenses is None else total_expenses,
            apartments=self.apartment_inputs(),
            distribution_method=DistributionMethod(choice_value(distribution_method)),
            year=self.year,
            fiscal_year_start=fiscal_year_start,
            fiscal_year_end=fiscal_year_end,
        )

    def calculate(
        self,
        *,
        distribution_method: DistributionMethod | str,
        fiscal_year_start: date | None = None,
        fiscal_year_end: date | None = None,
        total_expenses: Decimal | None = None,
    ) -> CalculationResult:
        data = self.build_input(
            distribution_method=distribution_method,
            fiscal_year_start=fiscal_year_start,
            fiscal_year_end=fiscal_year_end,
            total_expenses=total_expenses,
        )
        return calculate_reconciliation(data)

    def existing(self) -> SideCostReconciliation | None:
        return SideCostReconciliation.objects.filter(property=self.property, year=self.year).first()

    @transaction.atomic
    def create(
        self,
        *,
        distribution_method: DistributionMethod | str,
        fiscal_year_start: date | None = None,
        fiscal_year_end: date | None = None,
        notes: str = "",
    ) -> tuple[SideCostReconciliation, CalculationResult]:
        existing = self.existing()
        if existing is not None:
            raise ReconciliationExistsError(existing)

        total_expenses = self.total_expenses()
        result = self.calculate(
            distribution_method=distribution_method,
            fiscal_year_start=fiscal_year_start,
            fiscal_year_end=fiscal_year_end,
            total_expenses=total_expenses,
        )
        reconciliation = SideCostReconciliation(
            property=self.property,
            year=self.year,
            total_expenses=total_expenses,
            apartment_count=result.apartment_count,
            per_apartment_share=quantize_cent(result.per_apartment_share),
            distribution_method=choice_value(distribution_method),
            fiscal_year_start=fiscal_year_start,
            fiscal_year_end=fiscal_year_end,
            status=SideCostReconciliation.Status.CALCULATED,
            calculated_at=timezone.now(),
            details=[detail.to_dict() for detail in result.details],
            notes=notes or "",
        )
        reconciliation.full_clean()
        reconciliation.save()
        self.logger.info(
            "Nebenkostenabrechnung %s für %s/%s berechnet (%s Wohnungen, Nachzahlungen %s, Guthaben %s).",
            reconciliation.pk,
            self.property.pk,
            self.year,
            result.apartment_count,
            result.total_debt,
            result.total_credit,
        )
        return reconciliation, result

    @transaction.atomic
    def update(
        self,
        reconciliation: SideCostReconciliation,
        *,
        status: str | None = None,
        notes: str | None = None,
        distribution_method: DistributionMethod | str | None = None,
        fiscal_year_start: date | None = None,
        fiscal_year_end: date | None = None,
    ) -> tuple[SideCostReconciliation, CalculationResult | None]:
        if reconciliation.is_finalized:
            raise ReconciliationLockedError("Abgeschlossene Abrechnungen können nicht geändert werden.")

        update_fields: list[str] = []
        if notes is not None:
            reconciliation.notes = notes
            update_fields.append("notes")

        if status:
            reconciliation.status = status
            update_fields.append("status")
            if status == SideCostReconciliation.Status.FINALIZED:
                reconciliation.finalized_at = timezone.now()
                update_fields.append("finalized_at")

        result = None
        if distribution_method and choice_value(distribution_method) != reconciliation.distribution_method:
            window_start = fiscal_year_start or reconciliation.fiscal_year_start
            window_end = fiscal_year_end or reconciliation.fiscal_year_end
            result = self.calculate(
                distribution_method=distribution_method,
                fiscal_year_start=window_start,
                fiscal_year_end=window_end,
                total_expenses=reconciliation.total_expenses,
            )
            reconciliation.distribution_method = choice_value(distribution_method)
            reconciliation.fiscal_year_start = window_start
            reconciliation.fiscal_year_end = window_end
            reconciliation.per_apartment_share = quantize_cent(result.per_apartment_share)
            reconciliation.apartment_count = result.apartment_count
            reconciliation.details = [detail.to_dict() for detail in result.details]
            reconciliation.calculated_at = timezone.now()
            update_fields.extend(
                [
                    "distribution_method",
                    "fiscal_year_start",
                    "fiscal_year_end",
                    "per_apartment_share",
                    "apartment_count",
                    "details",
                    "calculated_at",
                ]
            )
            self.logger.info(
                "Nebenkostenabrechnung %s mit Methode %s neu berechnet.",
                reconciliation.pk,
                reconciliation.distribution_method,
            )

        if update_fields:
            reconciliation.save(update_fields=[*dict.fromkeys(update_fields), "updated_at"])
        return reconciliation, result

    @classmethod
    def delete(cls, reconciliation: SideCostReconciliation) -> None:
        if reconciliation.is_finalized:
            raise ReconciliationLockedError("Abgeschlossene Abrechnungen können nicht gelöscht werden.")
        label = str(reconciliation)
        reconciliation.delete()
        cls.logger.info("Nebenkostenabrechnung %s gelöscht.", label)

    def expense_summary(self) -> tuple[list[PropertyExpense], dict[str, Decimal]]:
        expenses = list(self.active_expenses())
        return expenses, summarize_by_category(expenses)

    @staticmethod
    def totals_from_details(details: list[dict[str, object]]) -> tuple[Decimal, Decimal]:
        total_debt = ZERO
        total_credit = ZERO
        for row in details or []:
            difference = quantize_cent(row.get("difference"))
            if row.get("status") == "debt":
                total_debt += difference
            elif row.get("status") == "credit":
                total_credit += abs(difference)
        return quantize_cent(total_debt), quantize_cent(total_credit)
