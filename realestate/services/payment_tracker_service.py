from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.db.models import Prefetch, Q
from django.utils import timezone

from realestate.models import Apartment, Contract, Payment, Property
from realestate.services.side_cost_calculation_service import ZERO, quantize_cent

CELL_PAID = "paid"
CELL_PARTIAL = "partial"
CELL_OVERDUE = "overdue"
CELL_PENDING = "pending"
CELL_NONE = "none"


class MonthlyPaymentTrackerService:
    def __init__(
        self,
        *,
        year: int,
        property_obj: Property | None = None,
        today: date | None = None,
    ) -> None:
        self.year = int(year)
        self.property = property_obj
        self.today = today or timezone.localdate()
        self.period_start = date(self.year, 1, 1)
        self.period_end = date(self.year, 12, 31)

    def _apartments(self) -> list[Apartment]:
        contract_queryset = (
            Contract.objects.filter(
                Q(status=Contract.Status.ACTIVE)
                | Q(start_date__lte=self.period_end, end_date__gte=self.period_start)
            )
            .select_related("tenant_record")
            .order_by("-start_date", "-id")
        )
        queryset = (
            Apartment.objects.filter(contracts__isnull=False)
            .select_related("property")
            .prefetch_related(
                Prefetch("contracts", queryset=contract_queryset, to_attr="tracker_contracts")
            )
            .distinct()
            .order_by("property__name", "unit_number", "id")
        )
        if self.property is not None:
            queryset = queryset.filter(property=self.property)
        return list(queryset)

    def _payments_by_apartment(self) -> dict[int, dict[int, Payment]]:
        queryset = Payment.objects.filter(
            due_date__gte=self.period_start,
            due_date__lte=self.period_end,
        ).order_by("due_date", "id")
        if self.property is not None:
            queryset = queryset.filter(apartment__property=self.property)

        payment_map: dict[int, dict[int, Payment]] = {}
        for payment in queryset:
            payment_map.setdefault(payment.apartment_id, {})[payment.due_date.month] = payment
        return payment_map

    def cell_status(self, payment: Payment) -> str:
        expected = quantize_cent(payment.expected_amount)
        paid = quantize_cent(payment.paid_amount)
        if payment.status == Payment.Status.PAID:
            return CELL_PAID
        if payment.status == Payment.Status.PARTIAL or ZERO < paid < expected:
            return CELL_PARTIAL
        if payment.due_date < self.today:
            return CELL_OVERDUE
        return CELL_PENDING

    @staticmethod
    def _empty_cell() -> dict[str, object]:
        return {
            "status": CELL_NONE,
            "amount": "0.00",
            "paid_amount": "0.00",
            "due_date": None,
            "paid_date": None,
            "payment_method": None,
            "payment_id": None,
            "contract_id": None,
        }

    @staticmethod
    def _tenant_name(contract: Contract | None) -> str:
        if contract is None or contract.tenant_record is None:
            return "-"
        return contract.tenant_record.display_name or "-"

    def get_tracker_data(self) -> dict[str, object]:
        apartments = self._apartments()
        payment_map = self._payments_by_apartment()

        counts = {
            CELL_PAID: 0,
            CELL_PARTIAL: 0,
            CELL_OVERDUE: 0,
            CELL_PENDING: 0,
        }
        total_amount = ZERO
        paid_amount = ZERO
        pending_amount = ZERO
        overdue_amount = ZERO

        properties: dict[int, str] = {}
        rows: list[dict[str, object]] = []
        for apartment in apartments:
            properties.setdefault(apartment.property_id, apartment.property.name)
            contracts = getattr(apartment, "tracker_contracts", [])
            contract = contracts[0] if contracts else None
            tenant = contract.tenant_record if contract else None

            months: dict[int, dict[str, object]] = {}
            apartment_payments = payment_map.get(apartment.pk, {})
            for month in range(1, 13):
                payment = apartment_payments.get(month)
                if payment is None:
                    months[month] = self._empty_cell()
                    continue

                status = self.cell_status(payment)
                amount = quantize_cent(payment.expected_amount)
                paid = quantize_cent(payment.paid_amount)
                counts[status] += 1
                total_amount += amount
                if status == CELL_PAID:
                    paid_amount += amount
                elif status == CELL_OVERDUE:
                    overdue_amount += amount - paid
                else:
                    pending_amount += amount - paid

                months[month] = {
                    "status": status,
                    "amount": str(amount),
                    "paid_amount": str(paid),
                    "due_date": payment.due_date.isoformat(),
                    "paid_date": payment.paid_date.isoformat() if payment.paid_date else None,
                    "payment_method": payment.payment_method or None,
                    "payment_id": payment.pk,
                    "contract_id": payment.contract_id,
                }

            rows.append(
                {
                    "apartment_id": apartment.pk,
                    "property_id": apartment.property_id,
                    "property_name": apartment.property.name,
                    "unit_number": apartment.unit_number,
                    "floor": apartment.floor or "-",
                    "tenant_id": tenant.pk if tenant else None,
                    "tenant_name": self._tenant_name(contract),
                    "tenant_type": tenant.tenant_type if tenant else None,
                    "contract_id": contract.pk if contract else None,
                    "contract_number": (contract.contract_number or None) if contract else None,
                    "monthly_rent": str(quantize_cent(contract.monthly_rent if contract else ZERO)),
                    "months": months,
                }
            )

        total_payments = sum(counts.values())
        collection_rate = (
            (Decimal(counts[CELL_PAID]) * Decimal("100") / Decimal(total_payments))
            if total_payments
            else ZERO
        )
        return {
            "year": self.year,
            "rows": rows,
            "properties": [
                {"id": property_id, "name": name} for property_id, name in properties.items()
            ],
            "summary": {
                "total_payments": total_payments,
                "paid_payments": counts[CELL_PAID],
                "pending_payments": counts[CELL_PENDING],
                "overdue_payments": counts[CELL_OVERDUE],
                "partial_payments": counts[CELL_PARTIAL],
                "total_amount": str(quantize_cent(total_amount)),
                "paid_amount": str(quantize_cent(paid_amount)),
                "pending_amount": str(quantize_cent(pending_amount)),
                "overdue_amount": str(quantize_cent(overdue_amount)),
                "collection_rate": str(quantize_cent(collection_rate)),
            },
        }
