from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Protocol

CENT = Decimal("0.01")
MONTH_QUANT = Decimal("0.0001")
ZERO = Decimal("0.00")
MAX_MONTHS = Decimal("12")
BALANCE_TOLERANCE = Decimal("0.01")

ACTIVE_CONTRACT_STATUS = "active"
EXCLUDED_CONTRACT_STATUSES = frozenset({"terminated", "cancelled"})


def quantize_cent(value: Decimal | str | int | float | None) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    return Decimal(value or ZERO).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | str | int | float | None) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def choice_value(value: object) -> str:
    return str(getattr(value, "value", value) or "")


def as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


class DistributionMethod(str, Enum):
    EQUAL = "equal"
    AREA_BASED = "area_based"
    CUSTOM = "custom"


class SettlementStatus(str, Enum):
    DEBT = "debt"
    CREDIT = "credit"
    BALANCED = "balanced"


@dataclass(frozen=True)
class TenantRecordInput:
    id: int | str
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True)
class ContractInput:
    id: int | str
    status: str
    start_date: date
    end_date: date | None = None
    tenant_record: TenantRecordInput | None = None


@dataclass(frozen=True)
class ApartmentInput:
    id: int | str
    unit_number: str
    area: Decimal
    additional_costs: Decimal = ZERO
    contracts: Sequence[ContractInput] = ()
    cost_share: Decimal | None = None


@dataclass(frozen=True)
class ReconciliationInput:
    total_expenses: Decimal
    apartments: Sequence[ApartmentInput]
    distribution_method: DistributionMethod | str
    year: int
    fiscal_year_start: date | None = None
    fiscal_year_end: date | None = None

    @property
    def window(self) -> tuple[date, date]:
        start = as_date(self.fiscal_year_start) or date(int(self.year), 1, 1)
        end = as_date(self.fiscal_year_end) or date(int(self.year), 12, 31)
        return start, end


@dataclass(frozen=True)
class TenantInfo:
    tenant_id: int | str
    name: str

    def to_dict(self) -> dict[str, object]:
        return {"tenant_id": self.tenant_id, "name": self.name}


@dataclass(frozen=True)
class ReconciliationApartmentDetail:
    apartment_id: int | str
    unit_number: str
    area: Decimal
    estimated_monthly_cost: Decimal
    months_occupied: Decimal
    total_estimated_paid: Decimal
    actual_share: Decimal
    difference: Decimal
    status: SettlementStatus
    tenant_info: TenantInfo | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "apartment_id": self.apartment_id,
            "unit_number": self.unit_number,
            "area": str(quantize_cent(self.area)),
            "estimated_monthly_cost": str(quantize_cent(self.estimated_monthly_cost)),
            "months_occupied": str(self.months_occupied.quantize(MONTH_QUANT, rounding=ROUND_HALF_UP)),
            "total_estimated_paid": str(quantize_cent(self.total_estimated_paid)),
            "actual_share": str(quantize_cent(self.actual_share)),
            "difference": str(quantize_cent(self.difference)),
            "status": self.status.value,
            "tenant_info": self.tenant_info.to_dict() if self.tenant_info else None,
        }


@dataclass(frozen=True)
class CalculationResult:
    apartment_count: int
    per_apartment_share: Decimal
    details: list[ReconciliationApartmentDetail] = field(default_factory=list)
    total_debt: Decimal = ZERO
    total_credit: Decimal = ZERO

    def to_dict(self) -> dict[str, object]:
        return {
            "apartment_count": self.apartment_count,
            "per_apartment_share": str(quantize_cent(self.per_apartment_share)),
            "details": [detail.to_dict() for detail in self.details],
            "total_debt": str(self.total_debt),
            "total_credit": str(self.total_credit),
        }


class DistributionStrategy(Protocol):
    key: str
    label: str

    def build_shares(
        self,
        *,
        apartments: Sequence[ApartmentInput],
        total_expenses: Decimal,
    ) -> list[Decimal]:
        ...


class EqualDistributionStrategy:
    key = DistributionMethod.EQUAL.value
    label = "Gleichverteilung"

    def build_shares(
        self,
        *,
        apartments: Sequence[ApartmentInput],
        total_expenses: Decimal,
    ) -> list[Decimal]:
        if not apartments:
            return []
        share = total_expenses / Decimal(len(apartments))
        return [share for _apartment in apartments]


class WeightedDistributionStrategy:
    key = ""
    label = ""

    def weight(self, apartment: ApartmentInput) -> Decimal:
        raise NotImplementedError

    def build_shares(
        self,
        *,
        apartments: Sequence[ApartmentInput],
        total_expenses: Decimal,
    ) -> list[Decimal]:
        weights = [self.weight(apartment) for apartment in apartments]
        total_weight = sum(weights, ZERO)
        if total_weight <= ZERO:
            return [ZERO for _apartment in apartments]
        return [weight * total_expenses / total_weight for weight in weights]


class AreaDistributionStrategy(WeightedDistributionStrategy):
    key = DistributionMethod.AREA_BASED.value
    label = "Nutzfläche"

    def weight(self, apartment: ApartmentInput) -> Decimal:
        return to_decimal(apartment.area)


class CostShareDistributionStrategy(WeightedDistributionStrategy):
    # Gewichtung über den hinterlegten BK-Anteil der Wohnung
    key = DistributionMethod.CUSTOM.value
    label = "BK-Anteil"

    def weight(self, apartment: ApartmentInput) -> Decimal:
        return to_decimal(apartment.cost_share)


DISTRIBUTION_STRATEGIES: dict[DistributionMethod, DistributionStrategy] = {
    DistributionMethod.EQUAL: EqualDistributionStrategy(),
    DistributionMethod.AREA_BASED: AreaDistributionStrategy(),
    DistributionMethod.CUSTOM: CostShareDistributionStrategy(),
}


def distribution_strategy_for(method: DistributionMethod | str) -> DistributionStrategy:
    return DISTRIBUTION_STRATEGIES[DistributionMethod(choice_value(method))]


def month_difference(start: date, end: date) -> Decimal:
    """Anteilige Monate zwischen zwei Tagen (beide inklusive), tagesgewichtet."""
    start_days = monthrange(start.year, start.month)[1]
    if start.year == end.year and start.month == end.month:
        return Decimal(end.day - start.day + 1) / Decimal(start_days)

    end_days = monthrange(end.year, end.month)[1]
    whole_months = (end.year - start.year) * 12 + (end.month - start.month) - 1
    start_ratio = Decimal(start_days - start.day + 1) / Decimal(start_days)
    end_ratio = Decimal(end.day) / Decimal(end_days)
    return Decimal(whole_months) + start_ratio + end_ratio


def occupied_months(
    contracts: Iterable[ContractInput],
    *,
    window_start: date,
    window_end: date,
) -> Decimal:
    total = ZERO
    for contract in contracts:
        if choice_value(contract.status) in EXCLUDED_CONTRACT_STATUSES:
            continue
        contract_start = as_date(contract.start_date)
        contract_end = as_date(contract.end_date) or window_end
        start = max(contract_start, window_start)
        end = min(contract_end, window_end)
        if start > end:
            continue
        total += month_difference(start, end)
    return min(total, MAX_MONTHS)


def tenant_info_for(contracts: Iterable[ContractInput]) -> TenantInfo | None:
    active_contract = next(
        (contract for contract in contracts if choice_value(contract.status) == ACTIVE_CONTRACT_STATUS),
        None,
    )
    if active_contract is None or active_contract.tenant_record is None:
        return None
    tenant = active_contract.tenant_record
    return TenantInfo(
        tenant_id=tenant.id,
        name=f"{tenant.first_name or ''} {tenant.last_name or ''}".strip(),
    )


def settlement_status(difference: Decimal) -> SettlementStatus:
    if difference > BALANCE_TOLERANCE:
        return SettlementStatus.DEBT
    if difference < -BALANCE_TOLERANCE:
        return SettlementStatus.CREDIT
    return SettlementStatus.BALANCED


def calculate_reconciliation(data: ReconciliationInput) -> CalculationResult:
    total_expenses = to_decimal(data.total_expenses)
    apartments = list(data.apartments)
    window_start, window_end = data.window
    strategy = distribution_strategy_for(data.distribution_method)
    shares = strategy.build_shares(apartments=apartments, total_expenses=total_expenses)

    details: list[ReconciliationApartmentDetail] = []
    for apartment, actual_share in zip(apartments, shares):
        contracts = list(apartment.contracts)
        months = occupied_months(contracts, window_start=window_start, window_end=window_end)
        estimated_monthly_cost = to_decimal(apartment.additional_costs)
        total_estimated_paid = estimated_monthly_cost * months
        difference = quantize_cent(actual_share - total_estimated_paid)
        details.append(
            ReconciliationApartmentDetail(
                apartment_id=apartment.id,
                unit_number=apartment.unit_number,
                area=to_decimal(apartment.area),
                estimated_monthly_cost=estimated_monthly_cost,
                months_occupied=months,
                total_estimated_paid=total_estimated_paid,
                actual_share=actual_share,
                difference=difference,
                status=settlement_status(difference),
                tenant_info=tenant_info_for(contracts),
            )
        )

    apartment_count = len(apartments)
    per_apartment_share = total_expenses / Decimal(apartment_count) if apartment_count else ZERO
    total_debt = sum(
        (detail.difference for detail in details if detail.status == SettlementStatus.DEBT),
        ZERO,
    )
    total_credit = sum(
        (abs(detail.difference) for detail in details if detail.status == SettlementStatus.CREDIT),
        ZERO,
    )
    return CalculationResult(
        apartment_count=apartment_count,
        per_apartment_share=per_apartment_share,
        details=details,
        total_debt=quantize_cent(total_debt),
        total_credit=quantize_cent(total_credit),
    )


def _expense_field(expense: object, name: str) -> object:
    if isinstance(expense, Mapping):
        return expense.get(name)
    return getattr(expense, name, None)


def summarize_by_category(expenses: Iterable[object]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        category = str(_expense_field(expense, "category") or "")
        amount = to_decimal(_expense_field(expense, "amount"))
        totals[category] = totals.get(category, ZERO) + amount
    return totals
