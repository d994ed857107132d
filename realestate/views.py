import json
from decimal import Decimal

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.http import JsonResponse
from django.utils import timezone
from django.views.generic import View

from .forms import (
    PropertyExpenseForm,
    ReconciliationCreateForm,
    ReconciliationUpdateForm,
    YearQueryForm,
)
from .models import Property, PropertyExpense, SideCostReconciliation
from .services.payment_tracker_service import MonthlyPaymentTrackerService
from .services.reconciliation_service import (
    ReconciliationExistsError,
    ReconciliationLockedError,
    SideCostReconciliationService,
)
from .services.side_cost_calculation_service import DistributionMethod, quantize_cent


def success_response(data, status=200):
    return JsonResponse({"success": True, "data": data}, status=status)


def error_response(error, message, status=400):
    return JsonResponse({"success": False, "error": error, "message": message}, status=status)


def form_error_message(form) -> str:
    messages = []
    for field, errors in form.errors.items():
        for error in errors:
            messages.append(error if field == "__all__" else f"{field}: {error}")
    return ", ".join(messages)


def parse_json_body(request) -> dict:
    if not request.body:
        return {}
    payload = json.loads(request.body)
    if not isinstance(payload, dict):
        raise ValueError("JSON-Objekt erwartet.")
    return payload


def parse_int(value, default=None):
    raw = str(value or "").strip()
    if raw.isdigit():
        return int(raw)
    return default


def iso_or_none(value):
    return value.isoformat() if value else None


def money_str(value) -> str:
    return str(quantize_cent(value))


def serialize_reconciliation(reconciliation: SideCostReconciliation) -> dict:
    return {
        "id": reconciliation.pk,
        "property": {
            "id": reconciliation.property_id,
            "name": reconciliation.property.name,
        },
        "year": reconciliation.year,
        "total_expenses": money_str(reconciliation.total_expenses),
        "apartment_count": reconciliation.apartment_count,
        "per_apartment_share": money_str(reconciliation.per_apartment_share),
        "distribution_method": reconciliation.distribution_method,
        "fiscal_year_start": iso_or_none(reconciliation.fiscal_year_start),
        "fiscal_year_end": iso_or_none(reconciliation.fiscal_year_end),
        "status": reconciliation.status,
        "calculated_at": iso_or_none(reconciliation.calculated_at),
        "finalized_at": iso_or_none(reconciliation.finalized_at),
        "details": reconciliation.details,
        "notes": reconciliation.notes,
        "created_at": iso_or_none(reconciliation.created_at),
        "updated_at": iso_or_none(reconciliation.updated_at),
    }


def serialize_expense(expense: PropertyExpense) -> dict:
    return {
        "id": expense.pk,
        "property_id": expense.property_id,
        "name": expense.name,
        "category": expense.category,
        "amount": money_str(expense.amount),
        "expense_date": iso_or_none(expense.expense_date),
        "year": expense.year,
        "month": expense.month,
        "description": expense.description,
        "invoice_number": expense.invoice_number,
        "vendor_name": expense.vendor_name,
        "is_distributed": expense.is_distributed,
        "is_active": expense.is_active,
    }


class ReconciliationListCreateView(View):
    http_method_names = ["get", "post"]

    def get(self, request, *args, **kwargs):
        queryset = SideCostReconciliation.objects.select_related("property").order_by(
            "-year", "-created_at", "-id"
        )
        property_id = parse_int(request.GET.get("property"))
        year = parse_int(request.GET.get("year"))
        status = (request.GET.get("status") or "").strip()
        if property_id is not None:
            queryset = queryset.filter(property_id=property_id)
        if year is not None:
            queryset = queryset.filter(year=year)
        if status:
            queryset = queryset.filter(status=status)

        page_number = parse_int(request.GET.get("page"), 1) or 1
        page_size = parse_int(request.GET.get("page_size"), settings.RECONCILIATION_PAGE_SIZE)
        paginator = Paginator(queryset, max(page_size or 1, 1))
        try:
            page = paginator.page(page_number)
            items = list(page.object_list)
        except EmptyPage:
            items = []

        return success_response(
            {
                "reconciliations": [serialize_reconciliation(item) for item in items],
                "total": paginator.count,
                "page": page_number,
                "page_size": paginator.per_page,
            }
        )

    def post(self, request, *args, **kwargs):
        try:
            payload = parse_json_body(request)
        except ValueError as exc:
            return error_response("Ungültige Anfrage", str(exc), 400)

        property_id = payload.get("property")
        if property_id not in (None, "") and not Property.objects.filter(pk=parse_int(property_id, -1)).exists():
            return error_response(
                "Liegenschaft nicht gefunden",
                "Die angegebene Liegenschaft existiert nicht.",
                404,
            )

        form = ReconciliationCreateForm(payload)
        if not form.is_valid():
            return error_response("Validierungsfehler", form_error_message(form), 400)

        data = form.cleaned_data
        service = SideCostReconciliationService(data["property"], data["year"])
        try:
            reconciliation, result = service.create(
                distribution_method=data["distribution_method"],
                fiscal_year_start=data.get("fiscal_year_start"),
                fiscal_year_end=data.get("fiscal_year_end"),
                notes=data.get("notes") or "",
            )
        except ReconciliationExistsError as exc:
            return error_response("Abrechnung existiert bereits", str(exc), 409)

        body = serialize_reconciliation(reconciliation)
        body["total_debt"] = str(result.total_debt)
        body["total_credit"] = str(result.total_credit)
        return success_response({"reconciliation": body})


class ReconciliationObjectMixin:
    def get_reconciliation(self):
        return SideCostReconciliation.objects.select_related("property").filter(pk=self.kwargs["pk"]).first()

    @staticmethod
    def not_found():
        return error_response(
            "Abrechnung nicht gefunden",
            "Die angegebene Abrechnung existiert nicht.",
            404,
        )


class ReconciliationDetailView(ReconciliationObjectMixin, View):
    http_method_names = ["get"]

    def get(self, request, *args, **kwargs):
        reconciliation = self.get_reconciliation()
        if reconciliation is None:
            return self.not_found()

        service = SideCostReconciliationService.for_reconciliation(reconciliation)
        expenses, category_totals = service.expense_summary()
        total_debt, total_credit = service.totals_from_details(reconciliation.details)

        body = serialize_reconciliation(reconciliation)
        body["total_debt"] = str(total_debt)
        body["total_credit"] = str(total_credit)
        body["expenses"] = [serialize_expense(expense) for expense in expenses]
        body["category_totals"] = {
            category: money_str(amount) for category, amount in category_totals.items()
        }
        return success_response({"reconciliation": body})


class ReconciliationUpdateView(ReconciliationObjectMixin, View):
    http_method_names = ["put", "post"]

    def put(self, request, *args, **kwargs):
        reconciliation = self.get_reconciliation()
        if reconciliation is None:
            return self.not_found()

        try:
            payload = parse_json_body(request)
        except ValueError as exc:
            return error_response("Ungültige Anfrage", str(exc), 400)

        form = ReconciliationUpdateForm(payload)
        if not form.is_valid():
            return error_response("Validierungsfehler", form_error_message(form), 400)

        service = SideCostReconciliationService.for_reconciliation(reconciliation)
        try:
            reconciliation, _result = service.update(reconciliation, **form.update_kwargs())
        except ReconciliationLockedError as exc:
            return error_response("Änderung nicht möglich", str(exc), 400)
        return success_response({"reconciliation": serialize_reconciliation(reconciliation)})

    def post(self, request, *args, **kwargs):
        return self.put(request, *args, **kwargs)


class ReconciliationDeleteView(ReconciliationObjectMixin, View):
    http_method_names = ["post", "delete"]

    def delete(self, request, *args, **kwargs):
        reconciliation = self.get_reconciliation()
        if reconciliation is None:
            return self.not_found()
        try:
            SideCostReconciliationService.delete(reconciliation)
        except ReconciliationLockedError as exc:
            return error_response("Löschen nicht möglich", str(exc), 400)
        return success_response({"deleted": True})

    def post(self, request, *args, **kwargs):
        return self.delete(request, *args, **kwargs)


class ReconciliationPreviewView(View):
    http_method_names = ["get"]

    def get(self, request, *args, **kwargs):
        property_id = parse_int(request.GET.get("property"))
        year_form = YearQueryForm(request.GET)
        if not year_form.is_valid():
            return error_response("Validierungsfehler", form_error_message(year_form), 400)
        year = year_form.cleaned_data["year"]
        if property_id is None or year is None:
            return error_response("Ungültige Anfrage", "Bitte Liegenschaft und Jahr angeben.", 400)
        property_obj = Property.objects.filter(pk=property_id).first()
        if property_obj is None:
            return error_response(
                "Liegenschaft nicht gefunden",
                "Die angegebene Liegenschaft existiert nicht.",
                404,
            )

        raw_method = (request.GET.get("method") or DistributionMethod.AREA_BASED.value).strip()
        try:
            method = DistributionMethod(raw_method)
        except ValueError:
            return error_response("Ungültige Anfrage", f"Unbekannte Verteilungsmethode: {raw_method}", 400)

        service = SideCostReconciliationService(property_obj, year)
        total_expenses = service.total_expenses()
        result = service.calculate(distribution_method=method, total_expenses=total_expenses)
        body = result.to_dict()
        body["total_expenses"] = money_str(total_expenses)
        body["distribution_method"] = method.value
        body["year"] = year
        body["property_id"] = property_obj.pk
        return success_response(body)


class PropertyExpenseListCreateView(View):
    http_method_names = ["get", "post"]

    def get(self, request, *args, **kwargs):
        queryset = PropertyExpense.objects.select_related("property").order_by("-expense_date", "-id")
        property_id = parse_int(request.GET.get("property"))
        year = parse_int(request.GET.get("year"))
        category = (request.GET.get("category") or "").strip()
        if property_id is not None:
            queryset = queryset.filter(property_id=property_id)
        if year is not None:
            queryset = queryset.filter(year=year)
        if category:
            queryset = queryset.filter(category=category)
        if request.GET.get("include_inactive") != "1":
            queryset = queryset.filter(is_active=True)

        expenses = list(queryset)
        total = sum((expense.amount for expense in expenses), Decimal("0.00"))
        return success_response(
            {
                "expenses": [serialize_expense(expense) for expense in expenses],
                "total": money_str(total),
            }
        )

    def post(self, request, *args, **kwargs):
        try:
            payload = parse_json_body(request)
        except ValueError as exc:
            return error_response("Ungültige Anfrage", str(exc), 400)
        payload.setdefault("is_active", True)

        form = PropertyExpenseForm(payload)
        if not form.is_valid():
            return error_response("Validierungsfehler", form_error_message(form), 400)
        expense = form.save()
        return success_response({"expense": serialize_expense(expense)}, status=201)


class MonthlyPaymentTrackerView(View):
    http_method_names = ["get"]

    def get(self, request, *args, **kwargs):
        year_form = YearQueryForm(request.GET)
        if not year_form.is_valid():
            return error_response("Validierungsfehler", form_error_message(year_form), 400)
        year = year_form.cleaned_data["year"]
        property_obj = None
        property_id = parse_int(request.GET.get("property"))
        if property_id is not None:
            property_obj = Property.objects.filter(pk=property_id).first()
            if property_obj is None:
                return error_response(
                    "Liegenschaft nicht gefunden",
                    "Die angegebene Liegenschaft existiert nicht.",
                    404,
                )

        service = MonthlyPaymentTrackerService(
            year=year or timezone.localdate().year,
            property_obj=property_obj,
        )
        return success_response(service.get_tracker_data())
