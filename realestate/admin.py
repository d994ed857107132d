from django.contrib import admin, messages
from simple_history.admin import SimpleHistoryAdmin

from .forms import ApartmentForm, ContractForm, PropertyExpenseForm
from .models import (
    Apartment,
    Contract,
    Payment,
    Property,
    PropertyExpense,
    SideCostReconciliation,
    TenantRecord,
)
from .services.reconciliation_service import ReconciliationLockedError, SideCostReconciliationService


class ApartmentInline(admin.TabularInline):
    model = Apartment
    form = ApartmentForm
    extra = 0


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "city", "street_address", "total_units")
    search_fields = ("name", "code", "city", "street_address")
    inlines = (ApartmentInline,)


@admin.register(Apartment)
class ApartmentAdmin(admin.ModelAdmin):
    form = ApartmentForm
    list_display = ("unit_number", "property", "floor", "area", "additional_costs", "cost_share")
    list_filter = ("property",)
    search_fields = ("unit_number", "property__name")


@admin.register(TenantRecord)
class TenantRecordAdmin(admin.ModelAdmin):
    list_display = ("__str__", "tenant_type", "email", "phone")
    list_filter = ("tenant_type",)
    search_fields = ("first_name", "last_name", "company_name", "email", "phone")


@admin.register(Contract)
class ContractAdmin(SimpleHistoryAdmin):
    form = ContractForm
    list_display = ("apartment", "tenant_record", "status", "start_date", "end_date", "monthly_rent")
    list_filter = ("status", "apartment__property")
    search_fields = (
        "contract_number",
        "apartment__unit_number",
        "tenant_record__first_name",
        "tenant_record__last_name",
        "tenant_record__company_name",
    )
    history_list_display = ("status", "start_date", "end_date", "monthly_rent", "history_user", "history_date")


@admin.register(PropertyExpense)
class PropertyExpenseAdmin(admin.ModelAdmin):
    form = PropertyExpenseForm
    list_display = ("expense_date", "property", "name", "category", "amount", "is_active")
    list_filter = ("category", "is_active", "year", "property")
    search_fields = ("name", "vendor_name", "invoice_number", "property__name")


@admin.register(SideCostReconciliation)
class SideCostReconciliationAdmin(SimpleHistoryAdmin):
    list_display = (
        "property",
        "year",
        "status",
        "distribution_method",
        "total_expenses",
        "apartment_count",
        "calculated_at",
        "finalized_at",
    )
    list_filter = ("status", "distribution_method", "year", "property")
    search_fields = ("property__name", "notes")
    readonly_fields = ("details", "calculated_at", "finalized_at", "created_at", "updated_at")
    history_list_display = ("status", "distribution_method", "total_expenses", "history_user", "history_date")
    actions = ("finalize_selected",)

    @admin.action(description="Ausgewählte Abrechnungen abschließen")
    def finalize_selected(self, request, queryset):
        updated = 0
        for reconciliation in queryset.select_related("property"):
            service = SideCostReconciliationService.for_reconciliation(reconciliation)
            try:
                service.update(reconciliation, status=SideCostReconciliation.Status.FINALIZED)
            except ReconciliationLockedError:
                continue
            updated += 1
        if updated:
            self.message_user(request, f"{updated} Abrechnung(en) abgeschlossen.", level=messages.SUCCESS)
        else:
            self.message_user(
                request,
                "Keine Abrechnungen abgeschlossen (bereits abgeschlossen).",
                level=messages.WARNING,
            )


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("due_date", "apartment", "status", "amount", "paid_amount", "paid_date")
    list_filter = ("status", "apartment__property")
    search_fields = ("apartment__unit_number", "payment_method")
    date_hierarchy = "due_date"
