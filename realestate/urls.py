from django.urls import path

from .views import (
    MonthlyPaymentTrackerView,
    PropertyExpenseListCreateView,
    ReconciliationDeleteView,
    ReconciliationDetailView,
    ReconciliationListCreateView,
    ReconciliationPreviewView,
    ReconciliationUpdateView,
)

urlpatterns = [
    path("reconciliations/", ReconciliationListCreateView.as_view(), name="reconciliation_list"),
    path("reconciliations/<int:pk>/", ReconciliationDetailView.as_view(), name="reconciliation_detail"),
    path("reconciliations/<int:pk>/update/", ReconciliationUpdateView.as_view(), name="reconciliation_update"),
    path("reconciliations/<int:pk>/delete/", ReconciliationDeleteView.as_view(), name="reconciliation_delete"),
    path("expenses/", PropertyExpenseListCreateView.as_view(), name="expense_list"),
    path("payments/monthly-tracker/", MonthlyPaymentTrackerView.as_view(), name="payment_monthly_tracker"),
    path("calculate/preview/", ReconciliationPreviewView.as_view(), name="reconciliation_preview"),
]
