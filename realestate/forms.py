from django import forms

from .models import Apartment, Contract, Property, PropertyExpense, SideCostReconciliation

MIN_YEAR = 2000
MAX_YEAR = 2100


class YearQueryForm(forms.Form):
    year = forms.IntegerField(min_value=MIN_YEAR, max_value=MAX_YEAR, required=False)


class ReconciliationCreateForm(forms.Form):
    property = forms.ModelChoiceField(
        queryset=Property.objects.all(),
        error_messages={"invalid_choice": "Die angegebene Liegenschaft existiert nicht."},
    )
    year = forms.IntegerField(min_value=MIN_YEAR, max_value=MAX_YEAR)
    distribution_method = forms.ChoiceField(
        choices=SideCostReconciliation.DistributionMethod.choices,
        required=False,
    )
    fiscal_year_start = forms.DateField(required=False)
    fiscal_year_end = forms.DateField(required=False)
    notes = forms.CharField(required=False, widget=forms.Textarea)

    def clean_distribution_method(self):
        return (
            self.cleaned_data.get("distribution_method")
            or SideCostReconciliation.DistributionMethod.AREA_BASED
        )

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get("fiscal_year_start")
        end = cleaned_data.get("fiscal_year_end")
        if start and end and end < start:
            self.add_error("fiscal_year_end", "Abrechnungsende darf nicht vor dem Abrechnungsbeginn liegen.")
        return cleaned_data


class ReconciliationUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=SideCostReconciliation.Status.choices, required=False)
    notes = forms.CharField(required=False, widget=forms.Textarea)
    distribution_method = forms.ChoiceField(
        choices=SideCostReconciliation.DistributionMethod.choices,
        required=False,
    )
    fiscal_year_start = forms.DateField(required=False)
    fiscal_year_end = forms.DateField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get("fiscal_year_start")
        end = cleaned_data.get("fiscal_year_end")
        if start and end and end < start:
            self.add_error("fiscal_year_end", "Abrechnungsende darf nicht vor dem Abrechnungsbeginn liegen.")
        return cleaned_data

    def update_kwargs(self) -> dict[str, object]:
        return {
            "status": self.cleaned_data.get("status") or None,
            "notes": self.cleaned_data.get("notes") if "notes" in self.data else None,
            "distribution_method": self.cleaned_data.get("distribution_method") or None,
            "fiscal_year_start": self.cleaned_data.get("fiscal_year_start"),
            "fiscal_year_end": self.cleaned_data.get("fiscal_year_end"),
        }


class PropertyExpenseForm(forms.ModelForm):
    class Meta:
        model = PropertyExpense
        fields = [
            "property",
            "name",
            "category",
            "amount",
            "expense_date",
            "year",
            "month",
            "description",
            "invoice_number",
            "vendor_name",
            "is_active",
        ]
        widgets = {
            "expense_date": forms.DateInput(attrs={"type": "date", "class": "form-control"}),
            "description": forms.Textarea(attrs={"class": "form-control", "rows": 3}),
        }

    def clean(self):
        cleaned_data = super().clean()
        amount = cleaned_data.get("amount")
        if amount is not None and amount <= 0:
            self.add_error("amount", "Betrag muss größer als 0 sein.")
        return cleaned_data


class ApartmentForm(forms.ModelForm):
    class Meta:
        model = Apartment
        fields = ["property", "unit_number", "floor", "area", "additional_costs", "cost_share", "notes"]
        widgets = {
            "area": forms.NumberInput(attrs={"class": "form-control", "step": "0.01", "min": "0"}),
            "additional_costs": forms.NumberInput(attrs={"class": "form-control", "step": "0.01", "min": "0"}),
            "cost_share": forms.NumberInput(attrs={"class": "form-control", "step": "0.01", "min": "0"}),
            "notes": forms.Textarea(attrs={"class": "form-control", "rows": 3}),
        }


class ContractForm(forms.ModelForm):
    class Meta:
        model = Contract
        fields = [
            "apartment",
            "tenant_record",
            "contract_number",
            "status",
            "start_date",
            "end_date",
            "monthly_rent",
        ]
        widgets = {
            "start_date": forms.DateInput(attrs={"type": "date", "class": "form-control"}),
            "end_date": forms.DateInput(attrs={"type": "date", "class": "form-control"}),
        }

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get("start_date")
        end_date = cleaned_data.get("end_date")
        if start_date and end_date and end_date < start_date:
            self.add_error("end_date", "Vertragsende darf nicht vor dem Vertragsbeginn liegen.")
        return cleaned_data
