from builtins import property as builtin_property
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords


class Property(models.Model):
    name = models.CharField(max_length=255, verbose_name=_("Name"))
    code = models.CharField(max_length=50, blank=True, verbose_name=_("Objektcode"))
    street_address = models.CharField(max_length=255, blank=True, verbose_name=_("Straße und Hausnummer"))
    city = models.CharField(max_length=100, blank=True, verbose_name=_("Stadt"))
    total_units = models.PositiveIntegerField(null=True, blank=True, verbose_name=_("Anzahl Einheiten"))
    notes = models.TextField(blank=True, verbose_name=_("Notizen"))

    class Meta:
        verbose_name = _("Liegenschaft")
        verbose_name_plural = _("Liegenschaften")
        ordering = ["name", "id"]

    def __str__(self) -> str:
        if self.city:
            return f"{self.name} ({self.city})"
        return self.name


class Apartment(models.Model):
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="apartments",
        verbose_name=_("Liegenschaft"),
    )
    unit_number = models.CharField(max_length=50, verbose_name=_("Wohnungsnummer"))
    floor = models.CharField(max_length=20, blank=True, verbose_name=_("Stockwerk"))
    area = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Nutzfläche (m²)"),
    )
    additional_costs = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Nebenkosten-Akonto (monatlich)"),
    )
    cost_share = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Betriebskostenanteil"),
        help_text=_("Gewicht für die individuelle Verteilung (z. B. Prozent oder Faktor)."),
    )
    notes = models.TextField(blank=True, verbose_name=_("Notizen"))

    class Meta:
        verbose_name = _("Wohnung")
        verbose_name_plural = _("Wohnungen")
        ordering = ["property__name", "unit_number", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["property", "unit_number"],
                name="uniq_apartment_property_unit_number",
            )
        ]

    def __str__(self) -> str:
        return f"{self.unit_number} ({self.property.name})"

    @builtin_property
    def current_status(self) -> str:
        if self.contracts.filter(status=Contract.Status.ACTIVE).exists():
            return "Vermietet"
        return "Frei"


class TenantRecord(models.Model):
    class TenantType(models.TextChoices):
        INDIVIDUAL = "individual", _("Privatperson")
        COMPANY = "company", _("Firma")

    tenant_type = models.CharField(
        max_length=20,
        choices=TenantType.choices,
        default=TenantType.INDIVIDUAL,
        verbose_name=_("Mietertyp"),
    )
    first_name = models.CharField(max_length=100, blank=True, verbose_name=_("Vorname"))
    last_name = models.CharField(max_length=100, blank=True, verbose_name=_("Nachname"))
    company_name = models.CharField(max_length=255, blank=True, verbose_name=_("Firmenname"))
    email = models.EmailField(blank=True, verbose_name=_("E-Mail"))
    phone = models.CharField(max_length=50, blank=True, verbose_name=_("Telefon"))

    class Meta:
        verbose_name = _("Mieter")
        verbose_name_plural = _("Mieter")
        ordering = ["last_name", "first_name", "id"]

    def __str__(self) -> str:
        return self.display_name or f"Mieter #{self.pk}"

    @builtin_property
    def display_name(self) -> str:
        if self.tenant_type == self.TenantType.COMPANY:
            return self.company_name
        return f"{self.first_name} {self.last_name}".strip()


class Contract(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", _("Entwurf")
        ACTIVE = "active", _("Laufend")
        EXPIRED = "expired", _("Abgelaufen")
        TERMINATED = "terminated", _("Gekündigt")
        CANCELLED = "cancelled", _("Storniert")

    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.CASCADE,
        related_name="contracts",
        verbose_name=_("Wohnung"),
    )
    tenant_record = models.ForeignKey(
        TenantRecord,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="contracts",
        verbose_name=_("Mieter"),
    )
    contract_number = models.CharField(max_length=50, blank=True, verbose_name=_("Vertragsnummer"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
        verbose_name=_("Status"),
    )
    start_date = models.DateField(verbose_name=_("Beginn"))
    end_date = models.DateField(null=True, blank=True, verbose_name=_("Ende"))
    monthly_rent = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Monatsmiete"),
    )
    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Mietvertrag")
        verbose_name_plural = _("Mietverträge")
        ordering = ["-start_date", "-id"]

    def __str__(self) -> str:
        return f"{self.contract_number or f'Vertrag #{self.pk}'} · {self.apartment}"

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": _("Das Vertragsende liegt vor dem Vertragsbeginn.")})


class PropertyExpense(models.Model):
    class Category(models.TextChoices):
        UTILITIES = "utilities", _("Versorgung")
        MAINTENANCE = "maintenance", _("Instandhaltung")
        INSURANCE = "insurance", _("Versicherung")
        TAXES = "taxes", _("Steuern und Abgaben")
        MANAGEMENT = "management", _("Verwaltung")
        CLEANING = "cleaning", _("Reinigung")
        HEATING = "heating", _("Heizung")
        OTHER = "other", _("Sonstiges")

    property = models.ForeignKey(
        Property,
        on_delete=models.PROTECT,
        related_name="expenses",
        verbose_name=_("Liegenschaft"),
    )
    name = models.CharField(max_length=255, verbose_name=_("Bezeichnung"))
    category = models.CharField(
        max_length=30,
        choices=Category.choices,
        default=Category.UTILITIES,
        verbose_name=_("Kategorie"),
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Betrag"),
    )
    expense_date = models.DateField(verbose_name=_("Datum"))
    year = models.PositiveIntegerField(blank=True, db_index=True, verbose_name=_("Jahr"))
    month = models.PositiveSmallIntegerField(
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(12)],
        verbose_name=_("Monat"),
    )
    description = models.TextField(blank=True, verbose_name=_("Beschreibung"))
    invoice_number = models.CharField(max_length=100, blank=True, verbose_name=_("Rechnungsnummer"))
    vendor_name = models.CharField(max_length=255, blank=True, verbose_name=_("Lieferant"))
    is_distributed = models.BooleanField(default=False, verbose_name=_("Verteilt"))
    distribution_method = models.CharField(
        max_length=20,
        blank=True,
        verbose_name=_("Verteilungsmethode"),
    )
    distributed_at = models.DateTimeField(null=True, blank=True, verbose_name=_("Verteilt am"))
    is_active = models.BooleanField(default=True, verbose_name=_("Aktiv"))

    class Meta:
        verbose_name = _("Liegenschaftsausgabe")
        verbose_name_plural = _("Liegenschaftsausgaben")
        ordering = ["-expense_date", "-id"]

    def __str__(self) -> str:
        return f"{self.expense_date} · {self.property} · {self.amount}"

    def clean(self):
        super().clean()
        if self.expense_date is None:
            return
        if self.year is None:
            self.year = self.expense_date.year
        if self.month is None:
            self.month = self.expense_date.month
        if self.year != self.expense_date.year or self.month != self.expense_date.month:
            raise ValidationError(
                {"expense_date": _("Jahr und Monat müssen zum Ausgabedatum passen.")}
            )

    def save(self, *args, **kwargs):
        if self.expense_date is not None:
            if self.year is None:
                self.year = self.expense_date.year
            if self.month is None:
                self.month = self.expense_date.month
        super().save(*args, **kwargs)


class SideCostReconciliation(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", _("Entwurf")
        CALCULATED = "calculated", _("Berechnet")
        FINALIZED = "finalized", _("Abgeschlossen")
        CANCELLED = "cancelled", _("Storniert")

    class DistributionMethod(models.TextChoices):
        EQUAL = "equal", _("Gleichverteilung")
        AREA_BASED = "area_based", _("Nach Nutzfläche")
        CUSTOM = "custom", _("Nach BK-Anteil")

    property = models.ForeignKey(
        Property,
        on_delete=models.PROTECT,
        related_name="side_cost_reconciliations",
        verbose_name=_("Liegenschaft"),
    )
    year = models.PositiveIntegerField(verbose_name=_("Jahr"))
    total_expenses = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Gesamtausgaben"),
    )
    apartment_count = models.PositiveIntegerField(default=0, verbose_name=_("Anzahl Wohnungen"))
    per_apartment_share = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Durchschnitt je Wohnung"),
    )
    distribution_method = models.CharField(
        max_length=20,
        choices=DistributionMethod.choices,
        default=DistributionMethod.AREA_BASED,
        verbose_name=_("Verteilungsmethode"),
    )
    fiscal_year_start = models.DateField(null=True, blank=True, verbose_name=_("Abrechnungsbeginn"))
    fiscal_year_end = models.DateField(null=True, blank=True, verbose_name=_("Abrechnungsende"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
        verbose_name=_("Status"),
    )
    calculated_at = models.DateTimeField(null=True, blank=True, verbose_name=_("Berechnet am"))
    finalized_at = models.DateTimeField(null=True, blank=True, verbose_name=_("Abgeschlossen am"))
    details = models.JSONField(default=list, blank=True, verbose_name=_("Details je Wohnung"))
    notes = models.TextField(blank=True, verbose_name=_("Notizen"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Erstellt am"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("Aktualisiert am"))
    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Nebenkostenabrechnung")
        verbose_name_plural = _("Nebenkostenabrechnungen")
        ordering = ["-year", "-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["property", "year"],
                name="uniq_side_cost_reconciliation_property_year",
            )
        ]

    def __str__(self) -> str:
        return f"{self.property} · {self.year}"

    @builtin_property
    def is_finalized(self) -> bool:
        return self.status == self.Status.FINALIZED

    def clean(self):
        super().clean()
        if (
            self.fiscal_year_start
            and self.fiscal_year_end
            and self.fiscal_year_end < self.fiscal_year_start
        ):
            raise ValidationError(
                {"fiscal_year_end": _("Das Abrechnungsende liegt vor dem Abrechnungsbeginn.")}
            )


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("Offen")
        PAID = "paid", _("Bezahlt")
        PARTIAL = "partial", _("Teilweise bezahlt")
        OVERDUE = "overdue", _("Überfällig")
        CANCELLED = "cancelled", _("Storniert")

    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.CASCADE,
        related_name="payments",
        verbose_name=_("Wohnung"),
    )
    contract = models.ForeignKey(
        Contract,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
        verbose_name=_("Mietvertrag"),
    )
    due_date = models.DateField(db_index=True, verbose_name=_("Fällig am"))
    paid_date = models.DateField(null=True, blank=True, verbose_name=_("Bezahlt am"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        verbose_name=_("Status"),
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_("Betrag"))
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("Gesamtbetrag"),
    )
    paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name=_("Bezahlter Betrag"),
    )
    payment_method = models.CharField(max_length=50, blank=True, verbose_name=_("Zahlungsart"))

    class Meta:
        verbose_name = _("Zahlung")
        verbose_name_plural = _("Zahlungen")
        ordering = ["due_date", "id"]

    def __str__(self) -> str:
        return f"{self.due_date} · {self.apartment} · {self.amount}"

    @builtin_property
    def expected_amount(self) -> Decimal:
        return self.total_amount if self.total_amount else self.amount
