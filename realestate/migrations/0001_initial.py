import django.core.validators
import django.db.models.deletion
import simple_history.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("code", models.CharField(blank=True, max_length=50, verbose_name="Objektcode")),
                ("street_address", models.CharField(blank=True, max_length=255, verbose_name="Straße und Hausnummer")),
                ("city", models.CharField(blank=True, max_length=100, verbose_name="Stadt")),
                ("total_units", models.PositiveIntegerField(blank=True, null=True, verbose_name="Anzahl Einheiten")),
                ("notes", models.TextField(blank=True, verbose_name="Notizen")),
            ],
            options={
                "verbose_name": "Liegenschaft",
                "verbose_name_plural": "Liegenschaften",
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="TenantRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "tenant_type",
                    models.CharField(
                        choices=[("individual", "Privatperson"), ("company", "Firma")],
                        default="individual",
                        max_length=20,
                        verbose_name="Mietertyp",
                    ),
                ),
                ("first_name", models.CharField(blank=True, max_length=100, verbose_name="Vorname")),
                ("last_name", models.CharField(blank=True, max_length=100, verbose_name="Nachname")),
                ("company_name", models.CharField(blank=True, max_length=255, verbose_name="Firmenname")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="E-Mail")),
                ("phone", models.CharField(blank=True, max_length=50, verbose_name="Telefon")),
            ],
            options={
                "verbose_name": "Mieter",
                "verbose_name_plural": "Mieter",
                "ordering": ["last_name", "first_name", "id"],
            },
        ),
        migrations.CreateModel(
            name="Apartment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("unit_number", models.CharField(max_length=50, verbose_name="Wohnungsnummer")),
                ("floor", models.CharField(blank=True, max_length=20, verbose_name="Stockwerk")),
                (
                    "area",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=8,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Nutzfläche (m²)",
                    ),
                ),
                (
                    "additional_costs",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Nebenkosten-Akonto (monatlich)",
                    ),
                ),
                (
                    "cost_share",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Gewicht für die individuelle Verteilung (z. B. Prozent oder Faktor).",
                        max_digits=6,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Betriebskostenanteil",
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notizen")),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="apartments",
                        to="realestate.property",
                        verbose_name="Liegenschaft",
                    ),
                ),
            ],
            options={
                "verbose_name": "Wohnung",
                "verbose_name_plural": "Wohnungen",
                "ordering": ["property__name", "unit_number", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="apartment",
            constraint=models.UniqueConstraint(
                fields=("property", "unit_number"),
                name="uniq_apartment_property_unit_number",
            ),
        ),
        migrations.CreateModel(
            name="Contract",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("contract_number", models.CharField(blank=True, max_length=50, verbose_name="Vertragsnummer")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Entwurf"),
                            ("active", "Laufend"),
                            ("expired", "Abgelaufen"),
                            ("terminated", "Gekündigt"),
                            ("cancelled", "Storniert"),
                        ],
                        db_index=True,
                        default="active",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("start_date", models.DateField(verbose_name="Beginn")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="Ende")),
                (
                    "monthly_rent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Monatsmiete",
                    ),
                ),
                (
                    "apartment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contracts",
                        to="realestate.apartment",
                        verbose_name="Wohnung",
                    ),
                ),
                (
                    "tenant_record",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contracts",
                        to="realestate.tenantrecord",
                        verbose_name="Mieter",
                    ),
                ),
            ],
            options={
                "verbose_name": "Mietvertrag",
                "verbose_name_plural": "Mietverträge",
                "ordering": ["-start_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalContract",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("contract_number", models.CharField(blank=True, max_length=50, verbose_name="Vertragsnummer")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Entwurf"),
                            ("active", "Laufend"),
                            ("expired", "Abgelaufen"),
                            ("terminated", "Gekündigt"),
                            ("cancelled", "Storniert"),
                        ],
                        db_index=True,
                        default="active",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("start_date", models.DateField(verbose_name="Beginn")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="Ende")),
                (
                    "monthly_rent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Monatsmiete",
                    ),
                ),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "apartment",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="realestate.apartment",
                        verbose_name="Wohnung",
                    ),
                ),
                (
                    "tenant_record",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="realestate.tenantrecord",
                        verbose_name="Mieter",
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "historical Mietvertrag",
                "verbose_name_plural": "historical Mietverträge",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="PropertyExpense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="Bezeichnung")),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("utilities", "Versorgung"),
                            ("maintenance", "Instandhaltung"),
                            ("insurance", "Versicherung"),
                            ("taxes", "Steuern und Abgaben"),
                            ("management", "Verwaltung"),
                            ("cleaning", "Reinigung"),
                            ("heating", "Heizung"),
                            ("other", "Sonstiges"),
                        ],
                        default="utilities",
                        max_length=30,
                        verbose_name="Kategorie",
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Betrag",
                    ),
                ),
                ("expense_date", models.DateField(verbose_name="Datum")),
                ("year", models.PositiveIntegerField(blank=True, db_index=True, verbose_name="Jahr")),
                (
                    "month",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(12),
                        ],
                        verbose_name="Monat",
                    ),
                ),
                ("description", models.TextField(blank=True, verbose_name="Beschreibung")),
                ("invoice_number", models.CharField(blank=True, max_length=100, verbose_name="Rechnungsnummer")),
                ("vendor_name", models.CharField(blank=True, max_length=255, verbose_name="Lieferant")),
                ("is_distributed", models.BooleanField(default=False, verbose_name="Verteilt")),
                ("distribution_method", models.CharField(blank=True, max_length=20, verbose_name="Verteilungsmethode")),
                ("distributed_at", models.DateTimeField(blank=True, null=True, verbose_name="Verteilt am")),
                ("is_active", models.BooleanField(default=True, verbose_name="Aktiv")),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="expenses",
                        to="realestate.property",
                        verbose_name="Liegenschaft",
                    ),
                ),
            ],
            options={
                "verbose_name": "Liegenschaftsausgabe",
                "verbose_name_plural": "Liegenschaftsausgaben",
                "ordering": ["-expense_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="SideCostReconciliation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveIntegerField(verbose_name="Jahr")),
                (
                    "total_expenses",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        verbose_name="Gesamtausgaben",
                    ),
                ),
                ("apartment_count", models.PositiveIntegerField(default=0, verbose_name="Anzahl Wohnungen")),
                (
                    "per_apartment_share",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        verbose_name="Durchschnitt je Wohnung",
                    ),
                ),
                (
                    "distribution_method",
                    models.CharField(
                        choices=[
                            ("equal", "Gleichverteilung"),
                            ("area_based", "Nach Nutzfläche"),
                            ("custom", "Nach BK-Anteil"),
                        ],
                        default="area_based",
                        max_length=20,
                        verbose_name="Verteilungsmethode",
                    ),
                ),
                ("fiscal_year_start", models.DateField(blank=True, null=True, verbose_name="Abrechnungsbeginn")),
                ("fiscal_year_end", models.DateField(blank=True, null=True, verbose_name="Abrechnungsende")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Entwurf"),
                            ("calculated", "Berechnet"),
                            ("finalized", "Abgeschlossen"),
                            ("cancelled", "Storniert"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("calculated_at", models.DateTimeField(blank=True, null=True, verbose_name="Berechnet am")),
                ("finalized_at", models.DateTimeField(blank=True, null=True, verbose_name="Abgeschlossen am")),
                ("details", models.JSONField(blank=True, default=list, verbose_name="Details je Wohnung")),
                ("notes", models.TextField(blank=True, verbose_name="Notizen")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Erstellt am")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Aktualisiert am")),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="side_cost_reconciliations",
                        to="realestate.property",
                        verbose_name="Liegenschaft",
                    ),
                ),
            ],
            options={
                "verbose_name": "Nebenkostenabrechnung",
                "verbose_name_plural": "Nebenkostenabrechnungen",
                "ordering": ["-year", "-created_at", "-id"],
            },
        ),
        migrations.AddConstraint(
            model_name="sidecostreconciliation",
            constraint=models.UniqueConstraint(
                fields=("property", "year"),
                name="uniq_side_cost_reconciliation_property_year",
            ),
        ),
        migrations.CreateModel(
            name="HistoricalSideCostReconciliation",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("year", models.PositiveIntegerField(verbose_name="Jahr")),
                (
                    "total_expenses",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        verbose_name="Gesamtausgaben",
                    ),
                ),
                ("apartment_count", models.PositiveIntegerField(default=0, verbose_name="Anzahl Wohnungen")),
                (
                    "per_apartment_share",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        verbose_name="Durchschnitt je Wohnung",
                    ),
                ),
                (
                    "distribution_method",
                    models.CharField(
                        choices=[
                            ("equal", "Gleichverteilung"),
                            ("area_based", "Nach Nutzfläche"),
                            ("custom", "Nach BK-Anteil"),
                        ],
                        default="area_based",
                        max_length=20,
                        verbose_name="Verteilungsmethode",
                    ),
                ),
                ("fiscal_year_start", models.DateField(blank=True, null=True, verbose_name="Abrechnungsbeginn")),
                ("fiscal_year_end", models.DateField(blank=True, null=True, verbose_name="Abrechnungsende")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Entwurf"),
                            ("calculated", "Berechnet"),
                            ("finalized", "Abgeschlossen"),
                            ("cancelled", "Storniert"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("calculated_at", models.DateTimeField(blank=True, null=True, verbose_name="Berechnet am")),
                ("finalized_at", models.DateTimeField(blank=True, null=True, verbose_name="Abgeschlossen am")),
                ("details", models.JSONField(blank=True, default=list, verbose_name="Details je Wohnung")),
                ("notes", models.TextField(blank=True, verbose_name="Notizen")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Erstellt am")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Aktualisiert am")),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "property",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="realestate.property",
                        verbose_name="Liegenschaft",
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "historical Nebenkostenabrechnung",
                "verbose_name_plural": "historical Nebenkostenabrechnungen",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("due_date", models.DateField(db_index=True, verbose_name="Fällig am")),
                ("paid_date", models.DateField(blank=True, null=True, verbose_name="Bezahlt am")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Offen"),
                            ("paid", "Bezahlt"),
                            ("partial", "Teilweise bezahlt"),
                            ("overdue", "Überfällig"),
                            ("cancelled", "Storniert"),
                        ],
                        default="pending",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Betrag")),
                (
                    "total_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=12,
                        null=True,
                        verbose_name="Gesamtbetrag",
                    ),
                ),
                (
                    "paid_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        verbose_name="Bezahlter Betrag",
                    ),
                ),
                ("payment_method", models.CharField(blank=True, max_length=50, verbose_name="Zahlungsart")),
                (
                    "apartment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="realestate.apartment",
                        verbose_name="Wohnung",
                    ),
                ),
                (
                    "contract",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments",
                        to="realestate.contract",
                        verbose_name="Mietvertrag",
                    ),
                ),
            ],
            options={
                "verbose_name": "Zahlung",
                "verbose_name_plural": "Zahlungen",
                "ordering": ["due_date", "id"],
            },
        ),
    ]
