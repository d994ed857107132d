from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from realestate.forms import MAX_YEAR, MIN_YEAR
from realestate.models import Property
from realestate.services.reconciliation_service import (
    ReconciliationExistsError,
    SideCostReconciliationService,
)
from realestate.services.side_cost_calculation_service import DistributionMethod


class Command(BaseCommand):
    help = (
        "Berechnet die Nebenkostenabrechnung einer Liegenschaft fuer ein Jahr. "
        "Ohne --apply wird nur eine Vorschau ausgegeben."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--liegenschaft",
            type=int,
            required=True,
            help="Liegenschafts-ID.",
        )
        parser.add_argument(
            "--jahr",
            type=int,
            required=True,
            help="Abrechnungsjahr (YYYY).",
        )
        parser.add_argument(
            "--methode",
            choices=[method.value for method in DistributionMethod],
            default=DistributionMethod.AREA_BASED.value,
            help="Verteilungsschluessel (Standard: area_based).",
        )
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Speichert die Abrechnung in der Datenbank. Ohne --apply nur Vorschau.",
        )

    def handle(self, *args, **options):
        apply_changes = bool(options.get("apply"))
        year = options["jahr"]
        method = options["methode"]

        if not MIN_YEAR <= year <= MAX_YEAR:
            raise CommandError(f"Jahr {year} liegt ausserhalb von {MIN_YEAR} bis {MAX_YEAR}.")

        property_obj = Property.objects.filter(pk=options["liegenschaft"]).first()
        if property_obj is None:
            raise CommandError(f"Liegenschaft {options['liegenschaft']} existiert nicht.")

        service = SideCostReconciliationService(property_obj, year)
        existing = service.existing()
        if existing is not None:
            raise CommandError(str(ReconciliationExistsError(existing)))

        total_expenses = service.total_expenses()
        result = service.calculate(distribution_method=method, total_expenses=total_expenses)

        self.stdout.write(f"Liegenschaft: {property_obj.name} / Jahr {year} / Methode {method}")
        self.stdout.write(f"Gesamtkosten: {total_expenses} EUR")
        self.stdout.write(f"Wohnungen: {result.apartment_count}")
        for detail in result.details:
            tenant = detail.tenant_info.name if detail.tenant_info else "ohne Mieter"
            self.stdout.write(
                f"- {detail.unit_number} [{tenant}] "
                f"Monate {detail.months_occupied:.2f} "
                f"Vorschreibung {detail.total_estimated_paid} "
                f"Anteil {detail.actual_share} "
                f"Differenz {detail.difference} ({detail.status.value})"
            )
        self.stdout.write(f"Nachzahlungen gesamt: {result.total_debt}")
        self.stdout.write(f"Guthaben gesamt: {result.total_credit}")

        if not apply_changes:
            self.stdout.write(
                self.style.WARNING(
                    "Dry-Run: Keine Daten geaendert. Mit --apply wird die Abrechnung gespeichert."
                )
            )
            return

        try:
            reconciliation, _result = service.create(distribution_method=method)
        except ReconciliationExistsError as exc:
            raise CommandError(str(exc)) from exc
        self.stdout.write(self.style.SUCCESS(f"Abrechnung {reconciliation.pk} gespeichert."))
