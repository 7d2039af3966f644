"""Create or refresh the default Sales and Customer Service compensation plans."""
from datetime import date

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Seed the default SALES/CS compensation plans and assign them to matching people"

    def add_arguments(self, parser):
        parser.add_argument(
            "--agency",
            metavar="CODE",
            help="Also ensure the starter catalog and activity types for this agency code.",
        )
        parser.add_argument(
            "--effective-from",
            type=date.fromisoformat,
            help="Effective date for newly created default plans (YYYY-MM-DD).",
        )

    def handle(self, *args, **options):
        from activities.services import ensure_default_activity_types
        from catalog.services import ensure_starter_catalog
        from compensation.services import seed_default_plans
        from org.models import Agency

        code = options.get("agency")
        if code:
            agency = Agency.objects.filter(code=code).first()
            if agency is None:
                raise CommandError(f"Unknown agency code '{code}'")
            counts = ensure_starter_catalog(agency)
            activity_count = ensure_default_activity_types(agency)
            self.stdout.write(
                f"Agency {agency.code}: {counts['lines_of_business']} lines of business, "
                f"{counts['products']} products, {activity_count} activity types created"
            )

        summary = seed_default_plans(options.get("effective_from"))
        self.stdout.write(self.style.SUCCESS(
            f"Default plans seeded: {summary['plans_created']} plans, "
            f"{summary['rule_blocks_created']} rule blocks, "
            f"{summary['assignments_created']} assignments created"
        ))
