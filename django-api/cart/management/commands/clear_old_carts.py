"""Clear carts holding lines left untouched past the inactivity window."""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from cart.services import build_cart_service


class Command(BaseCommand):
    help = "Clear carts with lines not updated for CART_MAX_AGE_MINUTES."

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=settings.NIGHTLIFE.get("CART_MAX_AGE_MINUTES", 30),
            help="Inactivity window in minutes.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the carts that would be cleared without clearing them.",
        )

    def handle(self, *args, **options):
        minutes = options["minutes"]
        if minutes < 1:
            raise CommandError("--minutes must be at least 1")

        service = build_cart_service()
        cutoff = service.now() - timedelta(minutes=minutes)
        stale = service.purge_stale(cutoff, dry_run=options["dry_run"])

        verb = "Would clear" if options["dry_run"] else "Cleared"
        for owner_key, lines in stale:
            self.stdout.write(f"{verb} {owner_key} ({lines} lines)")
        self.stdout.write(self.style.SUCCESS(f"{verb} {len(stale)} cart(s)"))
