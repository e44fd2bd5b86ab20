"""Management command to check cached balances against the ledgers."""

from django.core.management.base import BaseCommand

from pointman.models import Member
from pointman.services.ledger import LedgerService


class Command(BaseCommand):
    help = "Report members whose cached points balance drifted from the ledgers"

    def add_arguments(self, parser):
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Rewrite drifted balances from the ledgers",
        )
        parser.add_argument(
            "--database",
            default="default",
            help="Database alias of the points store",
        )

    def handle(self, *args, **options):
        using = options["database"]
        drifted = 0

        for member in Member.objects.using(using).order_by("pk").iterator():
            if options["fix"]:
                audit = LedgerService.reconcile(member.pk, using=using)
            else:
                audit = LedgerService.audit(member, using=using)
            if audit.consistent:
                continue
            drifted += 1
            self.stdout.write(
                f"member={audit.member_id} cached={audit.cached} "
                f"ledger={audit.ledger} drift={audit.drift:+d}"
            )

        action = "fixed" if options["fix"] else "found"
        self.stdout.write(self.style.SUCCESS(f"{drifted} drifted balance(s) {action}."))
