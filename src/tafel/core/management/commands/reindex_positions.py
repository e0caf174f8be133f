from django.core.management.base import BaseCommand, CommandError

from tafel.core.engine.remote import renumber_stored_positions
from tafel.core.models import Project


class Command(BaseCommand):
    help = "Renumber stored column and item positions to contiguous sequences starting at 0"

    def add_arguments(self, parser):
        parser.add_argument(
            "slugs",
            nargs="*",
            type=str,
            help="Slugs of the projects to renumber (default: all projects)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report what would change",
        )

    def handle(self, *args, **options):
        projects = Project.objects.all()
        if options["slugs"]:
            projects = projects.filter(slug__in=options["slugs"])
            missing = set(options["slugs"]) - set(projects.values_list("slug", flat=True))
            if missing:
                raise CommandError(f"Unknown project: {', '.join(sorted(missing))}")

        verb = "Would renumber" if options["dry_run"] else "Renumbered"
        total = 0
        for project in projects:
            changes = renumber_stored_positions(project.pk, dry_run=options["dry_run"])
            count = len(changes.column_updates) + len(changes.item_updates)
            total += count
            if count:
                self.stdout.write(
                    self.style.WARNING(
                        f"{verb} {len(changes.column_updates)} columns and "
                        f"{len(changes.item_updates)} items in {project.name}"
                    )
                )
            else:
                self.stdout.write(f"{project.name} is already in order")

        self.stdout.write(self.style.SUCCESS(f"\n{verb} {total} positions."))
