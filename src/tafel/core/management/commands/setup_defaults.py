from django.core.management.base import BaseCommand

from tafel.core.models import Column, Project


class Command(BaseCommand):
    help = "Create a default project with columns and a ruler column"

    def add_arguments(self, parser):
        parser.add_argument(
            "--project-name",
            type=str,
            default="Default Project",
            help="Name of the default project (default: 'Default Project')",
        )
        parser.add_argument(
            "--slug",
            type=str,
            default="default",
            help="Slug of the default project (default: 'default')",
        )

    def handle(self, *args, **options):
        project_name = options["project_name"]

        project, created = Project.objects.get_or_create(
            slug=options["slug"],
            defaults={
                "name": project_name,
                "description": "Default kanban project",
            },
        )

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created project: {project.name}"))
        else:
            self.stdout.write(
                self.style.WARNING(f"Project already exists: {project.name}")
            )

        default_columns = [
            ("Todo", 0, False),
            ("In Progress", 1, False),
            ("Review", 2, False),
            ("Done", 3, True),
        ]
        has_ruler = project.columns.filter(is_ruler=True).exists()

        for column_name, position, is_ruler in default_columns:
            column, created = Column.objects.get_or_create(
                project=project,
                name=column_name,
                defaults={"position": position, "is_ruler": is_ruler and not has_ruler},
            )
            if created:
                self.stdout.write(
                    self.style.SUCCESS(f"  Created column: {column_name}")
                )
            else:
                self.stdout.write(
                    self.style.WARNING(f"  Column already exists: {column_name}")
                )

        self.stdout.write(self.style.SUCCESS("\nDefault setup completed successfully!"))
