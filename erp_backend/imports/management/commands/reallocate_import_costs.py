# imports/management/commands/reallocate_import_costs.py

from django.core.management.base import BaseCommand, CommandError

from imports.models import ImportContainer
from imports.services.cost_allocation import (
    BASIS_QUANTITY,
    BASIS_VALUE,
    allocate_container_costs,
    reallocate_all_containers,
)


class Command(BaseCommand):
    help = "Recompute landed costs for import containers (all, or one with --container)"

    def add_arguments(self, parser):
        parser.add_argument("--container", help="container_number to reallocate")
        parser.add_argument(
            "--basis",
            choices=[BASIS_VALUE, BASIS_QUANTITY],
            help="override IMPORT_COST_ALLOCATION_BASIS for this run",
        )

    def handle(self, *args, **options):
        number = options.get("container")
        basis = options.get("basis")

        if number:
            container = ImportContainer.objects.filter(container_number=number).first()
            if container is None:
                raise CommandError(f"Container {number} not found")
            shares = allocate_container_costs(container, basis=basis)
            self.stdout.write(
                self.style.SUCCESS(f"{number}: allocated across {len(shares)} batch(es)")
            )
            return

        count = reallocate_all_containers(basis=basis)
        self.stdout.write(self.style.SUCCESS(f"Reallocated {count} container(s)"))
