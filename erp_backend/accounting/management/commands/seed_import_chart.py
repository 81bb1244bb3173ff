# accounting/management/commands/seed_import_chart.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.models.account import Account

# (code, name, type); the X000 rows are group headers and parents by leading digit
IMPORT_CHART = [
    # ASSETS
    ("1000", "Assets", Account.ASSET),
    ("1101", "Cash on Hand", Account.ASSET),
    ("1102", "Petty Cash", Account.ASSET),
    ("1111", "Bank", Account.ASSET),
    ("1120", "Accounts Receivable", Account.ASSET),
    ("1130", "Inventory", Account.ASSET),
    ("1150", "PPN Input", Account.ASSET),
    ("1200", "Fixed Assets", Account.ASSET),
    # LIABILITIES
    ("2000", "Liabilities", Account.LIABILITY),
    ("2110", "Accounts Payable", Account.LIABILITY),
    ("2130", "PPN Output / Tax Payable", Account.LIABILITY),
    ("2132", "PPh Withholding Payable", Account.LIABILITY),
    # EQUITY
    ("3000", "Equity", Account.EQUITY),
    ("3100", "Owner Capital", Account.EQUITY),
    # REVENUE
    ("4000", "Revenue", Account.REVENUE),
    ("4100", "Sales Revenue", Account.REVENUE),
    # COGS / IMPORT COSTS
    ("5000", "Cost of Goods Sold & Import Costs", Account.EXPENSE),
    ("5100", "Cost of Goods Sold", Account.EXPENSE),
    ("5200", "Import Duty", Account.EXPENSE),
    ("5300", "Import Freight", Account.EXPENSE),
    ("5400", "Other Import Costs", Account.EXPENSE),
    ("5410", "BPOM / SKI", Account.EXPENSE),
    # OPERATING EXPENSES
    ("6000", "Operating Expenses", Account.EXPENSE),
    ("6100", "Salaries", Account.EXPENSE),
    ("6110", "Employee Benefits", Account.EXPENSE),
    ("6150", "Staff Welfare", Account.EXPENSE),
    ("6200", "Rent", Account.EXPENSE),
    ("6210", "Warehouse Rent", Account.EXPENSE),
    ("6220", "Office Rent", Account.EXPENSE),
    ("6300", "Utilities", Account.EXPENSE),
    ("6310", "Electricity", Account.EXPENSE),
    ("6320", "Water", Account.EXPENSE),
    ("6330", "Internet & Phone", Account.EXPENSE),
    ("6400", "Office Supplies", Account.EXPENSE),
    ("6410", "Office Admin", Account.EXPENSE),
    ("6420", "Office Shifting / Renovation", Account.EXPENSE),
    ("6500", "Vehicle & Travel", Account.EXPENSE),
    ("6510", "Delivery (Sales)", Account.EXPENSE),
    ("6520", "Loading (Sales)", Account.EXPENSE),
    ("6600", "Marketing", Account.EXPENSE),
    ("6700", "Professional Fees", Account.EXPENSE),
    ("6710", "BPOM / SKI Fees", Account.EXPENSE),
    ("6900", "Miscellaneous Expense", Account.EXPENSE),
    # OTHER EXPENSES
    ("7000", "Other Expenses", Account.EXPENSE),
    ("7100", "Bank Charges", Account.EXPENSE),
    ("7200", "Interest Expense", Account.EXPENSE),
]


def _group_code(code: str) -> str:
    return f"{code[0]}000"


class Command(BaseCommand):
    help = "Seed the chart of accounts used by the import / distribution posting rules"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding import chart of accounts...")

        created_count = 0
        updated_count = 0
        by_code = {}

        for code, name, account_type in IMPORT_CHART:
            group = _group_code(code)
            parent = by_code.get(group) if group != code else None

            acc, acc_created = Account.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "parent": parent,
                    "is_active": True,
                },
            )
            by_code[code] = acc

            if acc_created:
                created_count += 1
                continue

            needs_update = False
            if acc.name != name:
                acc.name = name
                needs_update = True
            if acc.account_type != account_type:
                acc.account_type = account_type
                needs_update = True
            if acc.parent_id != getattr(parent, "pk", None):
                acc.parent = parent
                needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save()
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Import chart seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
