# accounting/tests/test_numbering.py

from __future__ import annotations

import threading
from collections import defaultdict
from datetime import date
from unittest import mock

from django.db import connection, connections, transaction
from django.test import TestCase, TransactionTestCase

from accounting.models.journal import JournalEntry
from accounting.models.sequence import DocumentSequence
from accounting.services.exceptions import NumberingError
from accounting.services.numbering import (
    advisory_lock_key,
    build_prefix,
    next_document_number,
    preview_next_number,
)
from accounting.tests.helpers import seed_chart
from finance.models import FundTransfer, PettyCashTransaction


class PrefixFormatTests(TestCase):
    def test_prefixes_per_kind(self):
        on = date(2026, 1, 5)
        self.assertEqual(build_prefix("JE", on), "JE2601-")
        self.assertEqual(build_prefix("FT", on), "FT2601-")
        self.assertEqual(build_prefix("PC", on), "PC-20260105-")
        self.assertEqual(build_prefix("RV", on), "RV2601-")
        self.assertEqual(build_prefix("PV", on), "PV2601-")
        self.assertEqual(build_prefix("SO", on), "SO2601-")
        self.assertEqual(build_prefix("DC", on), "DC2601-")
        self.assertEqual(build_prefix("INV", on), "INV2601-")

    def test_unknown_kind(self):
        with self.assertRaises(NumberingError):
            build_prefix("XX", date(2026, 1, 5))

    def test_advisory_lock_key(self):
        self.assertEqual(advisory_lock_key("JE2601-"), "doc_number_JE2601-")


class NextNumberTests(TestCase):
    """
    GUARANTEES:
    - Numbers within a prefix are strictly increasing
    - Gaps are tolerated; the next number is MAX(suffix) + 1, never COUNT + 1
    - Numbering outside a transaction is refused
    """

    def setUp(self):
        seed_chart()

    def _petty_cash(self, on):
        return PettyCashTransaction.objects.create(
            transaction_type=PettyCashTransaction.TYPE_TOP_UP,
            transaction_date=on,
            amount="100.00",
        )

    def test_prefix_must_match_kind(self):
        with self.assertRaises(NumberingError), transaction.atomic():
            next_document_number("JE", period_prefix="FT2601-")

    def test_numbers_increase_monotonically(self):
        on = date(2026, 2, 1)
        numbers = [self._petty_cash(on).transaction_number for _ in range(5)]

        self.assertEqual(numbers[0], "PC-20260201-0001")
        self.assertEqual(numbers, sorted(numbers))
        self.assertEqual(len(set(numbers)), 5)

    def test_gaps_are_tolerated_and_max_wins(self):
        on = date(2026, 2, 1)
        first = self._petty_cash(on)
        second = self._petty_cash(on)
        third = self._petty_cash(on)

        # delete the middle one: COUNT + 1 would re-issue 0003
        second.delete()
        fourth = self._petty_cash(on)

        self.assertEqual(first.transaction_number, "PC-20260201-0001")
        self.assertEqual(third.transaction_number, "PC-20260201-0003")
        self.assertEqual(fourth.transaction_number, "PC-20260201-0004")

    def test_prefix_resets_per_period(self):
        jan = self._petty_cash(date(2026, 1, 31))
        feb = self._petty_cash(date(2026, 2, 1))

        self.assertTrue(jan.transaction_number.endswith("-0001"))
        self.assertTrue(feb.transaction_number.endswith("-0001"))

    def test_sequence_row_records_last_value(self):
        on = date(2026, 3, 10)
        FundTransfer.objects.create(
            transfer_date=on,
            from_account_type=FundTransfer.ENDPOINT_CASH_ON_HAND,
            to_account_type=FundTransfer.ENDPOINT_PETTY_CASH,
            from_amount="50.00",
        )
        seq = DocumentSequence.objects.get(prefix="FT2603-")
        self.assertEqual(seq.last_value, 1)

    def test_preview_does_not_consume(self):
        on = date(2026, 4, 1)
        self.assertEqual(preview_next_number("PC", on=on), "PC-20260401-0001")
        self.assertEqual(self._petty_cash(on).transaction_number, "PC-20260401-0001")


class NumberingOutsideTransactionTests(TransactionTestCase):
    # TestCase wraps every test in atomic(); this needs autocommit
    def test_requires_transaction(self):
        with self.assertRaises(NumberingError):
            next_document_number("JE", on=date(2026, 1, 5))


class ConcurrentNumberingTests(TransactionTestCase):
    """
    GUARANTEES:
    - Parallel writers on one prefix get distinct, contiguous numbers
    - Every writer takes the prefix lock before reading MAX

    PostgreSQL runs the real advisory lock. Other backends swap in a
    per-prefix thread lock held until the writer's transaction ends, which
    is what SELECT ... FOR UPDATE gives on a server database.
    """

    WORKERS = 8
    ON = date(2026, 5, 4)

    def setUp(self):
        self.locked_prefixes = []
        self._locks = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()
        self._held = threading.local()

    def _thread_prefix_lock(self, prefix):
        with self._locks_guard:
            lock = self._locks[prefix]
        lock.acquire()
        self._held.locks.append(lock)
        self.locked_prefixes.append(prefix)

    def _write_entry(self):
        with transaction.atomic():
            number = next_document_number("JE", on=self.ON)
            JournalEntry.objects.create(
                entry_number=number,
                entry_date=self.ON,
                source_module=JournalEntry.SOURCE_MANUAL,
                description="concurrent numbering",
            )
        return number

    def _run_workers(self):
        barrier = threading.Barrier(self.WORKERS)
        numbers, errors = [], []

        def worker():
            self._held.locks = []
            try:
                barrier.wait()
                numbers.append(self._write_entry())
            except Exception as exc:
                errors.append(exc)
            finally:
                for lock in self._held.locks:
                    lock.release()
                connections.close_all()

        threads = [threading.Thread(target=worker) for _ in range(self.WORKERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        self.assertEqual(errors, [])
        return numbers

    def test_parallel_writers_get_contiguous_numbers(self):
        if connection.vendor == "postgresql":
            numbers = self._run_workers()
        else:
            with mock.patch(
                "accounting.services.numbering._acquire_prefix_lock",
                side_effect=self._thread_prefix_lock,
            ):
                numbers = self._run_workers()
            self.assertEqual(self.locked_prefixes, ["JE2605-"] * self.WORKERS)

        self.assertEqual(len(numbers), self.WORKERS)
        self.assertEqual(len(set(numbers)), self.WORKERS)
        self.assertEqual(
            sorted(numbers),
            [f"JE2605-{n:04d}" for n in range(1, self.WORKERS + 1)],
        )
        self.assertEqual(
            JournalEntry.objects.filter(entry_number__startswith="JE2605-").count(),
            self.WORKERS,
        )
