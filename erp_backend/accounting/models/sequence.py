# accounting/models/sequence.py

from __future__ import annotations

from django.db import models


class DocumentSequence(models.Model):
    """
    Per-prefix lock row for document numbering on databases without advisory locks.

    The row is selected FOR UPDATE while a number is computed, which serializes
    writers of the same prefix (e.g. "JE2601-") and leaves other prefixes alone.
    last_value is informational; numbers always come from MAX(existing suffix) + 1.
    """

    prefix = models.CharField(max_length=32, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["prefix"]
        verbose_name = "Document Sequence"
        verbose_name_plural = "Document Sequences"

    def __str__(self):
        return f"{self.prefix}{self.last_value:04d}"
