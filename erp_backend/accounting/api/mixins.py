# accounting/api/mixins.py

"""
Shared viewset plumbing for the document APIs.

- model save() runs full_clean(); its django ValidationError becomes a DRF 400
- created_by is stamped from the authenticated user on create
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers


def as_drf_error(exc: DjangoValidationError) -> serializers.ValidationError:
    if hasattr(exc, "message_dict"):
        return serializers.ValidationError(exc.message_dict)
    return serializers.ValidationError({"detail": exc.messages})


class ModelCleanMixin:
    stamp_created_by = False

    def perform_create(self, serializer):
        extra = {}
        if self.stamp_created_by:
            extra["created_by"] = getattr(self.request.user, "username", "") or ""
        try:
            serializer.save(**extra)
        except DjangoValidationError as exc:
            raise as_drf_error(exc) from exc

    def perform_update(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_error(exc) from exc
