# sales/models/customer.py

from django.core.exceptions import ValidationError
from django.db import models


class Customer(models.Model):
    """Customer master (distributors, hospitals, pharmacies)."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    tax_id = models.CharField(max_length=32, blank=True, default="", help_text="NPWP")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        self.code = (self.code or "").strip().upper()
        if not self.code:
            raise ValidationError({"code": "code is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
