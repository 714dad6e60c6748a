"""Company (B2B buyer) and company membership models.

Business rules implemented:
- Company ``code`` is unique and normalised to uppercase.
- Orders are owned by a company; every storefront user belongs to
  exactly one company via ``CompanyMember``.
- ``requires_order_approval`` turns on the internal multi-party approval
  step for every order the company places.
- ``can_approve_orders`` marks the members allowed to record that
  approval decision.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Company(BaseModel):
    """Company aggregate root (read-only for the order lifecycle)."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, default="")
    requires_order_approval = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "companies"
        ordering = ["name"]
        verbose_name_plural = "companies"

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class CompanyMember(BaseModel):
    """Links a Django user to the company they order for."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="company_membership",
    )
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="members",
    )
    can_approve_orders = models.BooleanField(default=False)

    class Meta:
        db_table = "company_members"

    def __str__(self) -> str:
        return f"{self.user} @ {self.company.code}"
