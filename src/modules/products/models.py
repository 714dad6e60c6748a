"""Product master and company-specific product offering models.

Business rules implemented:
- ``ProductMaster.code`` is unique and normalised to uppercase.
- ``CompanyProduct`` is the price-bearing offering a company can order;
  its ``price`` is the authoritative current unit price (tax excluded).
- An offering is unique per (company, product master).
- Price must be greater than zero.
- Disabled offerings cannot be ordered (enforced at service layer).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class ProductMaster(BaseModel):
    """Catalogue entry shared by every company (lubricant + packaging)."""

    code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    capacity = models.CharField(max_length=32, blank=True, default="")
    unit = models.CharField(max_length=16, blank=True, default="")

    class Meta:
        db_table = "product_masters"
        ordering = ["name"]

    @property
    def package_label(self) -> str:
        """Capacity and unit as printed on documents, e.g. ``20L``."""
        return f"{self.capacity}{self.unit}"

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class CompanyProduct(BaseModel):
    """A product offered to one company at a negotiated price."""

    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="offerings",
    )
    product_master = models.ForeignKey(
        "products.ProductMaster",
        on_delete=models.PROTECT,
        related_name="offerings",
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    enabled = models.BooleanField(default=True)

    class Meta:
        db_table = "company_products"
        constraints = [
            models.UniqueConstraint(
                fields=["company", "product_master"],
                name="company_products_company_master_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="company_products_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "company_product_created",
                company_product_id=self.id,
                company_id=self.company_id,
                product_master_id=self.product_master_id,
            )

    def __str__(self) -> str:
        return f"{self.product_master} @ {self.company_id} ({self.price})"
