"""Django ORM implementation of the company product repository.

Methods return ``None`` (or omit keys) for missing, foreign or disabled
offerings; the facade decides how to report them.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction

from modules.products.models import CompanyProduct
from modules.products.repositories.interfaces import ICompanyProductRepository

logger = structlog.get_logger(__name__)


class CompanyProductDjangoRepository(ICompanyProductRepository):
    """Concrete offering repository backed by Django ORM."""

    def _enabled(self):
        return CompanyProduct.objects.select_related("product_master").filter(
            enabled=True
        )

    def get_by_id(self, id: int) -> Optional[CompanyProduct]:
        try:
            return (
                CompanyProduct.objects.select_related("product_master")
                .filter(id=id)
                .first()
            )
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CompanyProduct]:
        queryset = CompanyProduct.objects.select_related("product_master")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: CompanyProduct) -> CompanyProduct:
        entity.save()
        logger.info(
            "company_product.saved",
            company_product_id=entity.id,
            price=str(entity.price),
        )
        return entity

    def get_offerings(
        self, company_id: int, offering_ids: Iterable[int]
    ) -> Dict[int, CompanyProduct]:
        offerings = self._enabled().filter(
            company_id=company_id, id__in=list(offering_ids)
        )
        return {offering.id: offering for offering in offerings}
