"""Django ORM implementation of the Company repository.

Methods return ``None`` for missing rows; the facade decides how
a missing company translates into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.companies.models import Company, CompanyMember
from modules.companies.repositories.interfaces import ICompanyRepository

logger = structlog.get_logger(__name__)


class CompanyDjangoRepository(ICompanyRepository):
    """Concrete Company repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[Company]:
        try:
            return Company.objects.filter(id=id).first()
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Company]:
        queryset = Company.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Company) -> Company:
        is_new = entity._state.adding
        entity.save()
        logger.info("company.saved", company_id=entity.id, is_new=is_new)
        return entity

    def get_membership(self, user_id: int) -> Optional[CompanyMember]:
        return (
            CompanyMember.objects.select_related("company")
            .filter(user_id=user_id)
            .first()
        )
