"""Company repositories package."""

from modules.companies.repositories.django_repository import CompanyDjangoRepository
from modules.companies.repositories.interfaces import ICompanyRepository

__all__ = ["ICompanyRepository", "CompanyDjangoRepository"]
