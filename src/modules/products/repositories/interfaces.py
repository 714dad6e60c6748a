"""Company product repository interface.

The order lifecycle only *reads* offerings: ``get_offerings`` is the
authoritative price lookup used to revalidate checkout prices.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import CompanyProduct


class ICompanyProductRepository(IRepository["CompanyProduct"]):
    """Repository contract for company product offerings."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CompanyProduct]:
        """List offerings with optional filters."""

    @abstractmethod
    def get_offerings(
        self, company_id: int, offering_ids: Iterable[int]
    ) -> Dict[int, CompanyProduct]:
        """Return enabled offerings of ``company_id`` keyed by id."""
