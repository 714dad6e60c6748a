"""Company repository interface.

Read-only contract consumed by the order lifecycle: the company that
owns an order and the membership that turns a Django user into an actor.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.companies.models import Company, CompanyMember


class ICompanyRepository(IRepository["Company"]):
    """Repository contract for the Company aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Company]:
        """List companies with optional filters."""

    @abstractmethod
    def get_membership(self, user_id: int) -> Optional[CompanyMember]:
        """Return the company membership of a user, if any."""
