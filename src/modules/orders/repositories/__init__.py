"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    PaperworkDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IPaperworkRepository,
)

__all__ = [
    "IOrderRepository",
    "IPaperworkRepository",
    "OrderDjangoRepository",
    "PaperworkDjangoRepository",
]
