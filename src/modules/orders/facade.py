"""Order facade: the single entry point used by the API layer.

Composes ``OrderStateMachine``, ``CancellationWorkflow`` and
``PaperworkLifecycle`` around explicitly injected repositories, and owns
the cross-cutting rules:

- Capability checks run once per call, before any lifecycle component is
  touched.  Customers asking for an order that does not exist or belongs
  to another company get the same ``OrderNotAccessible``.
- Staff-only operations raise ``StaffOnly`` for everybody else.
- Checkout prices are recomputed from the authoritative offering price.
- Database connectivity failures surface as ``TransientStoreError``.
"""

from __future__ import annotations

import functools
from datetime import date, datetime
from decimal import Decimal
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    TypeVar,
)

import structlog
from django.conf import settings
from django.db import InterfaceError, OperationalError, transaction
from django.utils import timezone

from modules.orders.cancellation import CancellationWorkflow
from modules.orders.constants import ApprovalStatus, OrderStatus
from modules.orders.events import OrderCreated
from modules.orders.exceptions import (
    ApproverRequired,
    CompanyRequired,
    OfferingNotFound,
    OrderNotAccessible,
    OrderNotFound,
    OrderNumberExhausted,
    PaperworkNotAccessible,
    PriceMismatch,
    StaffOnly,
)
from modules.orders.models import Order, OrderItem
from modules.orders.numbering import generate_order_number, insert_with_unique_number
from modules.orders.paperwork import PaperworkLifecycle
from modules.orders.state_machine import OrderStateMachine
from shared.domain.errors import TransientStoreError
from shared.infrastructure.retry import RetryExhausted

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.companies.repositories.interfaces import ICompanyRepository
    from modules.orders.dtos import (
        Actor,
        BulkStatusResult,
        CreateOrderDTO,
        RenderedDocument,
    )
    from modules.orders.models import OrderPaperwork
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        IPaperworkRepository,
    )
    from modules.products.repositories.interfaces import ICompanyProductRepository

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def translate_store_errors(func: F) -> F:
    """Report lost connections and lock timeouts as retryable errors."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning(
                "order.store_unavailable",
                operation=func.__name__,
                error=str(exc),
            )
            raise TransientStoreError(
                "The order store is temporarily unavailable, try again."
            ) from exc

    return wrapper  # type: ignore[return-value]


class OrderFacade:
    """Application boundary for order, cancellation and paperwork use-cases.

    Receives repositories via constructor injection; it keeps no module
    level state, so every request (or test) can build its own.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        paperwork_repository: IPaperworkRepository,
        company_repository: ICompanyRepository,
        offering_repository: ICompanyProductRepository,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._company_repo = company_repository
        self._offering_repo = offering_repository
        self._paperwork_repo = paperwork_repository
        self._clock = clock
        self.state_machine = OrderStateMachine(order_repository)
        self.cancellation = CancellationWorkflow(order_repository)
        self.paperwork = PaperworkLifecycle(paperwork_repository, clock=clock)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @translate_store_errors
    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Actor) -> Order:
        """Place an order for the actor's company.

        Steps:
        1. Resolve every offering for the actor's company (enabled only).
        2. Use the offering price; reject client prices that disagree.
        3. Insert order + items under a fresh order number, retrying on
           collision.
        4. Record the initial history row and ``OrderCreated`` event.

        Raises:
            CompanyRequired: actor has no (active) company.
            OfferingNotFound: an offering is unknown, foreign or disabled.
            PriceMismatch: a client unit price or total disagrees.
            OrderNumberExhausted: every order number attempt collided.
        """
        company = self._actor_company(actor)
        log = logger.bind(company_id=company.id, user_id=actor.user_id)
        log.info("order.creation_started", item_count=len(dto.items))

        offerings = self._offering_repo.get_offerings(
            company.id, [item.offering_id for item in dto.items]
        )
        items: List[OrderItem] = []
        total = Decimal("0.00")
        for item_dto in dto.items:
            offering = offerings.get(item_dto.offering_id)
            if offering is None:
                raise OfferingNotFound(
                    f"Offering {item_dto.offering_id} is not available."
                )
            price = offering.price
            if item_dto.unit_price is not None and item_dto.unit_price != price:
                log.warning(
                    "order.price_mismatch",
                    offering_id=offering.id,
                    client_price=str(item_dto.unit_price),
                    current_price=str(price),
                )
                raise PriceMismatch(
                    f"Price of offering {offering.id} is {price}, "
                    f"not {item_dto.unit_price}."
                )
            items.append(
                OrderItem(
                    offering=offering,
                    product_name=offering.product_master.name,
                    package_label=offering.product_master.package_label,
                    quantity=item_dto.quantity,
                    unit_price=price,
                )
            )
            total += price * item_dto.quantity

        if dto.total_amount is not None and dto.total_amount != total:
            raise PriceMismatch(f"Order total is {total}, not {dto.total_amount}.")

        delivery = dto.delivery
        order = Order(
            company=company,
            placed_by_id=actor.user_id,
            total_amount=total,
            requires_approval=company.requires_order_approval,
            approval_status=(
                ApprovalStatus.PENDING
                if company.requires_order_approval
                else ApprovalStatus.NOT_REQUIRED
            ),
            delivery_name=delivery.name,
            delivery_company=delivery.company,
            delivery_postal_code=delivery.postal_code,
            delivery_prefecture=delivery.prefecture,
            delivery_city=delivery.city,
            delivery_address1=delivery.address1,
            delivery_address2=delivery.address2,
            delivery_phone=delivery.phone,
        )

        def insert(attempt: int) -> Order:
            order.order_number = generate_order_number(company.id, self._clock())
            return self._order_repo.insert(order, items)

        try:
            insert_with_unique_number(
                insert,
                max_attempts=settings.ORDER_NUMBER_MAX_RETRIES,
                label="order_number",
            )
        except RetryExhausted as exc:
            raise OrderNumberExhausted(
                f"Could not allocate an order number after {exc.attempts} attempts."
            ) from exc

        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.PENDING,
            user_id=actor.user_id,
            notes="Order created",
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "company_id": company.id,
                    "total_amount": str(total),
                    "item_count": len(items),
                },
            )
        )
        self._order_repo.record_events(order)
        log.info("order.created", order_id=order.id, order_number=order.order_number)
        return self._order_repo.get_by_id(order.id) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @translate_store_errors
    def get_order(self, order_id: int, actor: Actor) -> Order:
        return self._accessible_order(order_id, actor)

    @translate_store_errors
    def list_orders(
        self, actor: Actor, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[Order]:
        """Staff see every order; members see their company's orders."""
        filters = dict(filters or {})
        if not actor.is_staff:
            if actor.company_id is None:
                raise CompanyRequired()
            filters["company_id"] = actor.company_id
        return self._order_repo.list(filters)

    def list_pending_approvals(self, actor: Actor) -> QuerySet[Order]:
        """Orders of the approver's company still awaiting a decision."""
        if actor.company_id is None or not actor.can_approve_orders:
            raise ApproverRequired()
        return self._order_repo.list(
            {
                "company_id": actor.company_id,
                "status": OrderStatus.PENDING,
                "approval_status": ApprovalStatus.PENDING,
            }
        ).order_by("created_at", "id")

    # ------------------------------------------------------------------
    # Fulfillment (staff)
    # ------------------------------------------------------------------

    @translate_store_errors
    def set_status(self, order_id: int, new_status: str, actor: Actor) -> Order:
        self._require_staff(actor)
        self.state_machine.set_status(order_id, new_status, actor)
        return self._reload(order_id)

    @translate_store_errors
    def bulk_set_status(
        self, order_ids: Iterable[int], new_status: str, actor: Actor
    ) -> BulkStatusResult:
        self._require_staff(actor)
        return self.state_machine.bulk_set_status(order_ids, new_status, actor)

    # ------------------------------------------------------------------
    # Internal approval (company approvers)
    # ------------------------------------------------------------------

    @translate_store_errors
    def record_approval_decision(
        self,
        order_id: int,
        approved: bool,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Order:
        order = self._accessible_order(order_id, actor)
        if not (actor.owns(order) and actor.can_approve_orders):
            raise ApproverRequired()
        self.state_machine.record_approval(order_id, approved, actor, reason)
        return self._reload(order_id)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @translate_store_errors
    def request_cancellation(self, order_id: int, reason: str, actor: Actor) -> Order:
        self._accessible_order(order_id, actor)
        self.cancellation.request_cancellation(order_id, reason, actor)
        return self._reload(order_id)

    @translate_store_errors
    def approve_cancellation(self, order_id: int, actor: Actor) -> Order:
        self._require_staff(actor)
        self.cancellation.approve_cancellation(order_id, actor)
        return self._reload(order_id)

    @translate_store_errors
    def reject_cancellation(self, order_id: int, reason: str, actor: Actor) -> Order:
        self._require_staff(actor)
        self.cancellation.reject_cancellation(order_id, reason, actor)
        return self._reload(order_id)

    # ------------------------------------------------------------------
    # Paperwork
    # ------------------------------------------------------------------

    @translate_store_errors
    def create_document(
        self,
        order_id: int,
        document_type: str,
        delivery_date: Optional[date],
        actor: Actor,
    ) -> OrderPaperwork:
        self._require_staff(actor)
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return self.paperwork.create_document(
            order, document_type, delivery_date, actor
        )

    @translate_store_errors
    def finalize_document(
        self, order_id: int, document_id: int, actor: Actor
    ) -> OrderPaperwork:
        self._require_staff(actor)
        return self.paperwork.finalize(order_id, document_id, actor)

    @translate_store_errors
    def approve_document(
        self, order_id: int, document_id: int, approver: str, actor: Actor
    ) -> OrderPaperwork:
        self._require_staff(actor)
        return self.paperwork.approve(order_id, document_id, approver, actor)

    @translate_store_errors
    def list_documents(self, order_id: int, actor: Actor) -> QuerySet[OrderPaperwork]:
        """Staff see drafts too; members only finalized documents."""
        order = self._accessible_order(order_id, actor)
        return self._paperwork_repo.list_for_order(
            order.id, finalized_only=not actor.is_staff
        )

    @translate_store_errors
    def render_document(
        self, order_id: int, document_id: int, actor: Actor
    ) -> RenderedDocument:
        order = self._accessible_order(order_id, actor)
        document = self.paperwork.get(order.id, document_id, actor)
        if not self.paperwork.can_render(document, order, actor):
            raise PaperworkNotAccessible()
        rendered = self.paperwork.render(document, order)
        logger.info(
            "paperwork.rendered",
            order_id=order.id,
            paperwork_id=document.id,
            checksum=rendered.checksum,
            user_id=actor.user_id,
        )
        return rendered

    # ------------------------------------------------------------------
    # Capability checks
    # ------------------------------------------------------------------

    @staticmethod
    def _require_staff(actor: Actor) -> None:
        if not actor.is_staff:
            raise StaffOnly()

    def _actor_company(self, actor: Actor):
        if actor.company_id is None:
            raise CompanyRequired()
        company = self._company_repo.get_by_id(actor.company_id)
        if company is None or not company.is_active:
            raise CompanyRequired("The company is not active.")
        return company

    def _accessible_order(self, order_id: int, actor: Actor) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if actor.is_staff:
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            return order
        if order is None or not actor.owns(order):
            logger.info(
                "order.access_denied", order_id=order_id, user_id=actor.user_id
            )
            raise OrderNotAccessible()
        return order

    def _reload(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order
