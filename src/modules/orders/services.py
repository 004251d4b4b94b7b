"""Order service layer (Use Cases).

Orchestrates pricing, stock reservation, the status state machine and
notifications for the Order aggregate.  All write operations are atomic:
the service defines the unit-of-work boundary and row-locks the order it
mutates, so concurrent conflicting requests on one order are applied one
after the other and the loser sees the committed status.

Side effects outside the database (notifications) are published as
domain events only after the transaction commits.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Type

import structlog
from django.db import IntegrityError, transaction

from modules.core.roles import is_staff_role
from modules.orders.constants import (
    STATUS_LABELS,
    STOCK_HELD_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
)
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderEvent,
    OrderStatusChanged,
    OrderUpdated,
)
from modules.orders.exceptions import (
    CustomerNotFound,
    InvalidInput,
    InvalidTransition,
    OrderNotCancellable,
    OrderNotEditable,
    OrderNotFound,
)
from modules.orders.ledger import StockLedger
from modules.orders.models import Order
from modules.orders.policies import Capability, authorize, sees_all_orders
from modules.orders.pricing import OrderPricingValidator, PricedOrder
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.addresses.repositories.interfaces import IAddressRepository
    from modules.core.repositories.interfaces import IRepository
    from modules.orders.dtos import CreateOrderDTO, OrderItemDTO, UpdateOrderDTO
    from modules.orders.models import OrderItem
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  ``actor`` is
    always the authenticated Django user performing the operation.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        address_repository: IAddressRepository,
        user_repository: IRepository[Any],
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._pricing = OrderPricingValidator(product_repository, address_repository)
        self._ledger = StockLedger(product_repository)
        self._event_bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, actor: Any, dto: CreateOrderDTO) -> Tuple[Order, bool]:
        """Validate, price and reserve stock for a new order.

        Returns ``(order, created)``; ``created`` is ``False`` when the
        ``idempotency_key`` matched an order that was already committed,
        in which case nothing is reserved again.

        Raises:
            Forbidden: caller may not place this order.
            CustomerNotFound: staff named an unknown customer.
            InvalidInput / AddressNotFound / AddressNotOwned: bad request.
            ProductNotFound / ProductUnavailable / InvalidPrice: bad item.
            InsufficientStock: stock ran out, nothing was reserved.
        """
        log = logger.bind(actor_id=actor.pk)
        log.info("order.creation_started")

        authorize(actor, Capability.CREATE)
        customer = self._resolve_customer(actor, dto.customer_id)
        if dto.shipping_cost is not None:
            authorize(actor, Capability.SET_SHIPPING_COST)

        # 0. Idempotency check
        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                return self._replay(existing, customer, log), False

        # 1. Validate and price (read-only)
        priced = self._pricing.validate(
            customer.pk, dto.items, dto.shipping_address_id
        )

        # 2. Reserve + persist; a concurrent retry with the same key loses
        #    on the unique constraint and gets the winner's order
        try:
            with transaction.atomic():
                order = self._place_order(actor, customer, dto, priced)
        except IntegrityError:
            existing = (
                self._order_repo.get_by_idempotency_key(dto.idempotency_key)
                if dto.idempotency_key
                else None
            )
            if existing is None:
                raise
            return self._replay(existing, customer, log), False

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order, True

    @transaction.atomic
    def update_order(self, actor: Any, order_id: str, dto: UpdateOrderDTO) -> Order:
        """Edit items, address, notes or shipping cost of an open order.

        Replacing items releases the current reservation, revalidates the
        new list and reserves it again as one swap; if the new list cannot
        be reserved the swap is rolled back and the original reservation
        stays in place.

        Raises:
            OrderNotFound: order does not exist or is not visible.
            OrderNotEditable: order left ``pending``/``confirmed``.
        """
        order = self._lock_visible(actor, order_id)
        authorize(actor, Capability.EDIT, order.customer_id)

        log = logger.bind(order_id=str(order.id), status=order.status)
        if not order.is_editable:
            log.warning("order.edit_not_allowed")
            raise OrderNotEditable(
                f"Order {order.order_number} is {order.status} and can no "
                f"longer be updated."
            )
        if dto.shipping_cost is not None:
            authorize(actor, Capability.SET_SHIPPING_COST)

        if dto.clear_shipping_address:
            order.shipping_address = None
        elif dto.shipping_address_id is not None:
            order.shipping_address = self._pricing.validate_address(
                order.customer_id, dto.shipping_address_id
            )

        if dto.items is not None:
            items = self._swap_items(order, dto.items, log)
        else:
            items = list(order.items.all())

        if dto.notes is not None:
            order.notes = dto.notes
        if dto.shipping_cost is not None:
            order.shipping_cost = dto.shipping_cost

        order.recalculate_totals(items)
        order.add_domain_event(self._event(order, OrderUpdated))
        self._order_repo.save(order)
        self._publish_events(order)

        log.info("order.updated", total=str(order.total))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def cancel_order(self, actor: Any, order_id: str, reason: str = "") -> Order:
        """Cancel an order and release its reserved stock exactly once.

        Acquires a row-level lock on the order **first**, so of two
        concurrent cancellations only one releases stock; the other sees
        ``cancelled`` and fails.

        Raises:
            OrderNotFound: order does not exist or is not visible.
            OrderNotCancellable: order already shipped or terminal.
        """
        order = self._lock_visible(actor, order_id)
        authorize(actor, Capability.CANCEL, order.customer_id)

        log = logger.bind(order_id=str(order.id), current_status=order.status)
        if not order.is_cancellable:
            log.warning("order.cancel_not_allowed")
            raise OrderNotCancellable(
                f"Cannot cancel order {order.order_number} in status {order.status}."
            )

        self._ledger.release(order)
        order.cancelled_reason = reason
        self._transition(
            order, OrderStatus.CANCELLED, actor, reason or "Order cancelled"
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_status(
        self,
        actor: Any,
        order_id: str,
        new_status: str,
        note: str = "",
    ) -> Order:
        """Apply an explicit status transition (staff; refunds admin only).

        Cancelling releases stock.  Refunding releases stock only when the
        order never shipped.

        Raises:
            InvalidInput: unknown status value.
            Forbidden: caller may not drive this transition.
            OrderNotFound: order does not exist.
            InvalidTransition: the state machine forbids the move.
        """
        new_status = (new_status or "").strip().lower()
        if new_status not in OrderStatus.values:
            raise InvalidInput(f"Unknown order status {new_status!r}.")

        authorize(actor, Capability.TRANSITION)
        if new_status == OrderStatus.REFUNDED:
            authorize(actor, Capability.REFUND)

        order = self._lock_visible(actor, order_id)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidTransition(
                f"Cannot transition from {order.status} to {new_status}."
            )

        if new_status == OrderStatus.CANCELLED:
            self._ledger.release(order)
            order.cancelled_reason = note
        elif new_status == OrderStatus.REFUNDED and order.status in STOCK_HELD_STATES:
            self._ledger.release(order)

        self._transition(order, new_status, actor, note)

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def delete_order(self, actor: Any, order_id: str) -> None:
        """Administrative hard delete.

        Audit-logged.  Not a lifecycle transition: reserved stock is
        **not** released.
        """
        authorize(actor, Capability.DELETE)
        order = self._lock_visible(actor, order_id)
        logger.warning(
            "order.hard_deleted",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            customer_id=order.customer_id,
            total=str(order.total),
            actor_id=actor.pk,
        )
        self._order_repo.hard_delete(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, actor: Any, order_id: str) -> Order:
        """Retrieve a single order visible to ``actor``.

        Raises:
            OrderNotFound: missing, or owned by someone else (non-staff).
        """
        order = self._order_repo.get_by_id(str(order_id), self._scope(actor))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, actor: Any) -> QuerySet[Order]:
        """Orders visible to ``actor``; filtering is left to the caller."""
        return self._order_repo.list(self._scope(actor))

    def list_seller_orders(self, actor: Any) -> QuerySet[Order]:
        """Orders containing the seller's products, narrowed to their lines.

        Raises:
            Forbidden: ``actor`` is not a seller.
        """
        authorize(actor, Capability.VIEW_SALES)
        return self._order_repo.list_for_seller(actor.pk)

    def get_seller_order(self, actor: Any, order_id: str) -> Order:
        """Raises ``OrderNotFound`` when none of the order's lines are the seller's."""
        authorize(actor, Capability.VIEW_SALES)
        order = self._order_repo.get_for_seller(str(order_id), actor.pk)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def status_options() -> List[Dict[str, Any]]:
        return [
            {
                "value": value,
                "label": STATUS_LABELS[value],
                "terminal": value in TERMINAL_STATES,
                "next": [s for s in OrderStatus.values if s in VALID_TRANSITIONS[value]],
            }
            for value in OrderStatus.values
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scope(self, actor: Any) -> Optional[int]:
        return None if sees_all_orders(actor) else actor.pk

    def _lock_visible(self, actor: Any, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id), self._scope(actor))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _resolve_customer(self, actor: Any, customer_id: Optional[int]) -> Any:
        if customer_id is None or customer_id == actor.pk:
            return actor
        authorize(actor, Capability.CREATE_FOR_CUSTOMER)
        customer = self._user_repo.get_by_id(customer_id)
        if customer is None:
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        return customer

    def _replay(self, existing: Order, customer: Any, log: Any) -> Order:
        if existing.customer_id != customer.pk:
            raise InvalidInput("Idempotency key was already used for another order.")
        log.info("order.idempotency_hit", order_id=str(existing.id))
        return existing

    def _place_order(
        self, actor: Any, customer: Any, dto: CreateOrderDTO, priced: PricedOrder
    ) -> Order:
        placed_by_staff = is_staff_role(actor)
        order = Order(
            customer=customer,
            created_by=actor if placed_by_staff else None,
            shipping_address=priced.address,
            status=OrderStatus.CONFIRMED if placed_by_staff else OrderStatus.PENDING,
            payment_method=dto.payment_method
            or (
                PaymentMethod.ADMIN_CREATED
                if placed_by_staff
                else PaymentMethod.CASH_ON_DELIVERY
            ),
            notes=dto.notes,
            shipping_cost=dto.shipping_cost or Decimal("0.00"),
            idempotency_key=dto.idempotency_key or None,
        )
        self._order_repo.save(order)

        self._ledger.reserve(order, priced.items)
        items = self._order_repo.replace_items(order, priced.items)
        order.recalculate_totals(items)
        self._order_repo.save(order)

        self._order_repo.add_status_log(
            order,
            order.status,
            old_status=None,
            actor_id=actor.pk,
            note="Order created by staff" if placed_by_staff else "Order created",
        )
        order.add_domain_event(self._event(order, OrderCreated))
        self._publish_events(order)
        return order

    def _swap_items(
        self, order: Order, requested: Sequence[OrderItemDTO], log: Any
    ) -> List[OrderItem]:
        captured = {str(item.product_id): item.unit_price for item in order.items.all()}
        with transaction.atomic():
            self._ledger.release(order)
            priced = self._pricing.price_items(requested, preserve_prices=captured)
            self._ledger.reserve(order, priced.items)
            items = self._order_repo.replace_items(order, priced.items)
        log.info("order.items_swapped", item_count=len(items))
        return items

    def _transition(self, order: Order, new_status: str, actor: Any, note: str) -> None:
        old_status = order.status
        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_status_log(
            order, new_status, old_status=old_status, actor_id=actor.pk, note=note
        )
        if new_status == OrderStatus.CANCELLED:
            order.add_domain_event(self._event(order, OrderCancelled))
        else:
            order.add_domain_event(
                self._event(order, OrderStatusChanged, old_status=old_status)
            )
        self._publish_events(order)

    @staticmethod
    def _event(order: Order, event_class: Type[OrderEvent], **extra: Any) -> OrderEvent:
        return event_class(
            aggregate_id=order.id,
            customer_id=order.customer_id,
            order_number=order.order_number,
            status=order.status,
            **extra,
        )

    def _publish_events(self, order: Order) -> None:
        """Hand collected events to the bus once the transaction commits."""
        events = order.domain_events
        order.clear_domain_events()
        if not events:
            return

        def dispatch() -> None:
            for event in events:
                self._event_bus.publish(event)

        transaction.on_commit(dispatch)
