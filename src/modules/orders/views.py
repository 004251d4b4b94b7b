"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.  Domain
exceptions propagate to ``DomainExceptionHandler``, which renders them in
the standard error format; the view never swallows exceptions.

Every order payload passes through the currency presenter on the way out:
``?currency=`` (or the ``X-Currency`` / country headers) selects the
display currency and ``?lang=en|ar`` the status label language.

Sellers read the orders that contain their products under
``/api/v1/business/orders/`` (``SellerOrderViewSet``).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.addresses.repositories import AddressDjangoRepository
from modules.core.repositories.users import UserDjangoRepository
from modules.currency.presenter import present_order
from modules.currency.rates import ExchangeRateProvider
from modules.currency.resolution import resolve_currency
from modules.orders.constants import SUPPORTED_LANGUAGES
from modules.orders.dtos import (
    CreateOrderDTO,
    OrderItemDTO,
    UpdateOrderDTO,
    parse_dto,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    SellerOrderSerializer,
    UpdateOrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories import ProductDjangoRepository

logger = structlog.get_logger(__name__)

PRESENTATION_PARAMETERS = [
    OpenApiParameter("currency", str, description="Display currency (ISO code)."),
    OpenApiParameter("lang", str, enum=list(SUPPORTED_LANGUAGES)),
]


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        user_repository=UserDjangoRepository(),
    )


class OrderPresentationMixin:
    """``lang`` selection and currency presentation for order payloads."""

    def _lang(self) -> Optional[str]:
        lang = self.request.query_params.get("lang")
        return lang if lang in SUPPORTED_LANGUAGES else None

    def _present(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._present_many([payload])[0]

    def _present_many(self, payloads: list) -> list:
        currency = resolve_currency(
            self.request, self.request.query_params.get("currency")
        )
        rate = ExchangeRateProvider().get_rate(currency)
        if rate is None:
            logger.info("order.currency_fallback", requested=currency)
        return [present_order(payload, currency, rate) for payload in payloads]


class OrderViewSet(OrderPresentationMixin, GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__username", "customer__email"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self.request.user)

    def _respond(self, order: Order, status_code: int = status.HTTP_200_OK) -> Response:
        data = OrderSerializer(order, context={"lang": self._lang()}).data
        return Response(self._present(data), status=status_code)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(
        request=CreateOrderSerializer,
        responses={201: OrderSerializer, 200: OrderSerializer},
        parameters=PRESENTATION_PARAMETERS,
    )
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = parse_dto(
            CreateOrderDTO,
            items=[_item_dto(item) for item in data["items"]],
            shipping_address_id=data.get("shipping_address_id"),
            customer_id=data.get("customer_id"),
            payment_method=data.get("payment_method") or None,
            notes=data.get("notes", ""),
            shipping_cost=data.get("shipping_cost"),
            idempotency_key=request.headers.get("Idempotency-Key") or None,
        )
        order, created = self._service.create_order(request.user, dto)
        return self._respond(
            order, status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(
        responses=OrderListSerializer(many=True),
        parameters=PRESENTATION_PARAMETERS,
    )
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ``search`` by
        ``SearchFilter`` and ordering by ``OrderingFilter``.  Paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(
            page, many=True, context={"lang": self._lang()}
        )
        return self.get_paginated_response(self._present_many(serializer.data))

    @extend_schema(responses=OrderSerializer, parameters=PRESENTATION_PARAMETERS)
    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        return self._respond(self._service.get_order(request.user, pk))

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderSerializer, responses=OrderSerializer)
    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT|PATCH /api/v1/orders/{pk}/

        Edits items, address, notes or shipping cost while the order is
        still ``pending``/``confirmed``.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        fields: Dict[str, Any] = {
            key: data[key]
            for key in ("shipping_address_id", "notes", "shipping_cost")
            if key in data
        }
        if "shipping_address_id" in data and data["shipping_address_id"] is None:
            del fields["shipping_address_id"]
            fields["clear_shipping_address"] = True
        if "items" in data:
            fields["items"] = [_item_dto(item) for item in data["items"]]
        dto = parse_dto(UpdateOrderDTO, **fields)

        order = self._service.update_order(request.user, pk, dto)
        return self._respond(order)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    # ------------------------------------------------------------------
    # Cancel / Status transitions
    # ------------------------------------------------------------------

    @extend_schema(request=CancelOrderSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/cancel/

        Cancels an order and releases its reserved stock.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            request.user, pk, serializer.validated_data["reason"]
        )
        return self._respond(order)

    @extend_schema(request=UpdateStatusSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/ (staff)"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            request.user,
            pk,
            serializer.validated_data["status"],
            serializer.validated_data["note"],
        )
        return self._respond(order)

    @extend_schema(responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="status-options")
    def status_options(self, request: Request) -> Response:
        """GET /api/v1/orders/status-options/"""
        return Response({"results": OrderService.status_options()})

    # ------------------------------------------------------------------
    # Administrative delete
    # ------------------------------------------------------------------

    @extend_schema(responses={204: None})
    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (admin, audited, no stock release)"""
        self._service.delete_order(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _item_dto(item: Dict[str, Any]) -> OrderItemDTO:
    return parse_dto(OrderItemDTO, **item)


class SellerOrderViewSet(OrderPresentationMixin, GenericViewSet):
    """Read-only order view for sellers (business role).

    Lists and retrieves orders that contain at least one of the seller's
    products.  Each order shows the seller's lines only, with ``subtotal``
    and ``total`` covering those lines; other roles get 403.
    """

    queryset = Order.objects.none()
    serializer_class = SellerOrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__username", "customer__email"]
    ordering_fields = ["created_at", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    throttle_scope = "order_listing"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_seller_orders(self.request.user)

    @extend_schema(
        responses=SellerOrderSerializer(many=True),
        parameters=PRESENTATION_PARAMETERS,
    )
    def list(self, request: Request) -> Response:
        """GET /api/v1/business/orders/"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = SellerOrderSerializer(
            page, many=True, context={"lang": self._lang()}
        )
        return self.get_paginated_response(self._present_many(serializer.data))

    @extend_schema(responses=SellerOrderSerializer, parameters=PRESENTATION_PARAMETERS)
    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/business/orders/{pk}/"""
        order = self._service.get_seller_order(request.user, pk)
        data = SellerOrderSerializer(order, context={"lang": self._lang()}).data
        return Response(self._present(data))
