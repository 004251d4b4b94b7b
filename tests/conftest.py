import httpx
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.addresses.repositories import AddressDjangoRepository
from modules.core.repositories.users import UserDjangoRepository
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _isolated_rates(monkeypatch):
    """No test reaches the real rate source; every test starts cache-cold."""

    def _offline(self, url, *args, **kwargs):
        raise httpx.ConnectError("network disabled in tests")

    monkeypatch.setattr(httpx.Client, "get", _offline)
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return User.objects.create_user(
        username="customer", email="customer@example.com", password="testpass123"
    )


@pytest.fixture()
def other_customer():
    return User.objects.create_user(
        username="other", email="other@example.com", password="testpass123"
    )


@pytest.fixture()
def seller(settings):
    user = User.objects.create_user(
        username="seller", email="seller@example.com", password="testpass123"
    )
    group, _ = Group.objects.get_or_create(name=settings.BUSINESS_GROUP)
    user.groups.add(group)
    return user


@pytest.fixture()
def staff():
    return User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


@pytest.fixture()
def admin():
    return User.objects.create_superuser("admin", password="testpass123")


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as the given user."""

    def _build(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _build


# ---------------------------------------------------------------------------
# Catalog and addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_address():
    def _make(user, city="Cairo", country="Egypt"):
        return Address.objects.create(
            user=user,
            address_line1="12 Nile Street",
            city=city,
            country=country,
        )

    return _make


@pytest.fixture()
def address(customer, make_address):
    return make_address(customer)


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(price="10.00", stock=100, **overrides):
        counter["n"] += 1
        fields = {
            "sku": f"SKU-{counter['n']:03d}",
            "name_en": f"Product {counter['n']}",
            "name_ar": f"منتج {counter['n']}",
            "price_per_unit": price,
            "stock": stock,
            "status": ProductStatus.APPROVED,
            "is_allowed": True,
        }
        fields.update(overrides)
        return Product.objects.create(**fields)

    return _make


@pytest.fixture()
def product_a(make_product):
    return make_product(price="10.00", stock=10)


@pytest.fixture()
def product_b(make_product):
    return make_product(price="2.50", stock=5)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        user_repository=UserDjangoRepository(),
    )


@pytest.fixture()
def place_order(service, customer, address):
    """Place an order as ``customer`` for ``(product, quantity)`` pairs."""

    def _place(*lines, actor=None, shipping_address=None, **extra):
        dto = CreateOrderDTO(
            items=[
                OrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
            shipping_address_id=(shipping_address or address).id,
            **extra,
        )
        order, _ = service.create_order(actor or customer, dto)
        return order

    return _place
