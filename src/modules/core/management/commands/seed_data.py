from __future__ import annotations

import random
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from modules.addresses.models import Address
from modules.addresses.repositories import AddressDjangoRepository
from modules.core.repositories.users import UserDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories import ProductDjangoRepository

# Forward walks applied to seeded orders, by staff, after creation
STATUS_WALKS = [
    [],
    [OrderStatus.CONFIRMED],
    [OrderStatus.CONFIRMED, OrderStatus.PROCESSING],
    [OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED],
    [
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    ],
    [OrderStatus.CANCELLED],
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        admin, staff, seller, customers = self._seed_users()
        addresses = self._seed_addresses(customers)
        products = self._seed_products(seller)
        orders_created = self._seed_orders(staff, customers, addresses, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"addresses={len(addresses)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        admin = User.objects.filter(username="admin").first()
        if admin is None:
            admin = User.objects.create_superuser("admin", password="admin123")
        staff = User.objects.filter(username="staff").first()
        if staff is None:
            staff = User.objects.create_user("staff", password="staff123", is_staff=True)
        seller = User.objects.filter(username="seller").first()
        if seller is None:
            seller = User.objects.create_user(
                "seller", email="seller@example.com", password="seller123"
            )
        business, _ = Group.objects.get_or_create(name=settings.BUSINESS_GROUP)
        seller.groups.add(business)

        customers = []
        for index in range(1, 6):
            username = f"customer{index}"
            customer = User.objects.filter(username=username).first()
            if customer is None:
                customer = User.objects.create_user(
                    username,
                    email=f"{username}@example.com",
                    password=f"{username}123",
                )
            customers.append(customer)
        return admin, staff, seller, customers

    def _seed_addresses(self, customers) -> dict[int, Address]:
        self.stdout.write("Creating addresses...")
        cities = [
            ("Cairo", "Egypt"),
            ("Dubai", "United Arab Emirates"),
            ("Riyadh", "Saudi Arabia"),
            ("Amman", "Jordan"),
            ("London", "United Kingdom"),
        ]
        addresses: dict[int, Address] = {}
        for customer, (city, country) in zip(customers, cities):
            address, _ = Address.objects.get_or_create(
                user=customer,
                address_line1=f"{random.randint(1, 200)} Market Street",
                defaults={"city": city, "country": country},
            )
            addresses[customer.pk] = address
        self.stdout.write(self.style.SUCCESS("Creating addresses... Done!"))
        return addresses

    def _seed_products(self, seller) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("DATE-001", "Medjool Dates 1kg", "تمر مجدول ١ كجم", "24.50"),
            ("DATE-002", "Sukkari Dates 500g", "تمر سكري ٥٠٠ جم", "12.00"),
            ("OIL-001", "Olive Oil 1L", "زيت زيتون ١ لتر", "18.90"),
            ("SPICE-001", "Saffron 5g", "زعفران ٥ جم", "15.75"),
            ("SPICE-002", "Za'atar Mix 250g", "خلطة زعتر ٢٥٠ جم", "6.40"),
            ("COFFEE-001", "Arabic Coffee 500g", "قهوة عربية ٥٠٠ جم", "21.00"),
            ("TEA-001", "Mint Tea 100 bags", "شاي بالنعناع ١٠٠ كيس", "8.25"),
            ("HONEY-001", "Sidr Honey 500g", "عسل سدر ٥٠٠ جم", "49.00"),
            ("SWEET-001", "Maamoul Box", "علبة معمول", "14.60"),
            ("SWEET-002", "Baklava Tray", "صينية بقلاوة", "32.00"),
        ]
        products: list[Product] = []
        # The seller lists the dates and the olive oil
        for index, (sku, name_en, name_ar, price) in enumerate(catalog):
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name_en": name_en,
                    "name_ar": name_ar,
                    "price_per_unit": price,
                    "stock": random.randint(20, 200),
                    "status": ProductStatus.APPROVED,
                    "is_allowed": True,
                    "owner": seller if index < 3 else None,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, staff, customers, addresses, products) -> int:
        self.stdout.write("Creating orders...")
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            address_repository=AddressDjangoRepository(),
            user_repository=UserDjangoRepository(),
        )

        orders_created = 0
        for i in range(30):
            customer = random.choice(customers)
            lines = random.sample(products, k=random.randint(1, 4))
            dto = CreateOrderDTO(
                items=[
                    OrderItemDTO(product_id=p.id, quantity=random.randint(1, 3))
                    for p in lines
                ],
                shipping_address_id=addresses[customer.pk].id,
                notes=f"Seed order {i + 1}",
                shipping_cost=Decimal(random.choice(["0.00", "5.00", "9.99"])),
                customer_id=customer.pk,
                idempotency_key=f"seed-order-{i + 1}",
            )
            try:
                order, created = service.create_order(staff, dto)
            except InsufficientStock:
                self.stdout.write(self.style.WARNING(f"Skipping seed order {i + 1}."))
                continue
            if not created:
                continue

            walk = random.choice(STATUS_WALKS)
            for new_status in walk:
                if order.status == new_status:
                    continue
                order = service.update_status(staff, str(order.id), new_status)
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
