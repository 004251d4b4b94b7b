"""Unit tests for the order capability table and role resolution."""

from __future__ import annotations

import pytest

from modules.core.roles import Role, is_staff_role, resolve_role
from modules.orders.exceptions import Forbidden
from modules.orders.policies import (
    POLICY,
    Capability,
    authorize,
    is_allowed,
    sees_all_orders,
)

pytestmark = pytest.mark.unit


class TestRoles:
    def test_resolve_role(self, customer, seller, staff, admin):
        assert resolve_role(customer) == Role.CUSTOMER
        assert resolve_role(seller) == Role.BUSINESS
        assert resolve_role(staff) == Role.STAFF
        assert resolve_role(admin) == Role.ADMIN

    def test_business_group_name_comes_from_settings(self, seller, settings):
        settings.BUSINESS_GROUP = "vendors"
        assert resolve_role(seller) == Role.CUSTOMER

    def test_staff_flag_wins_over_business_group(self, seller):
        seller.is_staff = True
        assert resolve_role(seller) == Role.STAFF

    def test_staff_roles(self, customer, seller, staff, admin):
        assert not is_staff_role(customer)
        assert not is_staff_role(seller)
        assert is_staff_role(staff)
        assert is_staff_role(admin)


class TestPolicy:
    def test_every_capability_is_declared(self):
        declared = {
            value for name, value in vars(Capability).items() if name.isupper()
        }
        assert declared == set(POLICY)

    def test_customer_acts_on_own_orders_only(self, customer, other_customer):
        assert is_allowed(customer, Capability.EDIT, owner_id=customer.pk)
        assert not is_allowed(customer, Capability.EDIT, owner_id=other_customer.pk)
        assert is_allowed(customer, Capability.CANCEL, owner_id=customer.pk)

    @pytest.mark.parametrize(
        "capability",
        [
            Capability.CREATE_FOR_CUSTOMER,
            Capability.SET_SHIPPING_COST,
            Capability.TRANSITION,
            Capability.REFUND,
            Capability.DELETE,
        ],
    )
    def test_customer_lacks_staff_capabilities(self, customer, capability):
        assert not is_allowed(customer, capability)

    def test_staff_acts_on_any_order(self, staff, customer):
        assert is_allowed(staff, Capability.EDIT, owner_id=customer.pk)
        assert is_allowed(staff, Capability.TRANSITION)

    def test_refund_and_delete_are_admin_only(self, staff, admin):
        for capability in (Capability.REFUND, Capability.DELETE):
            assert not is_allowed(staff, capability)
            assert is_allowed(admin, capability)

    def test_authorize_raises_forbidden(self, customer):
        with pytest.raises(Forbidden) as exc_info:
            authorize(customer, Capability.TRANSITION)
        assert exc_info.value.status_code == 403

    def test_seller_shops_like_a_customer(self, seller, customer):
        assert is_allowed(seller, Capability.CREATE)
        assert is_allowed(seller, Capability.EDIT, owner_id=seller.pk)
        assert not is_allowed(seller, Capability.EDIT, owner_id=customer.pk)
        assert not is_allowed(seller, Capability.TRANSITION)

    def test_sales_view_is_for_sellers_only(self, customer, seller, staff, admin):
        assert is_allowed(seller, Capability.VIEW_SALES)
        for actor in (customer, staff, admin):
            assert not is_allowed(actor, Capability.VIEW_SALES)

    def test_sees_all_orders(self, customer, seller, staff, admin):
        assert not sees_all_orders(customer)
        assert not sees_all_orders(seller)
        assert sees_all_orders(staff)
        assert sees_all_orders(admin)
