"""Shared fixtures for all tests."""
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.models import User
from catalog.models import Category, Product
from leads import notifications, services


@pytest.fixture(autouse=True)
def _isolated_channel():
    cache.clear()
    yield
    notifications.channel.clear()
    cache.clear()


def _make_user(email, role, floor, **extra):
    return User.objects.create_user(
        email=email,
        password="TestPass123!",
        first_name=extra.pop("first_name", email.split("@")[0].title()),
        last_name=extra.pop("last_name", "User"),
        role=role,
        floor=floor,
        **extra,
    )


@pytest.fixture
def admin_user(db):
    return _make_user("admin@test.com", User.Role.ADMIN, None, first_name="Admin")


@pytest.fixture
def manager_user(db):
    return _make_user("manager@test.com", User.Role.FLOOR_MANAGER, 1, first_name="Vikram")


@pytest.fixture
def sales_user(db):
    return _make_user("sales@test.com", User.Role.SALES_ASSOCIATE, 1, first_name="Rohan", last_name="Gupta")


@pytest.fixture
def other_sales_user(db):
    return _make_user("inhouse@test.com", User.Role.INHOUSE_SALES, 1, first_name="Sneha", last_name="Nair")


@pytest.fixture
def floor2_sales_user(db):
    return _make_user("floor2@test.com", User.Role.SALES_ASSOCIATE, 2, first_name="Arjun")


@pytest.fixture
def support_user(db):
    return _make_user("support@test.com", User.Role.SUPPORT_STAFF, 1, first_name="Support")


@pytest.fixture
def category(db):
    return Category.objects.create(name="Necklaces")


@pytest.fixture
def product(category):
    return Product.objects.create(
        category=category,
        name="Pearl Strand",
        sku="NCK-002",
        price=Decimal("50000.00"),
    )


@pytest.fixture
def other_product(category):
    return Product.objects.create(
        category=category,
        name="Kundan Necklace Set",
        sku="NCK-001",
        price=Decimal("145000.00"),
    )


@pytest.fixture
def lead(product):
    return services.create_lead(
        floor=1,
        customer_name="Priya Sharma",
        customer_phone="+91 98765 43210",
        product=product,
    )


@pytest.fixture
def make_lead(db):
    def _make(floor=1, **kwargs):
        kwargs.setdefault("customer_name", "Walk-in Customer")
        kwargs.setdefault("customer_phone", "+91 90000 00000")
        if "product" not in kwargs:
            kwargs.setdefault("interest", "Gold chain")
        return services.create_lead(floor=floor, **kwargs)

    return _make


@pytest.fixture
def api_client():
    return APIClient()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def manager_client(manager_user):
    return _client_for(manager_user)


@pytest.fixture
def sales_client(sales_user):
    return _client_for(sales_user)


@pytest.fixture
def support_client(support_user):
    return _client_for(support_user)
