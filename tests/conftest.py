from datetime import date

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from catalog.models import Product
from catalog.services import ensure_starter_catalog
from org.models import Agency, Person, Role, Team, TeamType

User = get_user_model()


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        username="manager",
        email="manager@test.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def plain_user(db):
    return User.objects.create_user(
        username="agent",
        email="agent@test.com",
        password="testpass123",
    )


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def user_client(plain_user):
    client = APIClient()
    client.force_authenticate(user=plain_user)
    return client


@pytest.fixture
def agency(db):
    return Agency.objects.create(name="Main Street Agency", code="main-street")


@pytest.fixture
def sales_team(agency):
    return Team.objects.create(agency=agency, name="Sales", team_type=TeamType.SALES)


@pytest.fixture
def cs_team(agency):
    return Team.objects.create(agency=agency, name="Service", team_type=TeamType.CS)


@pytest.fixture
def producer_role(sales_team):
    return Role.objects.create(team=sales_team, name="Producer")


@pytest.fixture
def person(agency, sales_team, producer_role):
    return Person.objects.create(
        full_name="Dana Reyes",
        email="dana@test.com",
        primary_agency=agency,
        team=sales_team,
        role=producer_role,
        team_type=TeamType.SALES,
    )


@pytest.fixture
def cs_person(agency, cs_team):
    return Person.objects.create(
        full_name="Sam Ortiz",
        email="sam@test.com",
        primary_agency=agency,
        team=cs_team,
        team_type=TeamType.CS,
    )


@pytest.fixture
def catalog(agency):
    """Starter catalog for ``agency`` as a {product name: Product} map."""
    ensure_starter_catalog(agency)
    return {
        product.name: product
        for product in Product.objects.filter(line_of_business__agency=agency)
    }


@pytest.fixture
def march():
    return date(2026, 3, 1), date(2026, 3, 31)
