"""Unit tests for the company product (offering) repository.

Covers:
- Offerings are resolved per company; disabled or foreign ones are omitted.
- Prices must be positive.
- Package labels combine capacity and unit.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from modules.products.models import CompanyProduct
from modules.products.repositories.django_repository import (
    CompanyProductDjangoRepository,
)

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return CompanyProductDjangoRepository()


class TestGetOfferings:
    def test_returns_enabled_offerings_of_company(
        self, repo, company, oil_offering, grease_offering
    ):
        offerings = repo.get_offerings(
            company.id, [oil_offering.id, grease_offering.id]
        )
        assert offerings == {
            oil_offering.id: oil_offering,
            grease_offering.id: grease_offering,
        }

    def test_foreign_offering_is_omitted(
        self, repo, company, oil_offering, approval_offering
    ):
        offerings = repo.get_offerings(
            company.id, [oil_offering.id, approval_offering.id]
        )
        assert list(offerings) == [oil_offering.id]

    def test_disabled_offering_is_omitted(self, repo, company, oil_offering):
        oil_offering.enabled = False
        repo.save(oil_offering)

        assert repo.get_offerings(company.id, [oil_offering.id]) == {}

    def test_get_by_id_loads_master(
        self, repo, oil_offering, django_assert_num_queries
    ):
        offering = repo.get_by_id(oil_offering.id)

        with django_assert_num_queries(0):
            assert offering.product_master.package_label == "20L"


class TestCompanyProductModel:
    def test_price_must_be_positive(self, company, grease):
        offering = CompanyProduct(
            company=company, product_master=grease, price=Decimal("0")
        )
        with pytest.raises(ValidationError):
            offering.clean()

    def test_one_offering_per_company_and_product(
        self, company, engine_oil, oil_offering
    ):
        with pytest.raises(IntegrityError):
            CompanyProduct.objects.create(
                company=company, product_master=engine_oil, price=Decimal("1.00")
            )

    def test_master_code_is_uppercased(self, engine_oil):
        assert engine_oil.code == "ENG-10W30"
