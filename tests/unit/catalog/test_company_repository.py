"""Unit tests for the company repository.

Covers:
- Lookup by id (missing and malformed ids return ``None``).
- Membership resolution used to build the request actor.
- Company code normalisation.
"""

from __future__ import annotations

import pytest

from modules.companies.models import Company
from modules.companies.repositories import CompanyDjangoRepository, ICompanyRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return CompanyDjangoRepository()


class TestCompanyRepository:
    def test_implements_interface(self, repo):
        assert isinstance(repo, ICompanyRepository)

    def test_get_by_id(self, repo, company):
        assert repo.get_by_id(company.id) == company

    @pytest.mark.parametrize("bad_id", [999_999, "abc"])
    def test_missing_or_malformed_id(self, repo, bad_id):
        assert repo.get_by_id(bad_id) is None

    def test_list_filters(self, repo, company, approval_company):
        assert repo.list({"requires_order_approval": True}) == [approval_company]

    def test_save_normalises_code(self, repo):
        saved = repo.save(Company(code="  nishi ", name="西日本物流"))
        assert saved.code == "NISHI"

    def test_membership(self, repo, approver_user, approval_company):
        membership = repo.get_membership(approver_user.id)

        assert membership.company == approval_company
        assert membership.can_approve_orders is True

    def test_staff_without_membership(self, repo, staff_user):
        assert repo.get_membership(staff_user.id) is None
