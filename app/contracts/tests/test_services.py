"""
Tests for ContractService.
"""

import pytest
from django.core.files.storage import default_storage

from accounts.tests.factories import AdminFactory, UserFactory
from contracts.exceptions import ContractLockedError, ContractNotFoundError
from contracts.models import Contract
from contracts.services import ContractService
from core.exceptions import PermissionDeniedError, ValidationError


@pytest.mark.django_db
class TestGenerate:
    def test_generates_terms_and_document(self, collaboration_order):
        contract = ContractService.generate(collaboration_order.id)

        assert contract.buyer == collaboration_order.buyer
        assert contract.seller == collaboration_order.seller
        assert contract.price_cents == 20000
        assert "Total Project Fee: $200.00" in contract.terms
        assert "Platform Fee: $16.00" in contract.terms
        assert "Producer Payment: $184.00" in contract.terms
        assert collaboration_order.order_number in contract.terms
        assert contract.document_path.startswith("contracts/")
        assert default_storage.exists(contract.document_path)

    def test_generate_is_idempotent(self, collaboration_order):
        first = ContractService.generate(collaboration_order.id)
        second = ContractService.generate(collaboration_order.id)

        assert first.pk == second.pk
        assert Contract.objects.filter(order=collaboration_order).count() == 1

    def test_instant_orders_have_no_contract(self, instant_order):
        with pytest.raises(ValidationError):
            ContractService.generate(instant_order.id)


@pytest.mark.django_db
class TestAgree:
    def test_both_parties_lock_contract(self, collaboration_order):
        contract = ContractService.generate(collaboration_order.id)

        contract = ContractService.agree(contract.id, collaboration_order.buyer)
        assert contract.buyer_agreed_at is not None
        assert not contract.is_locked

        contract = ContractService.agree(contract.id, collaboration_order.seller)
        assert contract.is_locked
        with default_storage.open(contract.document_path) as document:
            text = document.read().decode()
        assert "pending" not in text
        assert "AGREED AND ACCEPTED" in text

    def test_repeat_agreement_before_lock_is_noop(self, collaboration_order):
        contract = ContractService.generate(collaboration_order.id)
        first = ContractService.agree(contract.id, collaboration_order.buyer)

        again = ContractService.agree(contract.id, collaboration_order.buyer)

        assert again.buyer_agreed_at == first.buyer_agreed_at

    def test_locked_contract_rejects_changes(self, collaboration_order):
        contract = ContractService.generate(collaboration_order.id)
        ContractService.agree(contract.id, collaboration_order.buyer)
        contract = ContractService.agree(contract.id, collaboration_order.seller)

        with pytest.raises(ContractLockedError):
            ContractService.agree(contract.id, collaboration_order.buyer)

        contract.terms = "Rewritten"
        with pytest.raises(ContractLockedError):
            contract.save()

    def test_outsider_cannot_agree(self, collaboration_order):
        contract = ContractService.generate(collaboration_order.id)

        with pytest.raises(PermissionDeniedError):
            ContractService.agree(contract.id, UserFactory())


@pytest.mark.django_db
class TestGetForOrder:
    def test_party_and_admin_access(self, collaboration_order):
        ContractService.generate(collaboration_order.id)

        assert ContractService.get_for_order(collaboration_order.id, collaboration_order.seller)
        assert ContractService.get_for_order(collaboration_order.id, AdminFactory())
        with pytest.raises(PermissionDeniedError):
            ContractService.get_for_order(collaboration_order.id, UserFactory())

    def test_missing_contract(self, collaboration_order):
        with pytest.raises(ContractNotFoundError):
            ContractService.get_for_order(collaboration_order.id, collaboration_order.buyer)
