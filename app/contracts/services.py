"""
Contract generation and agreement.

Usage:
    from contracts.services import ContractService

    contract = ContractService.generate(order.id)
    ContractService.agree(contract.id, request.user)
"""

from __future__ import annotations

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from contracts.exceptions import ContractLockedError, ContractNotFoundError
from contracts.models import Contract
from core.exceptions import PermissionDeniedError, ValidationError
from core.services import BaseService
from orders.store import OrderStore

TERMS_TEMPLATE = """\
MUSIC PRODUCTION COLLABORATION AGREEMENT

Order Number: {order_number}

PRODUCER ("Seller"): {seller_name}
Email: {seller_email}

CLIENT ("Buyer"): {buyer_name}
Email: {buyer_email}

1. SERVICES
The Producer agrees to provide the following services:
{service_title}
{service_description}

2. COMPENSATION
Total Project Fee: {amount}
Platform Fee: {platform_fee}
Producer Payment: {seller_amount}
Payment is held in escrow and released when the Client approves the delivery.

3. DELIVERY
Delivery Timeline: {delivery_days} days from project start
Delivery Deadline: {deadline}

4. REVISIONS
Client is entitled to up to 2 (two) rounds of reasonable revisions.
Additional revisions may be negotiated separately.

5. OWNERSHIP & RIGHTS
Upon full payment, Client owns all rights to the final delivered work.
Producer may use the work for portfolio and promotional purposes unless otherwise agreed.

6. CONFIDENTIALITY
Both parties keep project details confidential unless otherwise agreed.

7. CANCELLATION
Buyer may cancel before delivery for a full refund of the held payment.
After delivery, disagreements are handled through the platform dispute process.

8. DISPUTE RESOLUTION
Disputes are resolved through the platform dispute system.

By proceeding with this order, both parties acknowledge and agree to these terms.
"""


def _money(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def _party_name(user) -> str:
    return getattr(user, "display_name", "") or user.email


class ContractService(BaseService):
    """Builds, renders and records agreement on collaboration contracts."""

    @staticmethod
    def build_terms(order) -> str:
        service = order.service
        return TERMS_TEMPLATE.format(
            order_number=order.order_number,
            seller_name=_party_name(order.seller),
            seller_email=order.seller.email,
            buyer_name=_party_name(order.buyer),
            buyer_email=order.buyer.email,
            service_title=service.title,
            service_description=service.description,
            amount=_money(order.amount_cents),
            platform_fee=_money(order.platform_fee_cents),
            seller_amount=_money(order.seller_amount_cents),
            delivery_days=service.delivery_time_days,
            deadline=order.delivery_deadline.date().isoformat() if order.delivery_deadline else "TBD",
        )

    @classmethod
    def generate(cls, order_id) -> Contract:
        """
        Create the contract for a collaboration order.

        Repeated calls return the existing contract.

        Raises:
            OrderNotFoundError: Unknown order
            ValidationError: Order is not an escrowed collaboration
        """
        with cls.atomic():
            order = OrderStore.get_for_update(order_id)
            if not order.service.requires_escrow:
                raise ValidationError(
                    "Contracts are only generated for collaboration orders",
                    error_code="NOT_A_COLLABORATION",
                    details={"order_id": str(order.id)},
                )
            contract, created = Contract.objects.get_or_create(
                order=order,
                defaults={
                    "buyer": order.buyer,
                    "seller": order.seller,
                    "price_cents": order.amount_cents,
                    "terms": cls.build_terms(order),
                },
            )
            if created:
                contract.document_path = cls.render(contract)
                contract.save(update_fields=["document_path", "updated_at"])

        if created:
            cls.get_logger().info(
                "Contract generated",
                extra={"contract_id": str(contract.id), "order_id": str(order.id)},
            )
        return contract

    @staticmethod
    def render(contract: Contract) -> str:
        """
        Write the agreement document to default storage.

        Replaces any previous rendering and returns the stored path.
        """
        lines = [contract.terms, "", "AGREED AND ACCEPTED:"]
        for role, user, agreed_at in (
            ("Buyer", contract.buyer, contract.buyer_agreed_at),
            ("Seller", contract.seller, contract.seller_agreed_at),
        ):
            when = agreed_at.isoformat() if agreed_at else "pending"
            lines.append(f"{role}: {_party_name(user)} (agreed: {when})")
        lines.append(f"Contract ID: {contract.id}")

        prefix = getattr(settings, "CONTRACT_STORAGE_PREFIX", "contracts/")
        path = f"{prefix}{contract.order.order_number}.txt"
        if contract.document_path and default_storage.exists(contract.document_path):
            default_storage.delete(contract.document_path)
        return default_storage.save(path, ContentFile("\n".join(lines).encode("utf-8")))

    @staticmethod
    def get_for_order(order_id, user) -> Contract:
        try:
            contract = Contract.objects.select_related("order", "buyer", "seller").get(order_id=order_id)
        except Contract.DoesNotExist:
            raise ContractNotFoundError(
                "No contract for this order",
                details={"order_id": str(order_id)},
            ) from None
        if not (user.is_staff or user.id in (contract.buyer_id, contract.seller_id)):
            raise PermissionDeniedError(
                "Not authorized to view this contract",
                error_code="NOT_CONTRACT_PARTY",
            )
        return contract

    @classmethod
    def agree(cls, contract_id, user) -> Contract:
        """
        Record the caller's agreement.

        Agreeing twice is a no-op while the other party has not agreed. Once
        both have agreed the document is rendered with both dates and the
        contract is final.

        Raises:
            ContractNotFoundError: Unknown contract
            PermissionDeniedError: Caller is not a party
            ContractLockedError: Both parties already agreed
        """
        with cls.atomic():
            try:
                contract = (
                    Contract.objects.select_for_update()
                    .select_related("order", "buyer", "seller")
                    .get(pk=contract_id)
                )
            except Contract.DoesNotExist:
                raise ContractNotFoundError(
                    "Contract not found",
                    details={"contract_id": str(contract_id)},
                ) from None

            if user.id not in (contract.buyer_id, contract.seller_id):
                raise PermissionDeniedError(
                    "Only the buyer or seller can agree to this contract",
                    error_code="NOT_CONTRACT_PARTY",
                )
            if contract.is_locked:
                raise ContractLockedError(
                    "Contract has already been agreed by both parties",
                    details={"contract_id": str(contract.id)},
                )

            field = "buyer_agreed_at" if user.id == contract.buyer_id else "seller_agreed_at"
            if getattr(contract, field) is not None:
                return contract
            setattr(contract, field, timezone.now())
            if contract.is_locked:
                contract.document_path = cls.render(contract)
            contract.save()

        cls.get_logger().info(
            "Contract agreed",
            extra={
                "contract_id": str(contract.id),
                "order_id": str(contract.order_id),
                "party": field.removesuffix("_agreed_at"),
                "locked": contract.is_locked,
            },
        )
        return contract

    @staticmethod
    def open_document(contract_id, user):
        """
        Open the rendered agreement for one of its parties.

        Returns:
            (file, filename): binary file from default storage and the name to
            download it as

        Raises:
            ContractNotFoundError: Unknown contract or nothing rendered yet
            PermissionDeniedError: Caller is not the buyer or seller
        """
        try:
            contract = Contract.objects.select_related("order").get(pk=contract_id)
        except Contract.DoesNotExist:
            raise ContractNotFoundError(
                "Contract not found",
                details={"contract_id": str(contract_id)},
            ) from None

        if user.id not in (contract.buyer_id, contract.seller_id):
            raise PermissionDeniedError(
                "Not authorized to download this contract",
                error_code="NOT_CONTRACT_PARTY",
            )
        if not contract.document_path or not default_storage.exists(contract.document_path):
            raise ContractNotFoundError(
                "Contract document not available",
                error_code="CONTRACT_DOCUMENT_NOT_AVAILABLE",
                details={"contract_id": str(contract.id)},
            )
        filename = f"contract-{contract.order.order_number}.txt"
        return default_storage.open(contract.document_path, "rb"), filename
