"""
Tests for the disputes API.
"""

from unittest.mock import patch

import pytest
from django.urls import reverse

from accounts.tests.factories import AdminFactory, UserFactory
from disputes.states import DisputeStatus
from disputes.tests.factories import DisputeFactory
from orders.models import Order
from orders.states import OrderStatus

DESCRIPTION = "Delivery never arrived in the shared folder."


@pytest.fixture
def patched_stripe(stripe_adapter):
    with patch("payments.services.escrow_manager.StripeAdapter", stripe_adapter):
        yield stripe_adapter


@pytest.mark.django_db
class TestCreateAndList:
    def test_create(self, client_for, delivered_order):
        response = client_for(delivered_order.buyer).post(
            reverse("disputes:list"),
            {"order_id": str(delivered_order.id), "reason": "not_delivered", "description": DESCRIPTION},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["status"] == DisputeStatus.OPEN
        assert response.data["order_status"] == OrderStatus.DISPUTED

    def test_create_duplicate_is_409(self, client_for, dispute):
        response = client_for(dispute.order.seller).post(
            reverse("disputes:list"),
            {"order_id": str(dispute.order_id), "reason": "other", "description": DESCRIPTION},
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "ACTIVE_DISPUTE_EXISTS"

    def test_create_validates_description(self, client_for, delivered_order):
        response = client_for(delivered_order.buyer).post(
            reverse("disputes:list"),
            {"order_id": str(delivered_order.id), "reason": "other", "description": "short"},
            format="json",
        )

        assert response.status_code == 400
        assert "description" in response.data

    def test_list_mine(self, client_for, dispute):
        DisputeFactory()

        response = client_for(dispute.order.seller).get(reverse("disputes:list"))

        assert response.status_code == 200
        assert [d["id"] for d in response.data["results"]] == [str(dispute.id)]

    def test_requires_authentication(self, api_client):
        assert api_client.get(reverse("disputes:list")).status_code == 401


@pytest.mark.django_db
class TestDetailUpdateRespond:
    def test_outsider_cannot_view(self, client_for, dispute):
        response = client_for(UserFactory()).get(reverse("disputes:detail", args=[dispute.id]))

        assert response.status_code == 403

    def test_reporter_patch(self, client_for, dispute):
        response = client_for(dispute.raised_by).patch(
            reverse("disputes:detail", args=[dispute.id]),
            {"evidence_urls": ["https://files.example.com/more.wav"]},
            format="json",
        )

        assert response.status_code == 200
        assert len(response.data["evidence_urls"]) == 2

    def test_empty_patch_is_400(self, client_for, dispute):
        response = client_for(dispute.raised_by).patch(
            reverse("disputes:detail", args=[dispute.id]), {}, format="json"
        )

        assert response.status_code == 400

    def test_respond(self, client_for, dispute):
        response = client_for(dispute.order.seller).post(
            reverse("disputes:respond", args=[dispute.id]),
            {"response": "The files are in the delivery folder."},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["status"] == DisputeStatus.UNDER_REVIEW


@pytest.mark.django_db
class TestResolveAndStats:
    def test_resolve_release(self, client_for, dispute, patched_stripe):
        url = reverse("disputes:resolve", args=[dispute.id])
        client = client_for(AdminFactory())

        response = client.put(url, {"resolution": "release_to_seller"}, format="json")
        again = client.put(url, {"resolution": "refund_buyer"}, format="json")

        assert response.status_code == 200
        assert response.data["status"] == DisputeStatus.RESOLVED
        assert Order.objects.get(pk=dispute.order_id).status == OrderStatus.COMPLETED
        assert again.status_code == 409
        assert again.data["error_code"] == "DISPUTE_ALREADY_RESOLVED"

    def test_partial_refund_needs_amount(self, client_for, dispute):
        response = client_for(AdminFactory()).put(
            reverse("disputes:resolve", args=[dispute.id]),
            {"resolution": "partial_refund"},
            format="json",
        )

        assert response.status_code == 400
        assert "refund_amount_cents" in response.data

    def test_resolve_requires_admin(self, client_for, dispute):
        response = client_for(dispute.raised_by).put(
            reverse("disputes:resolve", args=[dispute.id]),
            {"resolution": "refund_buyer"},
            format="json",
        )

        assert response.status_code == 403

    def test_stats(self, client_for, dispute):
        admin_response = client_for(AdminFactory()).get(reverse("disputes:stats"))
        user_response = client_for(dispute.raised_by).get(reverse("disputes:stats"))

        assert admin_response.status_code == 200
        assert admin_response.data["total"] == 1
        assert admin_response.data["by_status"]["open"] == 1
        assert user_response.status_code == 403

    def test_admin_queue_lists_every_dispute(self, client_for, dispute):
        other = DisputeFactory()
        url = reverse("disputes:admin_list")

        response = client_for(AdminFactory()).get(url)

        assert response.status_code == 200
        assert {d["id"] for d in response.data["results"]} == {str(dispute.id), str(other.id)}
        row = next(d for d in response.data["results"] if d["id"] == str(dispute.id))
        assert row["buyer"] == str(dispute.order.buyer_id)
        assert row["order_amount_cents"] == dispute.order.amount_cents

    def test_admin_queue_filters_and_is_admin_only(self, client_for, dispute, resolver):
        resolver.respond(dispute.id, dispute.order.seller, "Stems match the brief.")
        DisputeFactory()
        url = reverse("disputes:admin_list")

        filtered = client_for(AdminFactory()).get(url, {"status": DisputeStatus.UNDER_REVIEW})
        forbidden = client_for(dispute.raised_by).get(url)

        assert [d["id"] for d in filtered.data["results"]] == [str(dispute.id)]
        assert forbidden.status_code == 403
