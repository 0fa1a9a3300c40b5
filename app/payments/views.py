"""
API views for purchases and escrow.

Endpoints:
    POST /api/v1/payments/create-intent/   - Quote and open a PaymentIntent
    POST /api/v1/payments/confirm/         - Create the order for a paid intent
    POST /api/v1/payments/release-escrow/  - Release held funds (admin only)
    GET  /api/v1/payments/transactions/    - Ledger rows with totals (admin only)

The Stripe webhook endpoint lives in payments.webhooks.views.
"""

from __future__ import annotations

from dataclasses import asdict

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import StandardPagination, error_response
from core.exceptions import BaseApplicationError
from orders.serializers import OrderSerializer
from payments.serializers import (
    ConfirmPaymentSerializer,
    ConfirmResponseSerializer,
    CreateIntentSerializer,
    IntentQuoteSerializer,
    ReleaseEscrowSerializer,
    TransactionListQuerySerializer,
    TransactionSerializer,
    TransactionTotalsSerializer,
)
from payments.services import EscrowPaymentManager, TransactionLedger


class CreatePaymentIntentView(APIView):
    """
    Start a purchase.

    Returns the client secret for the frontend to confirm the card payment
    together with the fee split. Collaboration services are authorized only
    (manual capture) and held in escrow.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_payment_intent",
        summary="Create a payment intent",
        request=CreateIntentSerializer,
        responses={
            201: IntentQuoteSerializer,
            400: OpenApiResponse(description="Inactive service or own service"),
            404: OpenApiResponse(description="Service not found"),
            502: OpenApiResponse(description="Payment provider error"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CreateIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            quote = EscrowPaymentManager().create_intent(
                serializer.validated_data["service_id"],
                request.user,
                idempotency_key=serializer.validated_data.get("idempotency_key"),
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(IntentQuoteSerializer(asdict(quote)).data, status=status.HTTP_201_CREATED)


class ConfirmPaymentView(APIView):
    """
    Create the order once the buyer's payment succeeded.

    Safe to retry: a repeated confirmation returns the existing order with
    ``is_idempotent_response: true`` and status 200.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="confirm_payment",
        summary="Confirm a payment and create the order",
        request=ConfirmPaymentSerializer,
        responses={
            200: ConfirmResponseSerializer,
            201: ConfirmResponseSerializer,
            400: OpenApiResponse(description="Payment not completed or does not match"),
            403: OpenApiResponse(description="Payment belongs to another buyer"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = ConfirmPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = EscrowPaymentManager().confirm_payment(
                serializer.validated_data["payment_intent_id"],
                serializer.validated_data["service_id"],
                request.user,
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            {
                "order": OrderSerializer(result.order).data,
                "is_idempotent_response": result.replayed,
            },
            status=status.HTTP_200_OK if result.replayed else status.HTTP_201_CREATED,
        )


class ReleaseEscrowView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="release_escrow",
        summary="Release escrow to the seller (admin)",
        request=ReleaseEscrowSerializer,
        responses={
            200: OrderSerializer,
            409: OpenApiResponse(description="Order is not delivered with escrow held"),
            502: OpenApiResponse(description="Capture failed or outcome unknown"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = ReleaseEscrowSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = EscrowPaymentManager().release_escrow(
                serializer.validated_data["order_id"],
                actor=request.user,
                reason=serializer.validated_data["reason"] or "Escrow released by admin",
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)


class TransactionListView(APIView):
    """
    Admin view of the ledger.

    ``totals`` covers every row matching the filters, not only the page.
    """

    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="list_transactions",
        summary="List ledger transactions (admin)",
        parameters=[TransactionListQuerySerializer],
        responses={200: TransactionSerializer(many=True)},
        tags=["Payments"],
    )
    def get(self, request):
        query = TransactionListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        queryset = TransactionLedger.entries(
            type=query.validated_data.get("type"),
            status=query.validated_data.get("status"),
        )
        paginator = StandardPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        response = paginator.get_paginated_response(TransactionSerializer(page, many=True).data)
        response.data["totals"] = TransactionTotalsSerializer(TransactionLedger.totals(queryset)).data
        return response
