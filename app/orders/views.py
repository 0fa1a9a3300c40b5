"""
API views for order reads and buyer/seller actions.

Endpoints:
    GET  /api/v1/orders/                 - List my orders (role, status filters)
    GET  /api/v1/orders/{id}/            - Order detail (party or admin)
    GET  /api/v1/orders/{id}/history/    - Status history (party or admin)
    POST /api/v1/orders/{id}/upload/     - Buyer uploads source files
    POST /api/v1/orders/{id}/deliver/    - Seller delivers
    POST /api/v1/orders/{id}/complete/   - Buyer approves, escrow released
    POST /api/v1/orders/{id}/cancel/     - Cancel before delivery
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import StandardPagination, error_response
from core.exceptions import BaseApplicationError
from orders.serializers import (
    CancelOrderSerializer,
    DeliverOrderSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
    OrderStatusHistorySerializer,
    UploadBuyerFilesSerializer,
)
from orders.services import OrderWorkflowService
from orders.store import OrderStore


class OrderListView(APIView):
    """
    List the caller's orders, newest first.

    Query parameters:
        role: buyer | seller | all (default all)
        status: optional OrderStatus filter
        page, page_size: pagination (page_size at most 100)
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_orders",
        summary="List my orders",
        parameters=[OrderListQuerySerializer],
        responses={200: OrderSerializer(many=True)},
        tags=["Orders"],
    )
    def get(self, request):
        query = OrderListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        queryset = OrderStore.for_user(
            request.user,
            role=query.validated_data["role"],
            status=query.validated_data.get("status"),
        )
        paginator = StandardPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(OrderSerializer(page, many=True).data)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_order",
        summary="Get order details",
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(description="Not the buyer, the seller or an admin"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders"],
    )
    def get(self, request, order_id):
        try:
            order = OrderWorkflowService.get_for_party(order_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)


class OrderHistoryView(APIView):
    """Append-only status history for audit and dispute review."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_order_history",
        summary="Get order status history",
        responses={
            200: OrderStatusHistorySerializer(many=True),
            403: OpenApiResponse(description="Not the buyer, the seller or an admin"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders"],
    )
    def get(self, request, order_id):
        try:
            order = OrderWorkflowService.get_for_party(order_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        history = OrderStore.history(order)
        return Response(OrderStatusHistorySerializer(history, many=True).data)


class OrderUploadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="upload_order_files",
        summary="Upload buyer files",
        description="Attach the buyer's files to a collaboration and move it to in_progress.",
        request=UploadBuyerFilesSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Invalid file list"),
            403: OpenApiResponse(description="Caller is not the buyer"),
            409: OpenApiResponse(description="Order is not awaiting upload"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        serializer = UploadBuyerFilesSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = OrderWorkflowService.upload_buyer_files(
                order_id,
                request.user,
                serializer.validated_data["file_urls"],
                instructions=serializer.validated_data["instructions"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)


class OrderDeliverView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="deliver_order",
        summary="Deliver order",
        request=DeliverOrderSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Invalid file list"),
            403: OpenApiResponse(description="Caller is not the seller"),
            409: OpenApiResponse(description="Order cannot be delivered in its current status"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        serializer = DeliverOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = OrderWorkflowService.deliver(
                order_id,
                request.user,
                serializer.validated_data["file_urls"],
                delivery_notes=serializer.validated_data["delivery_notes"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)


class OrderCompleteView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="complete_order",
        summary="Approve delivery",
        description="Buyer approves the delivery. Held escrow is captured and paid out to the seller.",
        request=None,
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(description="Caller is not the buyer"),
            409: OpenApiResponse(description="Order is not delivered"),
            502: OpenApiResponse(description="Payment provider error"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        try:
            order = OrderWorkflowService.complete(order_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)


class OrderCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="cancel_order",
        summary="Cancel order",
        description="Cancel before delivery. Held escrow is voided at the payment provider.",
        request=CancelOrderSerializer,
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(description="Not the buyer, the seller or an admin"),
            409: OpenApiResponse(description="Order can no longer be cancelled"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        serializer = CancelOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = OrderWorkflowService.cancel(
                order_id,
                request.user,
                reason=serializer.validated_data["reason"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)
