"""
API views for disputes.

Endpoints:
    GET   /api/v1/disputes/               - My disputes (status filter)
    POST  /api/v1/disputes/               - Open a dispute on a delivered order
    GET   /api/v1/disputes/admin/         - All disputes, status filter (admin)
    GET   /api/v1/disputes/stats/         - Counts by status and reason (admin)
    GET   /api/v1/disputes/{id}/          - Dispute detail (party or admin)
    PATCH /api/v1/disputes/{id}/          - Reporter updates description/evidence
    POST  /api/v1/disputes/{id}/respond/  - Other party responds
    PUT   /api/v1/disputes/{id}/resolve/  - Admin resolves and settles funds
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api import StandardPagination, error_response
from core.exceptions import BaseApplicationError
from disputes.serializers import (
    AdminDisputeSerializer,
    CreateDisputeSerializer,
    DisputeListQuerySerializer,
    DisputeSerializer,
    DisputeStatsSerializer,
    RespondDisputeSerializer,
    ResolveDisputeSerializer,
    UpdateDisputeSerializer,
)
from disputes.services import DisputeResolver


class DisputeListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_disputes",
        summary="List my disputes",
        parameters=[DisputeListQuerySerializer],
        responses={200: DisputeSerializer(many=True)},
        tags=["Disputes"],
    )
    def get(self, request):
        query = DisputeListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        queryset = DisputeResolver.for_user(request.user, status=query.validated_data.get("status"))
        paginator = StandardPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(DisputeSerializer(page, many=True).data)

    @extend_schema(
        operation_id="create_dispute",
        summary="Open a dispute",
        description="Open a dispute on a delivered order. The order moves to disputed and its escrow stays held.",
        request=CreateDisputeSerializer,
        responses={
            201: DisputeSerializer,
            400: OpenApiResponse(description="Invalid reason or description"),
            403: OpenApiResponse(description="Caller is not a party to the order"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Order is not delivered or already disputed"),
        },
        tags=["Disputes"],
    )
    def post(self, request):
        serializer = CreateDisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            dispute = DisputeResolver().create_dispute(
                data["order_id"],
                request.user,
                data["reason"],
                data["description"],
                evidence_urls=data["evidence_urls"],
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)


class AdminDisputeListView(APIView):
    """Admin queue of every dispute, to pick the ones to resolve."""

    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="list_all_disputes",
        summary="List all disputes (admin)",
        parameters=[DisputeListQuerySerializer],
        responses={200: AdminDisputeSerializer(many=True)},
        tags=["Disputes"],
    )
    def get(self, request):
        query = DisputeListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        queryset = DisputeResolver.queue(status=query.validated_data.get("status"))
        paginator = StandardPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(AdminDisputeSerializer(page, many=True).data)


class DisputeStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="dispute_stats",
        summary="Dispute statistics",
        responses={200: DisputeStatsSerializer},
        tags=["Disputes"],
    )
    def get(self, request):
        return Response(DisputeStatsSerializer(DisputeResolver.stats()).data)


class DisputeDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_dispute",
        summary="Get dispute details",
        responses={
            200: DisputeSerializer,
            403: OpenApiResponse(description="Not a party or an admin"),
            404: OpenApiResponse(description="Dispute not found"),
        },
        tags=["Disputes"],
    )
    def get(self, request, dispute_id):
        try:
            dispute = DisputeResolver().get_for_party(dispute_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(DisputeSerializer(dispute).data)

    @extend_schema(
        operation_id="update_dispute",
        summary="Update dispute",
        description="The reporter edits the description or appends evidence while the dispute is open.",
        request=UpdateDisputeSerializer,
        responses={
            200: DisputeSerializer,
            403: OpenApiResponse(description="Caller is not the reporter"),
            409: OpenApiResponse(description="Dispute is no longer open"),
        },
        tags=["Disputes"],
    )
    def patch(self, request, dispute_id):
        serializer = UpdateDisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            dispute = DisputeResolver().update_dispute(
                dispute_id,
                request.user,
                description=serializer.validated_data.get("description"),
                evidence_urls=serializer.validated_data.get("evidence_urls"),
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(DisputeSerializer(dispute).data)


class DisputeRespondView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="respond_dispute",
        summary="Respond to dispute",
        request=RespondDisputeSerializer,
        responses={
            200: DisputeSerializer,
            403: OpenApiResponse(description="Caller is not the other party"),
            409: OpenApiResponse(description="Dispute is resolved"),
        },
        tags=["Disputes"],
    )
    def post(self, request, dispute_id):
        serializer = RespondDisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            dispute = DisputeResolver().respond(
                dispute_id, request.user, serializer.validated_data["response"]
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(DisputeSerializer(dispute).data)


class DisputeResolveView(APIView):
    """Admin decision on a dispute. Moves the held or captured funds."""

    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="resolve_dispute",
        summary="Resolve dispute",
        request=ResolveDisputeSerializer,
        responses={
            200: DisputeSerializer,
            400: OpenApiResponse(description="Invalid resolution or refund amount"),
            404: OpenApiResponse(description="Dispute not found"),
            409: OpenApiResponse(description="Dispute already resolved"),
            502: OpenApiResponse(description="Payment provider error"),
        },
        tags=["Disputes"],
    )
    def put(self, request, dispute_id):
        serializer = ResolveDisputeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            dispute = DisputeResolver().resolve_dispute(
                dispute_id,
                data["resolution"],
                request.user,
                admin_notes=data["admin_notes"],
                refund_amount_cents=data.get("refund_amount_cents"),
            )
        except BaseApplicationError as e:
            return error_response(e)
        return Response(DisputeSerializer(dispute).data)
