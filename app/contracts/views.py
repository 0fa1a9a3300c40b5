"""
API views for collaboration contracts.

Endpoints:
    GET  /api/v1/contracts/orders/{order_id}/  - Contract for an order (party or admin)
    POST /api/v1/contracts/{id}/agree/         - Record the caller's agreement
    GET  /api/v1/contracts/{id}/download/      - Rendered agreement (buyer or seller)
"""

from django.http import FileResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from contracts.serializers import ContractSerializer
from contracts.services import ContractService
from core.api import error_response
from core.exceptions import BaseApplicationError


class OrderContractView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_order_contract",
        summary="Get contract for an order",
        responses={
            200: ContractSerializer,
            403: OpenApiResponse(description="Not a party to the contract"),
            404: OpenApiResponse(description="No contract for this order yet"),
        },
        tags=["Contracts"],
    )
    def get(self, request, order_id):
        try:
            contract = ContractService.get_for_order(order_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(ContractSerializer(contract).data)


class AgreeContractView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="agree_contract",
        summary="Agree to contract",
        request=None,
        responses={
            200: ContractSerializer,
            403: OpenApiResponse(description="Not a party to the contract"),
            409: OpenApiResponse(description="Both parties already agreed"),
        },
        tags=["Contracts"],
    )
    def post(self, request, contract_id):
        try:
            contract = ContractService.agree(contract_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(ContractSerializer(contract).data)


class DownloadContractView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="download_contract",
        summary="Download contract document",
        responses={
            (200, "text/plain"): OpenApiTypes.BINARY,
            403: OpenApiResponse(description="Not a party to the contract"),
            404: OpenApiResponse(description="Contract or document not found"),
        },
        tags=["Contracts"],
    )
    def get(self, request, contract_id):
        try:
            document, filename = ContractService.open_document(contract_id, request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return FileResponse(
            document,
            as_attachment=True,
            filename=filename,
            content_type="text/plain; charset=utf-8",
        )
