# PATH: accounting/api/views/profit_and_loss.py


"""
PATH: accounting/api/views/profit_and_loss.py

PROFIT & LOSS (P&L) API VIEW

Read-only endpoint exposing a profit & loss snapshot over a date range.

- Permission-gated: requires accounting.view_generalledgerentry
- Tenant isolation: the X-Tenant-ID header scopes every figure
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import request_tenant_id, service_error_response
from accounting.services.exceptions import AccountingServiceError
from accounting.services.profit_and_loss_service import get_profit_and_loss


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="start_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Start date (YYYY-MM-DD), inclusive.",
        ),
        OpenApiParameter(
            name="end_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="End date (YYYY-MM-DD), inclusive.",
        ),
    ],
    responses={200: dict},
)
class ProfitAndLossView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm("accounting.view_generalledgerentry"):
            return Response(
                {"detail": "You do not have permission to view profit and loss."},
                status=status.HTTP_403_FORBIDDEN,
            )

        tenant_id = request_tenant_id(request)

        try:
            data = get_profit_and_loss(
                tenant_id=tenant_id,
                start_date=request.query_params.get("start_date"),
                end_date=request.query_params.get("end_date"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
