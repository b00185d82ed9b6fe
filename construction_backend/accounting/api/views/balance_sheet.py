# PATH: accounting/api/views/balance_sheet.py

"""
PATH: accounting/api/views/balance_sheet.py

BALANCE SHEET API VIEW

Read-only endpoint exposing the balance sheet snapshot.
Active ledger rows + entry-date timeline enforced by the service.

- Permission-gated: requires accounting.view_generalledgerentry
- Tenant isolation: the X-Tenant-ID header scopes every figure
"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import request_tenant_id, service_error_response
from accounting.services.balance_sheet_service import get_balance_sheet
from accounting.services.exceptions import AccountingServiceError


class BalanceSheetView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(
                name="as_of",
                type=OpenApiTypes.DATE,
                required=False,
                description="Optional cutoff date (YYYY-MM-DD), inclusive.",
            ),
        ],
        responses={200: dict},
    )
    def get(self, request):
        if not request.user.has_perm("accounting.view_generalledgerentry"):
            return Response(
                {"detail": "You do not have permission to view financial reports."},
                status=status.HTTP_403_FORBIDDEN,
            )

        tenant_id = request_tenant_id(request)

        try:
            data = get_balance_sheet(
                tenant_id=tenant_id,
                as_of=request.query_params.get("as_of"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
