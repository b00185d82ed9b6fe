# PATH: accounting/api/views/project_ledger.py

"""
PATH: accounting/api/views/project_ledger.py

PROJECT LEDGER API VIEW (READ-ONLY)

GET /api/accounting/project-ledger/<project>/?start_date=&end_date=
Revenue / expense / asset rows booked against one project, with totals.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import request_tenant_id, service_error_response
from accounting.services.balance_service import get_project_ledger
from accounting.services.exceptions import AccountingServiceError


class ProjectLedgerView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="start_date", type=str, required=False),
            OpenApiParameter(name="end_date", type=str, required=False),
        ],
        responses={200: dict},
    )
    def get(self, request, project):
        if not request.user.has_perm("accounting.view_generalledgerentry"):
            return Response(
                {"detail": "You do not have permission to view project ledgers."},
                status=status.HTTP_403_FORBIDDEN,
            )

        tenant_id = request_tenant_id(request)

        try:
            data = get_project_ledger(
                tenant_id=tenant_id,
                project=project,
                start_date=request.query_params.get("start_date"),
                end_date=request.query_params.get("end_date"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
