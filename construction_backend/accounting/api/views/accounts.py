# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API

GET  /api/accounting/accounts/
    Returns the tenant's accounts ordered by code.
    ?account_type=Asset and ?include_inactive=true are optional.

POST /api/accounting/accounts/
    Creates one account; an existing code (or sub-account code) is a 400.

- Permission-gated: view_account / add_account
- Tenant isolation: the X-Tenant-ID header scopes the chart
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.generics import GenericAPIView
from rest_framework import status

from drf_spectacular.utils import OpenApiParameter, extend_schema

from accounting.api.errors import request_tenant_id, service_error_response
from accounting.api.serializers.accounts import AccountCreateSerializer, AccountListSerializer
from accounting.models.account import Account
from accounting.services.account_registry import create_account
from accounting.services.exceptions import AccountingServiceError


class AccountListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountCreateSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="account_type", type=str, required=False),
            OpenApiParameter(name="include_inactive", type=bool, required=False),
        ],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.view_account"):
            return Response(
                {"detail": "You do not have permission to view accounts."},
                status=status.HTTP_403_FORBIDDEN,
            )

        tenant_id = request_tenant_id(request)

        qs = Account.objects.for_tenant(tenant_id).select_related("parent_account")

        account_type = request.query_params.get("account_type")
        if account_type:
            qs = qs.filter(account_type=account_type)

        include_inactive = (request.query_params.get("include_inactive") or "").lower()
        if include_inactive not in ("1", "true", "yes"):
            qs = qs.filter(is_active=True)

        return Response(
            AccountListSerializer(qs.order_by("code"), many=True).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["accounting"],
        request=AccountCreateSerializer,
        responses={201: AccountListSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.add_account"):
            return Response(
                {"detail": "You do not have permission to create accounts."},
                status=status.HTTP_403_FORBIDDEN,
            )

        tenant_id = request_tenant_id(request)

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            account = create_account(
                tenant_id=tenant_id,
                code=data["code"],
                name=data["name"],
                account_type=data["account_type"],
                description=data.get("description", ""),
                parent_code=data.get("parent_account_code"),
                created_by=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(AccountListSerializer(account).data, status=status.HTTP_201_CREATED)
