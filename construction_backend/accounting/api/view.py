# PATH: accounting/api/view.py

"""
PATH: accounting/api/view.py

ACCOUNTING API VIEWSETS

Journal entries:
    GET    /api/accounting/journal-entries/                 list (filters below)
    POST   /api/accounting/journal-entries/                 create (Draft or Posted)
    GET    /api/accounting/journal-entries/<id>/            retrieve
    PATCH  /api/accounting/journal-entries/<id>/            update (Draft only)
    DELETE /api/accounting/journal-entries/<id>/            delete (Draft only)
    POST   /api/accounting/journal-entries/<id>/reverse/    reverse (Posted only, reason required)
    POST   /api/accounting/journal-entries/<id>/post/       Draft -> Posted
    GET    /api/accounting/journal-entries/by-account/<code>/

General ledger (append-only, audit-safe):
    GET /api/accounting/general-ledger/                     raw rows (Active by default)
    GET /api/accounting/general-ledger/account/<code>/      account statement
    GET /api/accounting/general-ledger/balance/<code>/      account balance

Security rules:
- Every request needs the X-Tenant-ID header; every queryset is tenant-scoped
- Permission-gated via Django permissions (no role hardcoding)
- Writes go through accounting.services.journal_entry_service only
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.errors import request_tenant_id, service_error_response
from accounting.api.filters import GeneralLedgerEntryFilter, JournalEntryFilter
from accounting.api.serializers import (
    GeneralLedgerEntrySerializer,
    JournalEntryCreateSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
)
from accounting.models.journal import JournalEntry
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services import balance_service
from accounting.services import journal_entry_service as journals
from accounting.services.exceptions import AccountingServiceError


def _require_perm(request, perm: str, message: str) -> None:
    if not request.user.has_perm(perm):
        raise PermissionDenied(message)


DATE_RANGE_PARAMETERS = [
    OpenApiParameter(
        name="start_date",
        type=str,
        location=OpenApiParameter.QUERY,
        required=False,
        description="Inclusive start date (YYYY-MM-DD).",
    ),
    OpenApiParameter(
        name="end_date",
        type=str,
        location=OpenApiParameter.QUERY,
        required=False,
        description="Inclusive end date (YYYY-MM-DD).",
    ),
]


@extend_schema(tags=["accounting"])
class JournalEntryViewSet(ReadOnlyModelViewSet):
    """
    Journal entries for the request's tenant.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = JournalEntrySerializer
    filterset_class = JournalEntryFilter

    def get_queryset(self):
        _require_perm(
            self.request,
            "accounting.view_journalentry",
            "You do not have permission to view journal entries.",
        )
        tenant_id = request_tenant_id(self.request)
        # Query-string filters are applied by JournalEntryFilter on top.
        return journals.list_journal_entries(tenant_id=tenant_id).select_related("reversal_of")

    def retrieve(self, request, *args, **kwargs):
        _require_perm(
            request,
            "accounting.view_journalentry",
            "You do not have permission to view journal entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            entry = journals.get_journal_entry(tenant_id=tenant_id, entry_id=kwargs["pk"])
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_200_OK)

    @extend_schema(request=JournalEntryCreateSerializer, responses={201: JournalEntrySerializer})
    def create(self, request, *args, **kwargs):
        _require_perm(
            request,
            "accounting.add_journalentry",
            "You do not have permission to create journal entries.",
        )
        tenant_id = request_tenant_id(request)

        s = JournalEntryCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            entry = journals.create_journal_entry(
                tenant_id=tenant_id,
                lines=[dict(line) for line in data["lines"]],
                date=data.get("date"),
                transaction_type=data["transaction_type"],
                description=data["description"],
                source={
                    "model": JournalEntry.SOURCE_MANUAL,
                    "reference": data.get("source_reference", ""),
                },
                project=data.get("project", ""),
                notes=data.get("notes", ""),
                created_by=request.user,
                status=data["status"],
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=JournalEntryUpdateSerializer, responses={200: JournalEntrySerializer})
    def update(self, request, *args, **kwargs):
        _require_perm(
            request,
            "accounting.change_journalentry",
            "You do not have permission to edit journal entries.",
        )
        tenant_id = request_tenant_id(request)

        s = JournalEntryUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        lines = data.get("lines")
        try:
            entry = journals.update_draft_journal_entry(
                tenant_id=tenant_id,
                entry_id=kwargs["pk"],
                date=data.get("date"),
                description=data.get("description"),
                lines=[dict(line) for line in lines] if lines is not None else None,
                notes=data.get("notes"),
                project=data.get("project"),
                transaction_type=data.get("transaction_type"),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_200_OK)

    @extend_schema(request=JournalEntryUpdateSerializer, responses={200: JournalEntrySerializer})
    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        _require_perm(
            request,
            "accounting.delete_journalentry",
            "You do not have permission to delete journal entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            journals.delete_draft_journal_entry(tenant_id=tenant_id, entry_id=kwargs["pk"])
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=JournalEntryReverseSerializer, responses={201: JournalEntrySerializer})
    @action(detail=True, methods=["post"])
    def reverse(self, request, pk=None):
        _require_perm(
            request,
            "accounting.change_journalentry",
            "You do not have permission to reverse journal entries.",
        )
        tenant_id = request_tenant_id(request)

        s = JournalEntryReverseSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            reversal = journals.reverse_journal_entry(
                tenant_id=tenant_id,
                entry_id=pk,
                user=request.user,
                reason=s.validated_data["reason"],
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(reversal).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: JournalEntrySerializer})
    @action(detail=True, methods=["post"], url_path="post", url_name="post")
    def post_draft(self, request, pk=None):
        _require_perm(
            request,
            "accounting.change_journalentry",
            "You do not have permission to post journal entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            entry = journals.post_draft_journal_entry(
                tenant_id=tenant_id, entry_id=pk, user=request.user
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_200_OK)

    @extend_schema(parameters=DATE_RANGE_PARAMETERS, responses={200: JournalEntrySerializer(many=True)})
    @action(detail=False, methods=["get"], url_path=r"by-account/(?P<account_code>[^/]+)")
    def by_account(self, request, account_code=None):
        _require_perm(
            request,
            "accounting.view_journalentry",
            "You do not have permission to view journal entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            qs = journals.get_entries_by_account(
                tenant_id=tenant_id,
                account_code=account_code,
                start_date=request.query_params.get("start_date"),
                end_date=request.query_params.get("end_date"),
            )
            data = JournalEntrySerializer(qs, many=True).data
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)


@extend_schema(tags=["accounting"])
class GeneralLedgerViewSet(ReadOnlyModelViewSet):
    """
    Read-only access to general ledger rows (append-only, audit-safe).

    Rows are Active only unless ?status= is given.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = GeneralLedgerEntrySerializer
    filterset_class = GeneralLedgerEntryFilter
    http_method_names = ["get", "head", "options"]

    def get_queryset(self):
        _require_perm(
            self.request,
            "accounting.view_generalledgerentry",
            "You do not have permission to view ledger entries.",
        )
        tenant_id = request_tenant_id(self.request)

        qs = GeneralLedgerEntry.objects.for_tenant(tenant_id)
        if not self.request.query_params.get("status"):
            qs = qs.filter(status=GeneralLedgerEntry.ACTIVE)
        return qs.order_by("date", "created_at", "id")

    @extend_schema(parameters=DATE_RANGE_PARAMETERS, responses={200: dict})
    @action(detail=False, methods=["get"], url_path=r"account/(?P<account_code>[^/]+)")
    def account_ledger(self, request, account_code=None):
        _require_perm(
            request,
            "accounting.view_generalledgerentry",
            "You do not have permission to view ledger entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            data = balance_service.get_account_ledger(
                tenant_id=tenant_id,
                account_code=account_code,
                start_date=request.query_params.get("start_date"),
                end_date=request.query_params.get("end_date"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="as_of",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Inclusive snapshot date (YYYY-MM-DD). Defaults to today.",
            ),
        ],
        responses={200: dict},
    )
    @action(detail=False, methods=["get"], url_path=r"balance/(?P<account_code>[^/]+)")
    def account_balance(self, request, account_code=None):
        _require_perm(
            request,
            "accounting.view_generalledgerentry",
            "You do not have permission to view ledger entries.",
        )
        tenant_id = request_tenant_id(request)

        try:
            data = balance_service.get_account_balance(
                tenant_id=tenant_id,
                account_code=account_code,
                as_of=request.query_params.get("as_of"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
