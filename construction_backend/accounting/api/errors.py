# accounting/api/errors.py

"""
PATH: accounting/api/errors.py

Service error -> HTTP response mapping shared by accounting views.

- ValidationError / InvalidStateError -> 400
- NotFoundError                       -> 404
- InfrastructureError                 -> 503
- anything else from the services     -> 400
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from accounting.services.exceptions import (
    AccountingServiceError,
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def service_error_response(exc: AccountingServiceError) -> Response:
    if isinstance(exc, (ValidationError, InvalidStateError)):
        return Response(exc.as_dict(), status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, NotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, InfrastructureError):
        logger.error("Accounting storage failure", extra={"error": str(exc)})
        return Response(
            {"detail": "Accounting storage is unavailable. Please retry."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def request_tenant_id(request) -> str:
    """Tenant set by TenantMiddleware; 400 when the header is missing."""
    tenant_id = getattr(request, "tenant_id", None)
    if not tenant_id:
        raise DRFValidationError({"detail": "X-Tenant-ID header is required."})
    return tenant_id
