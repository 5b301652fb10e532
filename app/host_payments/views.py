"""
DRF views for Stripe Connect onboarding.

This module provides API views for:
- Starting Stripe Connect onboarding for a host
- Reporting the host's connected account status

Related files:
    - services/: Lifecycle manager and status service
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: The Stripe webhook endpoint

Endpoints:
    POST /api/v1/payments/connect/accounts/ - Create account + onboarding link
    GET /api/v1/payments/connect/accounts/status/ - Account status

Security:
    - Both endpoints require authentication
    - Only staff may create an account on behalf of another user
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from host_payments.exceptions import (
    AccountConflictError,
    ProviderClientError,
    ProviderConfigError,
    ProviderTransientError,
)
from host_payments.serializers import (
    AccountStatusQuerySerializer,
    AccountStatusSerializer,
    CreateConnectedAccountSerializer,
    ErrorSerializer,
    OnboardingLinkSerializer,
)
from host_payments.services import get_account_services

logger = logging.getLogger(__name__)


# Checked in order; first match wins
ERROR_STATUS_CODES = (
    (ProviderClientError, status.HTTP_400_BAD_REQUEST),
    (ProviderTransientError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ProviderConfigError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (AccountConflictError, status.HTTP_409_CONFLICT),
)

HANDLED_ERRORS = tuple(error_class for error_class, _ in ERROR_STATUS_CODES)


def error_response(exc: Exception) -> Response:
    """Render a domain error with the status code for its category."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return Response(exc.to_dict(), status=status_code)
    raise exc


class ConnectedAccountCreateView(APIView):
    """
    Create a Stripe connected account and return its onboarding link.

    POST /api/v1/payments/connect/accounts/

    Calling this again creates a new Stripe account and replaces the
    stored one; the client should only call it when the status endpoint
    reports account_status "none" or the host asks to start over.

    Response:
        201 Created: {"onboarding_url": ..., "provider_account_id": ...}
        400 Bad Request: Invalid body or Stripe rejected the request
        403 Forbidden: Non-staff user acting for someone else
        404 Not Found: user_id does not exist
        409 Conflict: Stripe account already linked to another user
        500 Internal Server Error: Stripe not configured
        503 Service Unavailable: Stripe unreachable, retry later
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_connected_account",
        summary="Start Stripe Connect onboarding",
        description=(
            "Create a Stripe Express account for the host and return a "
            "Stripe-hosted onboarding URL. Not idempotent: every call creates "
            "a new Stripe account."
        ),
        request=CreateConnectedAccountSerializer,
        responses={
            201: OpenApiResponse(
                response=OnboardingLinkSerializer,
                description="Account created",
            ),
            400: OpenApiResponse(response=ErrorSerializer, description="Rejected"),
            403: OpenApiResponse(description="Acting for another user requires staff"),
            404: OpenApiResponse(description="User not found"),
            409: OpenApiResponse(response=ErrorSerializer, description="Conflict"),
            500: OpenApiResponse(response=ErrorSerializer, description="Misconfigured"),
            503: OpenApiResponse(response=ErrorSerializer, description="Stripe unavailable"),
        },
        tags=["Payments - Connect"],
    )
    def post(self, request):
        """Create the account and return the onboarding link."""
        serializer = CreateConnectedAccountSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user_id = serializer.validated_data.get("user_id", request.user.pk)
        if user_id != request.user.pk:
            if not request.user.is_staff:
                return Response(
                    {"error": "Only staff can create accounts for other users"},
                    status=status.HTTP_403_FORBIDDEN,
                )
            if not get_user_model().objects.filter(pk=user_id).exists():
                return Response(
                    {"error": "User not found"},
                    status=status.HTTP_404_NOT_FOUND,
                )

        try:
            services = get_account_services()
            link = services.lifecycle.create_account(
                user_id,
                email=serializer.validated_data.get("email"),
            )
        except HANDLED_ERRORS as e:
            logger.warning(
                "Connected account creation failed",
                extra={"user_id": user_id, "error_code": e.error_code},
            )
            return error_response(e)

        output = OnboardingLinkSerializer(
            {
                "onboarding_url": link.onboarding_url,
                "provider_account_id": link.provider_account_id,
            }
        )
        return Response(output.data, status=status.HTTP_201_CREATED)


class ConnectedAccountStatusView(APIView):
    """
    Report the requesting host's connected account status.

    GET /api/v1/payments/connect/accounts/status/?refresh=true

    With refresh (the default) the record is refreshed from Stripe first;
    if Stripe is unreachable the last stored status is returned.

    Response:
        200 OK: Account status (account_status "none" without an account)
        500 Internal Server Error: Stripe not configured
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_connected_account_status",
        summary="Get connected account status",
        parameters=[
            OpenApiParameter(
                name="refresh",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Refresh from Stripe before answering (default: true)",
            ),
        ],
        responses={
            200: OpenApiResponse(
                response=AccountStatusSerializer,
                description="Account status",
            ),
            500: OpenApiResponse(response=ErrorSerializer, description="Misconfigured"),
        },
        tags=["Payments - Connect"],
    )
    def get(self, request):
        """Return the account status."""
        query = AccountStatusQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            services = get_account_services()
            snapshot = services.status.get_status(
                request.user.pk,
                refresh_from_provider=query.validated_data["refresh"],
            )
        except HANDLED_ERRORS as e:
            return error_response(e)

        return Response(AccountStatusSerializer(snapshot.to_dict()).data)
