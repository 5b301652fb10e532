"""
DRF serializers for the host payments API.

This module provides serializers for:
- Connected account creation requests and responses
- Account status queries and responses
- The standard error body

Related files:
    - views.py: Connect API views
    - types.py: OnboardingLink, AccountStatusSnapshot

Usage:
    serializer = AccountStatusSerializer(snapshot.to_dict())
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from host_payments.state_machines import AccountStatus


class CreateConnectedAccountSerializer(serializers.Serializer):
    """
    Request body for starting Stripe Connect onboarding.

    Fields:
        user_id: Host to create the account for (staff only; defaults to
            the requesting user)
        email: Email to prefill in Stripe onboarding
    """

    user_id = serializers.IntegerField(
        required=False,
        min_value=1,
        help_text="Host user id; defaults to the authenticated user",
    )
    email = serializers.EmailField(
        required=False,
        help_text="Email to prefill in Stripe's onboarding form",
    )


class OnboardingLinkSerializer(serializers.Serializer):
    """Response body for a created connected account."""

    onboarding_url = serializers.URLField(
        help_text="Stripe-hosted onboarding URL; open it in a browser"
    )
    provider_account_id = serializers.CharField(
        help_text="Stripe Account ID (acct_xxx)"
    )


class AccountStatusQuerySerializer(serializers.Serializer):
    """Query parameters for the status endpoint."""

    refresh = serializers.BooleanField(
        required=False,
        default=True,
        help_text="Refresh from Stripe before answering (default: true)",
    )


class AccountStatusSerializer(serializers.Serializer):
    """
    Connected account status.

    account_status is "none" (and every flag false) when the user has not
    started onboarding.
    """

    has_account = serializers.BooleanField()
    charges_enabled = serializers.BooleanField()
    payouts_enabled = serializers.BooleanField()
    onboarding_completed = serializers.BooleanField()
    account_status = serializers.ChoiceField(choices=AccountStatus.choices)


class ErrorSerializer(serializers.Serializer):
    """Error body produced by BaseApplicationError.to_dict()."""

    error = serializers.CharField()
    error_code = serializers.CharField()
    details = serializers.DictField(required=False)
