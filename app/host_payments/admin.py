"""
Admin configuration for host payment models.

Connected accounts are written only by the lifecycle manager, so the
admin is read-only: support staff can look, not edit.
"""

from django.contrib import admin

from host_payments.models import ConnectedAccount


@admin.register(ConnectedAccount)
class ConnectedAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for ConnectedAccount.

    Provides visibility into Stripe Connect account status.
    """

    list_display = [
        "id",
        "user",
        "stripe_account_id",
        "account_status",
        "charges_enabled",
        "payouts_enabled",
        "details_submitted",
        "updated_at",
        "last_synced_at",
    ]
    list_filter = ["account_status", "charges_enabled", "payouts_enabled"]
    search_fields = ["id", "stripe_account_id", "user__email"]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
