import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ConnectedAccount",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stripe_account_id",
                    models.CharField(
                        help_text="Stripe Account ID (acct_xxx)",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "email",
                    models.CharField(
                        blank=True,
                        help_text="Account email as reported by Stripe",
                        max_length=254,
                        null=True,
                    ),
                ),
                (
                    "country",
                    models.CharField(help_text="Two-letter country code", max_length=2),
                ),
                (
                    "default_currency",
                    models.CharField(
                        help_text="Default settlement currency (lowercase ISO code)",
                        max_length=3,
                    ),
                ),
                (
                    "account_status",
                    models.CharField(
                        choices=[
                            ("none", "No Account"),
                            ("pending", "Pending"),
                            ("active", "Active"),
                            ("restricted", "Restricted"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Eligibility status derived from Stripe's capability flags",
                        max_length=20,
                    ),
                ),
                (
                    "charges_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled charges for this account",
                    ),
                ),
                (
                    "payouts_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled payouts for this account",
                    ),
                ),
                (
                    "details_submitted",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the host submitted the onboarding form",
                    ),
                ),
                (
                    "onboarding_url",
                    models.TextField(
                        blank=True,
                        help_text="Short-lived Stripe onboarding link",
                        null=True,
                    ),
                ),
                (
                    "disabled_reason",
                    models.CharField(
                        blank=True,
                        help_text="Why Stripe restricted the account, if it did",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "requirements_currently_due",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Stripe requirement codes currently due",
                    ),
                ),
                (
                    "requirements_past_due",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Stripe requirement codes past due",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Host this connected account belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="connected_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Connected Account",
                "verbose_name_plural": "Connected Accounts",
                "ordering": ["-created_at"],
            },
        ),
    ]
