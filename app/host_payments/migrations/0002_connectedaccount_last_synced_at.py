from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("host_payments", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="connectedaccount",
            name="last_synced_at",
            field=models.DateTimeField(
                blank=True,
                db_index=True,
                help_text="When the account was last pulled from Stripe",
                null=True,
            ),
        ),
    ]
