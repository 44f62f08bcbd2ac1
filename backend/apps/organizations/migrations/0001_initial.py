from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "workos_org_id",
                    models.CharField(
                        db_index=True,
                        help_text="WorkOS organization id, e.g. 'org_01H...'",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("billing_email", models.EmailField(blank=True, max_length=254)),
                ("subscription_id", models.CharField(blank=True, db_index=True, max_length=255)),
                (
                    "subscription_status",
                    models.CharField(
                        choices=[
                            ("inactive", "Inactive"),
                            ("active", "Active"),
                            ("trialing", "Trialing"),
                            ("cancelled", "Cancelled"),
                            ("past_due", "Past Due"),
                            ("unpaid", "Unpaid"),
                            ("paused", "Paused"),
                        ],
                        default="inactive",
                        max_length=20,
                    ),
                ),
                ("plan_id", models.CharField(default="free", max_length=100)),
                ("trial_ends_at", models.DateTimeField(blank=True, null=True)),
                (
                    "ends_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Set when cancelled; access continues until this time",
                        null=True,
                    ),
                ),
                ("max_customers", models.PositiveIntegerField(default=3)),
                ("max_staff", models.PositiveIntegerField(default=2)),
                ("max_clients", models.PositiveIntegerField(default=10)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
