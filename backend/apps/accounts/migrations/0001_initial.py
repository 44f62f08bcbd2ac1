import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("organizations", "0001_initial"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "workos_user_id",
                    models.CharField(
                        db_index=True,
                        help_text="WorkOS user id, e.g. 'user_01H...'",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        blank=True,
                        choices=[("admin", "Admin"), ("staff", "Staff"), ("client", "Client")],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("first_name", models.CharField(blank=True, max_length=255)),
                ("last_name", models.CharField(blank=True, max_length=255)),
                ("profile_picture_url", models.URLField(blank=True, max_length=2048)),
                (
                    "organization",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="users",
                        to="organizations.organization",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        help_text="Only set for client users",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="client_users",
                        to="customers.customer",
                    ),
                ),
                (
                    "impersonating",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin only: the member this admin is currently acting as",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="impersonated_by",
                        to="accounts.user",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["organization", "role"], name="user_org_role_idx")],
            },
        ),
    ]
