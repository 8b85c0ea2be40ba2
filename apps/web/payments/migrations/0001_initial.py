import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SubscriptionPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("plan_type", models.CharField(choices=[("monthly", "Monthly"), ("annual", "Annual")], max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("preference_id", models.CharField(blank=True, max_length=255)),
                ("external_reference", models.CharField(max_length=255, unique=True)),
                ("status", models.CharField(default="pending", max_length=30)),
                ("payment_id", models.CharField(blank=True, max_length=255)),
                ("payment_method", models.CharField(blank=True, max_length=50)),
                ("payer_email", models.EmailField(blank=True, max_length=254)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Latest provider payment snapshot")),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="%(class)ss", to="core.client")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["client", "created_at"], name="payments_su_client__5d1e8a_idx"),
                    models.Index(fields=["payment_id"], name="payments_su_payment_9f3c2b_idx"),
                ],
            },
        ),
    ]
