import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MenuItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, help_text="Unit price, or price per weight unit when sold by weight", max_digits=10)),
                ("sold_by_weight", models.BooleanField(default=False)),
                ("weight_unit", models.CharField(blank=True, help_text='Weight unit for priced-by-weight items (e.g. "kg")', max_length=10)),
                ("is_available", models.BooleanField(default=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="%(class)ss", to="core.client")),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["client", "is_available"], name="restaurant__client__a8f2c1_idx")],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.PositiveIntegerField(help_text="Per-business display number")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("preparing", "Preparing"), ("ready", "Ready"), ("dispatched", "Dispatched"), ("cancelled", "Cancelled")], default="pending", max_length=20)),
                ("status_changed_at", models.DateTimeField(help_text="Reset on every status write; drives staleness alerts")),
                ("snoozed_until", models.DateTimeField(blank=True, help_text="Alerts are suppressed until this time", null=True)),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_phone", models.CharField(max_length=30)),
                ("delivery_address", models.TextField(blank=True)),
                ("notes", models.TextField(blank=True)),
                ("delivery_type", models.CharField(choices=[("pickup", "Pickup"), ("delivery", "Delivery")], default="pickup", max_length=20)),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("online", "Online (MercadoPago)")], default="cash", max_length=20)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_status", models.CharField(blank=True, choices=[("processing", "Processing"), ("paid", "Paid"), ("failed", "Failed"), ("refunded", "Refunded")], max_length=20, null=True)),
                ("mercadopago_preference_id", models.CharField(blank=True, max_length=255)),
                ("mercadopago_payment_id", models.CharField(blank=True, max_length=255)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="%(class)ss", to="core.client")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["client", "status"], name="restaurant__client__3b9d0e_idx"),
                    models.Index(fields=["client", "created_at"], name="restaurant__client__7c41f5_idx"),
                    models.Index(fields=["mercadopago_payment_id"], name="restaurant__mercado_e2a7b9_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("client", "order_number"), name="unique_order_number_per_client"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("sold_by_weight", models.BooleanField(default=False)),
                ("quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("weight", models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True)),
                ("weight_unit", models.CharField(blank=True, max_length=10)),
                ("subtotal", models.DecimalField(decimal_places=2, help_text="unit_price * quantity, or unit_price * weight", max_digits=12)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="%(class)ss", to="core.client")),
                ("menu_item", models.ForeignKey(blank=True, help_text="Reference to the menu item (for analytics)", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="order_items", to="restaurant.menuitem")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="restaurant.order")),
            ],
            options={
                "ordering": ["pk"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("quantity__isnull", False), ("sold_by_weight", False), ("weight__isnull", True)),
                            models.Q(("quantity__isnull", True), ("sold_by_weight", True), ("weight__isnull", False)),
                            _connector="OR",
                        ),
                        name="order_item_quantity_xor_weight",
                    ),
                ],
            },
        ),
    ]
