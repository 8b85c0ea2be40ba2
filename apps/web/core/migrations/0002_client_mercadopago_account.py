from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="client",
            name="mercadopago_refresh_token",
            field=models.CharField(blank=True, max_length=255),
        ),
        migrations.AddField(
            model_name="client",
            name="mercadopago_user_id",
            field=models.CharField(blank=True, help_text="Seller account id on MercadoPago", max_length=50),
        ),
        migrations.AddField(
            model_name="client",
            name="mercadopago_public_key",
            field=models.CharField(blank=True, max_length=255),
        ),
        migrations.AddField(
            model_name="client",
            name="mercadopago_connected_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
