"""
URL routing for payment endpoints.
"""

from django.urls import path

from apps.web.payments import views, webhooks

app_name = "payments"

urlpatterns = [
    path(
        "webhooks/mercadopago",
        webhooks.mercadopago_webhook,
        name="mercadopago-webhook",
    ),
    path(
        "webhooks/subscription",
        webhooks.subscription_webhook,
        name="subscription-webhook",
    ),
    path(
        "subscriptions/checkout",
        views.subscription_checkout,
        name="subscription-checkout",
    ),
    path(
        "mercadopago/connect",
        views.mercadopago_connect,
        name="mercadopago-connect",
    ),
    path(
        "mercadopago/oauth/callback",
        views.mercadopago_oauth_callback,
        name="mercadopago-oauth-callback",
    ),
]
