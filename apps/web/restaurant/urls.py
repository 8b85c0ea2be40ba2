"""
URL routing for the public order API.

Endpoints are public (no auth required) and CORS-enabled.
"""

from django.urls import path

from apps.web.restaurant import views

app_name = "restaurant"

urlpatterns = [
    path("orders", views.create_order, name="order_create"),
    path("orders/<uuid:order_id>", views.order_detail, name="order_detail"),
]
