"""
Dashboard URL routes.
"""

from django.urls import path

from . import views

app_name = "dashboard"

urlpatterns = [
    path("orders/", views.orders_list, name="orders"),
    path("orders/<uuid:order_id>/status", views.order_update_status, name="order_status"),
    path("orders/<uuid:order_id>/cancel", views.order_cancel, name="order_cancel"),
    path("orders/<uuid:order_id>/snooze", views.order_snooze, name="order_snooze"),
    path("kitchen-pin", views.kitchen_pin_settings, name="kitchen_pin"),
]
