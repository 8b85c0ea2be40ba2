"""
URL routing for the kitchen display.
"""

from django.urls import path

from apps.web.kitchen import views

app_name = "kitchen"

urlpatterns = [
    path("<slug:slug>/pin", views.pin_login, name="pin_login"),
    path("logout", views.logout, name="logout"),
    path("orders", views.kitchen_orders, name="orders"),
    path("orders/<uuid:order_id>/status", views.kitchen_update_status, name="order_status"),
    path("orders/<uuid:order_id>/snooze", views.kitchen_snooze, name="order_snooze"),
]
