"""
URL configuration for Optima.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("dashboard/", include("apps.web.dashboard.urls")),
    path("kitchen/", include("apps.web.kitchen.urls")),
    path("payments/", include("apps.web.payments.urls")),
    # Public API endpoints
    path("api/clients/<slug:slug>/", include("apps.web.restaurant.urls")),
]
