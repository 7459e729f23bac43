"""Root URL configuration for the testimony portal project."""

from django.urls import include, path

urlpatterns = [
    path('', include('portal.urls')),
]
