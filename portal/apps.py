"""Application configuration for the portal app."""

from __future__ import annotations

from django.apps import AppConfig


class PortalConfig(AppConfig):
    """Custom AppConfig for the portal application."""

    name = 'portal'
    verbose_name = 'Testimony portal'
