"""Django app configuration for Millstock."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class MillstockConfig(AppConfig):
    """Configuration for Millstock app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "millstock"
    verbose_name = _("Warehouse & GL Posting")
