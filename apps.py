"""Django app configuration for Slabman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class SlabmanConfig(AppConfig):
    """Configuration for Slabman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "slabman"
    verbose_name = _("Estoque de Chapas")
