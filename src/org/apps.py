"""App config for the organisation module (agencies, teams, roles, people)."""
from django.apps import AppConfig


class OrgConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "org"
    verbose_name = "Organisation"
