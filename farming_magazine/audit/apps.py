import importlib

from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "farming_magazine.audit"

    def ready(self) -> None:  # pragma: no cover
        importlib.import_module("farming_magazine.audit.signals")
        return super().ready()
