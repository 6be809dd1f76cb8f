from django.apps import AppConfig
from django.core.signals import setting_changed


class ReviewsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reviews"
    verbose_name = "Reviews"

    def ready(self):
        # Fail fast on a broken stage model or template table.
        from .domain.stages import validate_registry
        from .domain.templates import validate_templates

        validate_registry()
        validate_templates()

        setting_changed.connect(_reset_coordinator_on_change)


def _reset_coordinator_on_change(*, setting, **kwargs):
    if setting == "REVIEW_WORKFLOW":
        from .services import reset_coordinator

        reset_coordinator()
