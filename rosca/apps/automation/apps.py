from django.apps import AppConfig


class AutomationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rosca.apps.automation"
    verbose_name = "Automation"
