from django.apps import AppConfig


class IndexerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rosca.apps.indexer"
    verbose_name = "Indexer"
