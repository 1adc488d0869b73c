from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'jewelstore.catalog'
    label = 'catalog'

    def ready(self):
        """Import signals when app is ready"""
        import jewelstore.catalog.signals  # noqa: F401
