from django.apps import AppConfig


class EmbroideryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront.embroidery'
