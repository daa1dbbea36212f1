from django.apps import AppConfig


class ArdenConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'arden'
    verbose_name = 'ε-NFA to regular expression'
