from django.apps import AppConfig


class RaktsetuConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "raktsetu"
    verbose_name = "Raktsetu"
