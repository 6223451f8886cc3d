from django.apps import AppConfig


class SheetsyncConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sheetsync'
    verbose_name = 'Catalog to spreadsheet sync'
