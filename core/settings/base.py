from pathlib import Path

from environs import Env

env = Env()
env.read_env(recurse=False)

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = env.str('SECRET_KEY', 'django-insecure-sheetsync-local-development-key')

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', [])

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'sheetsync',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'loggers': {
        'sheetsync': {
            'handlers': ['console'],
            'level': env.str('SHEETSYNC_LOG_LEVEL', 'INFO'),
        },
    },
}

# Celery
CELERY_BROKER_URL = env.str('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = CELERY_BROKER_URL
CELERY_BEAT_SCHEDULE = {
    'sync-catalogs-every-hour': {
        'task': 'sheetsync.tasks.sync_all_connected_shops',
        'schedule': env.int('SHEETSYNC_SCHEDULE_SECONDS', 3600),
    },
}

# Google OAuth
GOOGLE_CLIENT_ID = env.str('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = env.str('GOOGLE_CLIENT_SECRET', '')
GOOGLE_REDIRECT_URI = env.str('GOOGLE_REDIRECT_URI', 'http://localhost:8000/google/callback')

# Shopify Admin API
SHOPIFY_SHOP_DOMAIN = env.str('SHOPIFY_SHOP_DOMAIN', '')
SHOPIFY_ADMIN_TOKEN = env.str('SHOPIFY_ADMIN_TOKEN', '')
SHOPIFY_API_VERSION = env.str('SHOPIFY_API_VERSION', '2025-01')

# Catalog sync
SHEETSYNC_PAGE_SIZE = env.int('SHEETSYNC_PAGE_SIZE', 100)
SHEETSYNC_MODE = env.str('SHEETSYNC_MODE', 'incremental')  # or "overwrite"
SHEETSYNC_SPREADSHEET_TITLE = env.str('SHEETSYNC_SPREADSHEET_TITLE', 'Shopify Products')
SHEETSYNC_TOKEN_EXPIRY_LEEWAY = env.int('SHEETSYNC_TOKEN_EXPIRY_LEEWAY', 60)
SHEETSYNC_LEASE_SECONDS = env.int('SHEETSYNC_LEASE_SECONDS', 900)
SHEETSYNC_RUN_TIMEOUT = env.int('SHEETSYNC_RUN_TIMEOUT', 600)

# Sync providers: swap via env or override in prod.py/test.py
SYNC_SOURCE_CLASS = env.str('SYNC_SOURCE_CLASS', 'sheetsync.sources.shopify_source.ShopifyGraphQLSource')
