from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

GOOGLE_CLIENT_ID = 'test-client-id'
GOOGLE_CLIENT_SECRET = 'test-client-secret'
GOOGLE_REDIRECT_URI = 'https://app.example.com/google/callback'

SHOPIFY_SHOP_DOMAIN = 'test-shop.myshopify.com'
SHOPIFY_ADMIN_TOKEN = 'shpat_test_token'
