"""
Django settings for the Millstock test suite.
"""

SECRET_KEY = 'millstock-tests'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'millstock',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

MILLSTOCK = {
    'CATALOG_BACKEND': 'millstock.adapters.catalog.ModelCatalog',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {'class': 'logging.StreamHandler'},
    },
    'loggers': {
        'millstock': {'handlers': ['console'], 'level': 'WARNING'},
    },
}
