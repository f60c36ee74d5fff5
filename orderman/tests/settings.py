"""
Django settings for running the Orderman test suite.
"""

SECRET_KEY = 'orderman-tests'
DEBUG = False
USE_TZ = True
TIME_ZONE = 'UTC'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.admin',
    'orderman',
]

MIDDLEWARE = [
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

ORDERMAN = {
    'COMPOSITION_EXPANDER': 'orderman.adapters.catalog.CatalogCompositionExpander',
    'FINANCIAL_BACKEND': 'orderman.tests.backends.RecordingFinancialBackend',
    'PROCESS_BACKEND': 'orderman.tests.backends.RecordingProcessBackend',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {'class': 'logging.StreamHandler'},
    },
    'loggers': {
        'orderman': {'handlers': ['console'], 'level': 'WARNING'},
    },
}
