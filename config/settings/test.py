# config/settings/test.py

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

SECRET_KEY = 'taskboard-test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'taskboard-test-cache',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer'
    }
}

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# No log output during tests
LOGGING['handlers'] = {}
LOGGING['loggers'] = {}
LOGGING['root'] = {'handlers': [], 'level': 'WARNING'}

TASKBOARD_WEBHOOK_URL = ''

DISCORD_CLIENT_ID = ''
DISCORD_CLIENT_SECRET = ''
DISCORD_REDIRECT_URI = ''
