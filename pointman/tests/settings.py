"""
Django settings for Pointman tests.
"""

SECRET_KEY = "test-secret-key-for-pointman-tests"

DEBUG = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.admin",
    "pointman",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

ROOT_URLCONF = "pointman.tests.urls"

USE_TZ = True
TIME_ZONE = "Asia/Dubai"

POINTMAN = {
    "EARN_RATE_DIVISOR": 10,
    "WEBHOOK_SECRET": "",
}
