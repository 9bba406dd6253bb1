from .base import *

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "localhost"]

SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# browsable API in dev
REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"] = (
    "rest_framework.renderers.JSONRenderer",
    "rest_framework.renderers.BrowsableAPIRenderer",
)

LOGGING["handlers"]["console"]["formatter"] = "simple"
LOGGING["loggers"]["creditflow"]["level"] = "DEBUG"
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
