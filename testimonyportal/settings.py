"""Django settings for the testimony portal project.

The portal is a thin front end for the remote testimonies API: it renders
the public submission wizard and the moderation back office, and keeps no
relational database of its own.  Sessions are stored on disk, uploads made
during the wizard are parked under ``PENDING_UPLOAD_ROOT`` until they are
forwarded to the API, and all API locations and limits are read from the
environment.
"""

from __future__ import annotations

import os
import tempfile
import warnings
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Read KEY=VALUE pairs from a local .env file; real environment variables win.
def load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for raw in path.read_text(encoding="utf-8").splitlines():
        entry = raw.strip()
        if entry.startswith("export "):
            entry = entry[len("export "):].lstrip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue

        name, _, setting = entry.partition("=")
        setting = setting.strip()
        if len(setting) >= 2 and setting[0] == setting[-1] and setting[0] in "'\"":
            setting = setting[1:-1]
        os.environ.setdefault(name.strip(), setting)


# Use .env when present. A fresh checkout falls back to .env.sample, whose
# values are placeholders only.
dotenv_file = BASE_DIR / ".env"
dotenv_sample = BASE_DIR / ".env.sample"

if dotenv_file.exists():
    load_env_file(dotenv_file)
elif dotenv_sample.exists():
    warnings.warn(
        "No .env file found, loading placeholder values from .env.sample.",
        RuntimeWarning,
        stacklevel=2,
    )
    load_env_file(dotenv_sample)


def env_required(name: str) -> str:
    """Return the environment variable ``name``; it must be set and non-empty."""

    value = os.getenv(name)
    if not value:
        raise ImproperlyConfigured(f"{name} is not set; copy it from .env.sample into .env.")
    return value


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ImproperlyConfigured(f"{name} must be an integer, got {value!r}.")


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env_required("DJANGO_SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
# Default to disabled unless explicitly enabled via DJANGO_DEBUG.
DEBUG = os.getenv("DJANGO_DEBUG", "False").lower() in ("true", "1", "yes")

ALLOWED_HOSTS: list[str] = [
    host.strip() for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host.strip()
]


# Application definition
INSTALLED_APPS = [
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'portal',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'portal.auth.ApiSessionMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'testimonyportal.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [os.path.join(BASE_DIR, 'portal', 'templates')],
        'APP_DIRS': True,
        'OPTIONS': {
            'builtins': [
                'django.templatetags.static',
            ],
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
                'portal.context_processors.admin_navigation',
            ],
        },
    },
]

WSGI_APPLICATION = 'testimonyportal.wsgi.application'


# No local database: every record lives in the testimonies API.
DATABASES: dict = {}

SESSION_ENGINE = 'django.contrib.sessions.backends.file'
SESSION_FILE_PATH = os.getenv('SESSION_FILE_PATH') or None
SESSION_COOKIE_AGE = 60 * 60 * 24 * 7

MESSAGE_STORAGE = 'django.contrib.messages.storage.fallback.FallbackStorage'


# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/4.2/howto/static-files/
STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

# Largest upload kept in memory before Django spools it to a temporary file.
FILE_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024


# ---------------------------------------------------------------------------
# Testimonies API
# ---------------------------------------------------------------------------

# Base URL of the testimonies API.  Media paths returned by the API are
# prefixed with ``TESTIMONY_API_PUBLIC_URL``, which defaults to the same host
# but can point at a public hostname when the portal talks to the API over
# an internal network.
TESTIMONY_API_BASE_URL = os.getenv('TESTIMONY_API_BASE_URL', 'http://localhost:3001').rstrip('/')
TESTIMONY_API_PUBLIC_URL = os.getenv('TESTIMONY_API_PUBLIC_URL', TESTIMONY_API_BASE_URL).rstrip('/')

# Request timeouts in seconds.  Submissions carrying a media file get the
# longer upload timeout.
TESTIMONY_API_TIMEOUT = env_int('TESTIMONY_API_TIMEOUT', 30)
TESTIMONY_UPLOAD_TIMEOUT = env_int('TESTIMONY_UPLOAD_TIMEOUT', 300)

# Size caps applied by the wizard before a file is forwarded to the API.
TESTIMONY_MAX_VIDEO_MB = env_int('TESTIMONY_MAX_VIDEO_MB', 100)
TESTIMONY_MAX_AUDIO_MB = env_int('TESTIMONY_MAX_AUDIO_MB', 20)

# Where wizard uploads wait between the testimony step and the final submit.
PENDING_UPLOAD_ROOT = Path(
    os.getenv('PENDING_UPLOAD_ROOT', os.path.join(tempfile.gettempdir(), 'testimonyportal', 'pending'))
)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_DIR = Path(os.getenv('LOG_DIR', os.path.join(BASE_DIR, 'logs')))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s | %(levelname)s | %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(LOG_DIR, 'portal.log'),
            'maxBytes': 8_000_000,
            'backupCount': 4,
            'encoding': 'utf-8',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'portal': {
            'handlers': ['console', 'file'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
    },
}
