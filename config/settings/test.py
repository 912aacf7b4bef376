"""Settings used by the test suite.

In-memory SQLite unless DB_ENGINE is set, eager Celery and an emulated
payment gateway so tests run without external services.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

# DB_ENGINE=django.db.backends.postgresql (plus DB_NAME, DB_USER, ...) runs the
# suite against PostgreSQL, which the concurrency tests need. Without it the
# suite uses in-memory SQLite.
if not get_env('DB_ENGINE'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PAYMENT_GATEWAY_SECRET_KEY = ''
PAYMENT_WEBHOOK_SECRET = 'whsec_test_secret'

RESERVATION_HOLD_TIMEOUT = 15 * 60
AVAILABILITY_MAX_RANGE_DAYS = 365
