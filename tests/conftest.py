"""Test environment: fast bcrypt, fixed JWT secret, in-memory SQLite, billing unconfigured.

Set before any cashflowops module is imported so the cached settings pick these up.
"""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-do-not-use"
os.environ["JWT_EXPIRE_MINUTES"] = "60"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PASSWORD_MIN_LENGTH"] = "8"
os.environ["FREE_TIER_RESULT_LIMIT"] = "3"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["STRIPE_PRICE_WEEKLY"] = ""
os.environ["STRIPE_PRICE_MONTHLY"] = ""
