# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Hardening goals:
- DEBUG off (forced)
- SECRET_KEY must be set (fail-closed)
- Hosts must be explicit
- Discount-limit policy must be a sane percentage (fail-closed)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import SALES_DISCOUNT_LIMIT_PERCENT, env

# ----------------------------
# DEBUG (force off)
# ----------------------------
DEBUG = False

# ----------------------------
# SECRET KEY (fail closed)
# ----------------------------
_secret_key = (env("SECRET_KEY", default="") or "").strip()
if not _secret_key or _secret_key == "dev-insecure-change-me":
    raise ImproperlyConfigured(
        "SECRET_KEY must be set to a strong value in production."
    )
SECRET_KEY = _secret_key

# ----------------------------
# Hosts
# ----------------------------
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Discount policy (0..100)
# ----------------------------
if not (Decimal("0") <= SALES_DISCOUNT_LIMIT_PERCENT <= Decimal("100")):
    raise ImproperlyConfigured(
        "DISCOUNT_LIMIT_PERCENT must be between 0 and 100 in production."
    )
