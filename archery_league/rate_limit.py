"""
archery_league/rate_limit.py
Rate limiter shared by the app and the write endpoints.
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

RATE_LIMIT_WRITES = os.getenv("RATE_LIMIT_WRITES", "60/minute")

limiter = Limiter(key_func=get_remote_address)
