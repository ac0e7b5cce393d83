"""
rate_limit.py — Request rate limiting for write and login endpoints
===================================================================
Uses slowapi to enforce per-IP rate limits on vote submission and the
session exchange callback.
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
