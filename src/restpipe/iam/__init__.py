"""
IAM (Identity and Access Management) module.

Authentication and authorization hooks for the before-query phase, and the
access token helpers they rely on.
"""

from __future__ import annotations

from .hooks import (
    authenticate,
    require_active,
    require_owner_or_type,
    require_self_or_type,
    require_type,
    set_field_from_principal,
)
from .tokens import build_access_token, decode_access_token, extract_bearer_token

__all__ = [
    "authenticate",
    "require_type",
    "require_self_or_type",
    "require_owner_or_type",
    "set_field_from_principal",
    "require_active",
    "build_access_token",
    "decode_access_token",
    "extract_bearer_token",
]
