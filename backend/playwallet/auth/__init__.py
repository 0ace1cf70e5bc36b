"""Authentication and authorization utilities."""

from playwallet.auth.jwt import create_access_token, create_account_token, decode_token
from playwallet.auth.dependencies import get_current_account_id, get_current_admin

__all__ = [
    "create_access_token",
    "create_account_token",
    "decode_token",
    "get_current_account_id",
    "get_current_admin",
]
