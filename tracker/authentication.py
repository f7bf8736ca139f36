"""
Token authentication for the tracker API.

Kept in its own module so that Django REST framework can import the
authentication class during initialization without pulling in any
views (which would cause circular imports).
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Clients that logged in with ``/api/auth/login`` may send either this
    legacy token or the JWT access token (``Bearer``).
    """

    keyword = 'Token'
