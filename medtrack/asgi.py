"""
ASGI config for the medtrack project.

HTTP only: every screen re-fetches after a mutation, so there are no
WebSocket routes.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "medtrack.settings")

application = get_asgi_application()
