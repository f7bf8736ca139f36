"""
Dashboard endpoints.

Both dashboards are recomputed from the database on every request.  The
representative dashboard covers the caller's own visits; the admin
dashboard is restricted to administrators.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdminRole, IsMRRole
from ..services.admin_dashboard import build_admin_dashboard
from ..services.mr_dashboard import build_mr_dashboard


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsMRRole])
def mr_dashboard(request):
    """Monthly figures, recent visits and trend for the current user."""
    return Response({'ok': True, **build_mr_dashboard(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Global counts, trend, leaderboard and the pending approval queue."""
    return Response({'ok': True, **build_admin_dashboard()})
