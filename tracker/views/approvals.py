from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from tracker.permissions import IsAdminRole
from tracker.serializers.approvals import DecisionSerializer
from tracker.services import approvals
from tracker.services.admin_dashboard import build_admin_dashboard


def _decide(request, approved: bool):
    s = DecisionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if approved:
        approvals.approve(vd['kind'], vd['id'], user=request.user)
    else:
        approvals.reject(vd['kind'], vd['id'], user=request.user)
    # The queue and every figure are rebuilt after each decision.
    return Response({'ok': True, **build_admin_dashboard()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def approve_item(request):
    return _decide(request, True)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def reject_item(request):
    return _decide(request, False)
