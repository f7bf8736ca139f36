"""
Visit logging endpoints for medical representatives.

Order lines are staged against a fresh medicine snapshot on every
request; ``preview`` returns the staged lines and running total without
writing anything, ``submit`` persists the visit and its lines.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from tracker.models import Medicine
from tracker.permissions import IsMRRole
from tracker.serializers.visits import VisitPreviewSerializer, VisitSubmitSerializer
from tracker.services.mr_dashboard import fetch_mr_visits
from tracker.services.staging import OrderStaging, VisitDraft, submit_visit


def _stage_orders(lines) -> OrderStaging:
    staging = OrderStaging(Medicine.objects.all())
    for line in lines:
        staging.add_order(line['medicineId'], line['quantity'])
    return staging


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsMRRole])
def preview_visit(request):
    s = VisitPreviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    staging = _stage_orders(s.validated_data['orders'])
    return Response({'ok': True, **staging.as_dict()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsMRRole])
def submit_visit_view(request):
    """Log a visit with its order lines.

    Body: ``doctorId``, ``date``, optional ``hospital`` (defaults to the
    doctor's hospital), optional ``notes`` and ``orders`` as a list of
    ``{medicineId, quantity}``.  The visit is always stored as pending.
    """
    s = VisitSubmitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    draft = VisitDraft(visit_date=vd['date'], notes=vd.get('notes') or '')
    doctor = vd['doctorId']
    draft.select_doctor(doctor.id, [doctor])
    if vd.get('hospital'):
        draft.set_hospital(vd['hospital'])

    staging = _stage_orders(vd['orders'])
    total = staging.total
    visit = submit_visit(request.user, draft, staging)
    return Response({
        'ok': True,
        'visit': {
            'id': visit.id,
            'doctorId': visit.doctor_id,
            'hospital': draft.hospital,
            'date': visit.date.isoformat(),
            'status': visit.status,
        },
        'total': total,
    }, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsMRRole])
def my_visits(request):
    data = []
    for v in fetch_mr_visits(request.user):
        data.append({
            'id': v['id'],
            'date': v['date'].isoformat(),
            'status': v['status'],
            'notes': v['notes'],
            'doctor': v['doctor'],
            'orders': [
                {'medicineId': o['medicine_id'], 'quantity': o['quantity'], 'price': o['price']}
                for o in v['visit_orders']
            ],
        })
    return Response({'ok': True, 'data': data})
