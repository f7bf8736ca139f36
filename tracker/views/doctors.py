from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from tracker.serializers.doctors import DoctorCreateSerializer
from tracker.services.doctors import create_doctor, format_doctor, list_doctors


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors_list(request):
    """Doctors for the visit form.

    Query params:
      - q: optional search (name/hospital contains)
      - verifiedOnly: 1|0
    """
    q = (request.query_params.get('q') or '').strip() or None
    verified_only = (request.query_params.get('verifiedOnly') or '0') in ['1', 'true', 'True']
    data = list_doctors(q=q, verified_only=verified_only)
    return Response({'ok': True, 'total': len(data), 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def doctor_create(request):
    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = create_doctor(request.user, **s.validated_data)
    return Response({'ok': True, 'data': format_doctor(doctor)}, status=201)
