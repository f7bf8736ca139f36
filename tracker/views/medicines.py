from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from tracker.permissions import IsAdminRole
from tracker.services.catalog import MedicineCatalog, format_medicine


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_medicines(request):
    """Full catalog ordered by name, filtered by ``q`` on name, category or type."""
    catalog = MedicineCatalog.load()
    items = catalog.search(request.query_params.get('q'))
    return Response({'ok': True, 'total': len(items), 'data': [format_medicine(m) for m in items]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def create_medicine(request):
    catalog = MedicineCatalog.load()
    medicine = catalog.create(request.data, user=request.user)
    return Response({'ok': True, 'data': format_medicine(medicine)}, status=201)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def update_medicine(request, medicine_id: int):
    catalog = MedicineCatalog.load()
    medicine = catalog.update(medicine_id, request.data, user=request.user)
    return Response({'ok': True, 'data': format_medicine(medicine)})


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def delete_medicine(request, medicine_id: int):
    catalog = MedicineCatalog.load()
    catalog.delete(medicine_id, user=request.user)
    return Response({'ok': True})
