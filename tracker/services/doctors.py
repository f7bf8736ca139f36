from typing import Optional
import logging

from django.db import DatabaseError

from tracker.exceptions import PersistenceError, ValidationFailed
from tracker.models import Doctor, Profile
from tracker.services.audit import log_action

logger = logging.getLogger(__name__)


def format_doctor(d: Doctor) -> dict:
    return {
        'id': d.id,
        'name': d.name,
        'specialization': d.specialization,
        'hospital': d.hospital,
        'isVerified': d.is_verified,
    }


def list_doctors(*, q: Optional[str] = None, verified_only: bool = False) -> list[dict]:
    qs = Doctor.objects.all()
    if q:
        qs = qs.filter(name__icontains=q) | qs.filter(hospital__icontains=q)
    if verified_only:
        qs = qs.filter(is_verified=True)
    return [format_doctor(d) for d in qs.order_by('name', 'id')]


def create_doctor(user, *, name: str, specialization: str = '', hospital: str = '') -> Doctor:
    """Doctors added by an administrator are verified; the rest wait in the queue."""
    name = (name or '').strip()
    if not name:
        raise ValidationFailed('Doctor name is required', detail={'name': name})
    verified = getattr(user, 'role', None) == Profile.ROLE_ADMIN
    try:
        doctor = Doctor.objects.create(
            name=name,
            specialization=(specialization or '').strip(),
            hospital=(hospital or '').strip(),
            is_verified=verified,
            created_by=user if getattr(user, 'pk', None) else None,
        )
    except DatabaseError as e:
        logger.warning('doctor insert failed: %s', e)
        raise PersistenceError(str(e)) from e
    log_action(user=user, action='doctor_create', object_type='doctor', object_id=doctor.pk,
               detail={'verified': verified})
    return doctor
