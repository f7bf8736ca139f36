"""
Pending approval records and the approve/reject dispatch.

The admin queue mixes several kinds of rows.  Each queue entry is one of
the frozen dataclasses below and carries its ``kind``; ``decide`` routes a
decision to the matching table on that discriminator.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import ClassVar, Optional, Union

from django.db import DatabaseError

from tracker.exceptions import PersistenceError, StaleReference, ValidationFailed
from tracker.models import Doctor, MedicalVisit, Profile, Report, Visit
from tracker.services.audit import log_action

logger = logging.getLogger(__name__)


class PendingKind(str, Enum):
    VISIT = 'Visit'
    USER = 'User'
    DOCTOR = 'Doctor'
    MEDICAL_VISIT = 'MedicalVisit'
    REPORT = 'Report'

    @classmethod
    def parse(cls, value) -> 'PendingKind':
        try:
            return cls(value)
        except ValueError:
            raise ValidationFailed(f'Unknown approval kind: {value}', detail={'kind': value})


def _iso(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, date) else value


@dataclass(frozen=True)
class PendingVisit:
    id: int
    name: str
    date: date
    doctor_name: Optional[str]
    kind: ClassVar[PendingKind] = PendingKind.VISIT

    def as_dict(self) -> dict:
        return {'id': self.id, 'kind': self.kind.value, 'name': self.name,
                'date': _iso(self.date), 'doctorName': self.doctor_name}


@dataclass(frozen=True)
class PendingUser:
    id: int
    name: str
    email: str
    kind: ClassVar[PendingKind] = PendingKind.USER

    def as_dict(self) -> dict:
        return {'id': self.id, 'kind': self.kind.value, 'name': self.name, 'email': self.email}


@dataclass(frozen=True)
class PendingDoctor:
    id: int
    name: str
    kind: ClassVar[PendingKind] = PendingKind.DOCTOR

    def as_dict(self) -> dict:
        return {'id': self.id, 'kind': self.kind.value, 'name': self.name}


@dataclass(frozen=True)
class PendingMedicalVisit:
    id: int
    name: str
    date: date
    doctor_name: str = 'No doctors assigned'
    kind: ClassVar[PendingKind] = PendingKind.MEDICAL_VISIT

    def as_dict(self) -> dict:
        return {'id': self.id, 'kind': self.kind.value, 'name': self.name,
                'date': _iso(self.date), 'doctorName': self.doctor_name}


PendingApproval = Union[PendingVisit, PendingUser, PendingDoctor, PendingMedicalVisit]


def decide(kind, pk: int, approved: bool, *, user=None) -> PendingKind:
    kind = PendingKind.parse(kind)
    verdict = 'approved' if approved else 'rejected'
    try:
        if kind is PendingKind.VISIT:
            changed = Visit.objects.filter(pk=pk).update(status=verdict)
        elif kind is PendingKind.MEDICAL_VISIT:
            changed = MedicalVisit.objects.filter(pk=pk).update(status=verdict)
        elif kind is PendingKind.REPORT:
            changed = Report.objects.filter(pk=pk).update(status=verdict)
        elif kind is PendingKind.USER:
            status = Profile.STATUS_ACTIVE if approved else Profile.STATUS_INACTIVE
            changed = Profile.objects.filter(pk=pk).update(status=status)
        elif kind is PendingKind.DOCTOR:
            if approved:
                changed = Doctor.objects.filter(pk=pk).update(is_verified=True)
            else:
                # Rejected doctors are removed outright.
                changed, _ = Doctor.objects.filter(pk=pk).delete()
        else:
            raise ValidationFailed(f'Unknown approval kind: {kind}', detail={'kind': str(kind)})
    except DatabaseError as e:
        logger.warning('%s %s %s failed: %s', kind.value, pk, verdict, e)
        raise PersistenceError(str(e)) from e

    if not changed:
        raise StaleReference(f'{kind.value} {pk} not found', detail={'id': pk, 'kind': kind.value})
    logger.info('%s %s %s by user=%s', kind.value, pk, verdict, getattr(user, 'pk', None))
    log_action(user=user, action=f'{kind.value.lower()}_{"approve" if approved else "reject"}',
               object_type=kind.value, object_id=pk)
    return kind


def approve(kind, pk: int, *, user=None) -> PendingKind:
    return decide(kind, pk, True, user=user)


def reject(kind, pk: int, *, user=None) -> PendingKind:
    return decide(kind, pk, False, user=user)
