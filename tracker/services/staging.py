"""
Visit logging: a draft visit plus the medicine order lines staged for it.

Order lines are kept in memory and snapshot the medicine's name, pack
size and unit price at the moment they are added.  Nothing touches the
database until ``submit_visit`` writes the visit row and then its
order rows, in that order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

import bleach
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from tracker.exceptions import PersistenceError, StaleReference, SubmissionBlocked, ValidationFailed
from tracker.models import Visit, VisitOrder
from tracker.services.audit import log_action

logger = logging.getLogger(__name__)

# Largest value the integer columns accept on every supported backend.
MAX_QUANTITY = 2147483647


@dataclass(frozen=True)
class StagedOrder:
    medicine_id: int
    name: str
    pack_size: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def as_dict(self) -> dict:
        return {
            'medicineId': self.medicine_id,
            'medicineName': self.name,
            'packSize': self.pack_size,
            'price': self.unit_price,
            'quantity': self.quantity,
            'total': self.line_total,
        }


def parse_quantity(value) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationFailed('Quantity must be at least 1', detail={'quantity': value})
    try:
        qty = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationFailed('Quantity must be a whole number', detail={'quantity': value})
    if not qty.is_finite() or qty != qty.to_integral_value():
        raise ValidationFailed('Quantity must be a whole number', detail={'quantity': value})
    if qty < 1:
        raise ValidationFailed('Quantity must be at least 1', detail={'quantity': value})
    if qty > MAX_QUANTITY:
        raise ValidationFailed(f'Quantity must be at most {MAX_QUANTITY}', detail={'quantity': value})
    return int(qty)


class OrderStaging:
    """Ordered list of order lines over a fetched medicine snapshot.

    ``medicines`` is the catalog as it was fetched for the form; lines
    can only reference medicines present in it.
    """

    def __init__(self, medicines: Iterable):
        self._catalog = {str(m.id): m for m in medicines}
        self._lines: list[StagedOrder] = []

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[StagedOrder]:
        return list(self._lines)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal('0'))

    def add_order(self, medicine_id, quantity) -> StagedOrder:
        qty = parse_quantity(quantity)
        medicine = None
        if medicine_id not in (None, ''):
            medicine = self._catalog.get(str(medicine_id).strip())
        if medicine is None:
            raise StaleReference('Selected medicine not found.', detail={'medicineId': medicine_id})
        line = StagedOrder(
            medicine_id=medicine.id,
            name=medicine.name,
            pack_size=medicine.pack_size,
            unit_price=Decimal(medicine.price),
            quantity=qty,
        )
        self._lines.append(line)
        return line

    def remove_order(self, index: int) -> StagedOrder:
        return self._lines.pop(index)

    def clear(self) -> None:
        self._lines = []

    def as_dict(self) -> dict:
        return {'orders': [line.as_dict() for line in self._lines], 'total': self.total}


@dataclass
class VisitDraft:
    """Visit metadata as entered on the form.

    Picking a doctor copies that doctor's hospital into ``hospital``;
    the field stays editable and is not re-synced afterwards.
    """
    doctor_id: Optional[int] = None
    hospital: str = ''
    visit_date: Optional[date] = None
    notes: str = ''

    def select_doctor(self, doctor_id, doctors: Iterable) -> None:
        self.doctor_id = doctor_id
        doctor = next((d for d in doctors if str(d.id) == str(doctor_id)), None)
        if doctor is not None and doctor.hospital:
            self.hospital = doctor.hospital

    def set_hospital(self, value: str) -> None:
        self.hospital = value

    def validate(self, today: Optional[date] = None) -> None:
        today = today or timezone.localdate()
        errors = {}
        if not self.doctor_id:
            errors['doctorId'] = 'Doctor is required'
        if not (self.hospital or '').strip():
            errors['hospital'] = 'Hospital is required'
        if self.visit_date is None:
            errors['date'] = 'Visit date is required'
        elif self.visit_date > today:
            errors['date'] = 'Visit date cannot be in the future'
        if errors:
            raise ValidationFailed('Invalid visit details', detail=errors)


def _write_visit(mr_id, draft: VisitDraft, lines: list[StagedOrder], *, atomic: bool) -> Visit:
    try:
        visit = Visit.objects.create(
            mr_id=mr_id,
            doctor_id=draft.doctor_id,
            date=draft.visit_date,
            notes=bleach.clean((draft.notes or '').strip(), strip=True),
            status=Visit.STATUS_PENDING,
        )
    except DatabaseError as e:
        logger.warning('visit insert failed for mr=%s: %s', mr_id, e)
        raise PersistenceError(f'Failed to log visit: {e}') from e

    try:
        VisitOrder.objects.bulk_create([
            VisitOrder(visit=visit, medicine_id=line.medicine_id, quantity=line.quantity, price=line.unit_price)
            for line in lines
        ])
    except DatabaseError as e:
        if atomic:
            logger.error('order insert failed for visit=%s; visit rolled back: %s', visit.pk, e)
            raise PersistenceError(f'Failed to log visit: {e}') from e
        logger.error('order insert failed for visit=%s; visit row left in place: %s', visit.pk, e)
        raise PersistenceError(f'Failed to log visit: {e}', detail={'visitId': visit.pk}) from e
    return visit


def submit_visit(user, draft: VisitDraft, staging: OrderStaging, *, atomic: Optional[bool] = None) -> Visit:
    """Persist the draft as a pending visit followed by its staged orders.

    Rejected before any write when the representative is inactive, when
    nothing is staged or when the user cannot be resolved.  Without
    ``atomic`` a failure while inserting orders keeps the visit row that
    was already written; the error is reported and nothing is undone.
    """
    if user is not None and getattr(user, 'is_inactive_mr', False):
        raise SubmissionBlocked('Inactive users cannot log new visits.')
    if not len(staging):
        raise ValidationFailed('Please add at least one order')
    mr_id = getattr(user, 'pk', None)
    if not mr_id:
        raise SubmissionBlocked('User ID not found. Please log in again.', code='unresolved_user')
    draft.validate()

    if atomic is None:
        atomic = settings.TRACKER_ATOMIC_VISIT_SUBMIT
    lines = staging.lines
    if atomic:
        with transaction.atomic():
            visit = _write_visit(mr_id, draft, lines, atomic=True)
    else:
        visit = _write_visit(mr_id, draft, lines, atomic=False)

    logger.info('visit %s logged by mr=%s with %d order lines', visit.pk, mr_id, len(lines))
    log_action(user=user, action='visit_submit', object_type='visit', object_id=visit.pk,
               detail={'orders': len(lines), 'total': str(staging.total)})
    staging.clear()
    return visit
