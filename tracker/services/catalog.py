"""
Medicine catalog: a snapshot of the ``medicines`` table kept in sync
with the create, update and delete calls made through it.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

import bleach
from django.db import DatabaseError

from tracker.exceptions import PersistenceError, StaleReference, ValidationFailed
from tracker.models import Medicine
from tracker.services.audit import log_action

logger = logging.getLogger(__name__)

MEDICINE_TYPES = [value for value, _ in Medicine.TYPE_CHOICES]
REQUIRED_FIELDS = ('name', 'category', 'dosage', 'price')
MAX_PRICE = Decimal('99999999.99')
MAX_STOCK = 2147483647


def format_medicine(m: Medicine) -> dict:
    return {
        'id': m.id,
        'name': m.name,
        'type': m.type,
        'category': m.category,
        'dosage': m.dosage,
        'packSize': m.pack_size,
        'price': m.price,
        'stock': m.stock,
        'description': m.description,
    }


def search_medicines(medicines: Iterable[Medicine], term: Optional[str]) -> list[Medicine]:
    """Case-insensitive substring match on name, category or type, in snapshot order."""
    medicines = list(medicines)
    if not term:
        return medicines
    needle = term.lower()
    return [
        m for m in medicines
        if needle in (m.name or '').lower()
        or needle in (m.category or '').lower()
        or needle in (m.type or '').lower()
    ]


def _parse_price(raw) -> Decimal:
    try:
        price = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationFailed('Price must be a positive number', detail={'price': raw})
    if not price.is_finite() or price <= 0:
        raise ValidationFailed('Price must be a positive number', detail={'price': raw})
    price = price.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    if price <= 0 or price > MAX_PRICE:
        raise ValidationFailed('Price must be a positive number', detail={'price': raw})
    return price


def _parse_stock(raw) -> int:
    if raw is None or raw == '':
        return 0
    if isinstance(raw, bool):
        raise ValidationFailed('Stock must be a non-negative number', detail={'stock': raw})
    try:
        stock = int(str(raw).strip())
    except ValueError:
        raise ValidationFailed('Stock must be a non-negative number', detail={'stock': raw})
    if stock < 0:
        raise ValidationFailed('Stock must be a non-negative number', detail={'stock': raw})
    if stock > MAX_STOCK:
        raise ValidationFailed(f'Stock must be at most {MAX_STOCK}', detail={'stock': raw})
    return stock


def clean_medicine_fields(fields: dict) -> dict:
    """Validate a medicine form and return model field values.

    ``packSize`` and ``pack_size`` are both accepted.  A missing pack size
    becomes ``'1'``, a missing type ``'Tablet'`` and a blank description
    is stored as NULL.
    """
    text = {k: str(fields.get(k) if fields.get(k) is not None else '').strip() for k in REQUIRED_FIELDS}
    missing = [k for k in REQUIRED_FIELDS if not text[k]]
    if missing:
        raise ValidationFailed('Please fill in all required fields', detail={'missing': missing})

    mtype = fields.get('type') or 'Tablet'
    if mtype not in MEDICINE_TYPES:
        raise ValidationFailed('Unknown medicine type', detail={'type': mtype, 'allowed': MEDICINE_TYPES})

    pack_size = fields.get('packSize', fields.get('pack_size'))
    pack_size = str(pack_size).strip() if pack_size is not None else ''
    description = bleach.clean(str(fields.get('description') or '').strip(), strip=True)

    return {
        'name': text['name'],
        'type': mtype,
        'category': text['category'],
        'dosage': text['dosage'],
        'pack_size': pack_size or '1',
        'price': _parse_price(text['price']),
        'stock': _parse_stock(fields.get('stock')),
        'description': description or None,
    }


class MedicineCatalog:
    """In-memory catalog snapshot, ordered by name."""

    def __init__(self, medicines: Optional[Iterable[Medicine]] = None):
        self.medicines: list[Medicine] = list(medicines or [])

    @classmethod
    def load(cls) -> 'MedicineCatalog':
        try:
            return cls(Medicine.objects.order_by('name', 'id'))
        except DatabaseError as e:
            logger.warning('medicine fetch failed: %s', e)
            raise PersistenceError(str(e)) from e

    def search(self, term: Optional[str]) -> list[Medicine]:
        return search_medicines(self.medicines, term)

    def create(self, fields: dict, *, user=None) -> Medicine:
        values = clean_medicine_fields(fields)
        try:
            medicine = Medicine.objects.create(**values)
        except DatabaseError as e:
            logger.warning('medicine insert failed: %s', e)
            raise PersistenceError(str(e)) from e
        self.medicines.append(medicine)
        log_action(user=user, action='medicine_create', object_type='medicine', object_id=medicine.pk)
        return medicine

    def update(self, medicine_id: int, fields: dict, *, user=None) -> Medicine:
        values = clean_medicine_fields(fields)
        try:
            changed = Medicine.objects.filter(pk=medicine_id).update(**values)
            medicine = Medicine.objects.filter(pk=medicine_id).first() if changed else None
        except DatabaseError as e:
            logger.warning('medicine %s update failed: %s', medicine_id, e)
            raise PersistenceError(str(e)) from e
        if medicine is None:
            raise StaleReference('Medicine not found', detail={'id': medicine_id})
        self.medicines = [medicine if m.pk == medicine.pk else m for m in self.medicines]
        log_action(user=user, action='medicine_update', object_type='medicine', object_id=medicine.pk)
        return medicine

    def delete(self, medicine_id: int, *, user=None) -> None:
        try:
            deleted, _ = Medicine.objects.filter(pk=medicine_id).delete()
        except DatabaseError as e:
            logger.warning('medicine %s delete failed: %s', medicine_id, e)
            raise PersistenceError(str(e)) from e
        if not deleted:
            raise StaleReference('Medicine not found', detail={'id': medicine_id})
        self.medicines = [m for m in self.medicines if m.pk != medicine_id]
        log_action(user=user, action='medicine_delete', object_type='medicine', object_id=medicine_id)
