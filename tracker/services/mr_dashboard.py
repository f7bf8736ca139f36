"""
Per-representative dashboard: current month figures, the most recent
visits and a month-by-month trend, all derived from one fetch of the
representative's visits with their doctor and order lines.
"""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.utils import timezone

from tracker.models import Visit

RECENT_VISITS_LIMIT = 5
TWO_PLACES = Decimal('0.01')


def visit_record(v: Visit) -> dict:
    doctor = None
    if v.doctor_id:
        doctor = {'name': v.doctor.name, 'hospital': v.doctor.hospital}
    return {
        'id': v.id,
        'date': v.date,
        'status': v.status,
        'notes': v.notes,
        'doctor': doctor,
        'visit_orders': [
            {'medicine_id': o.medicine_id, 'quantity': o.quantity, 'price': o.price}
            for o in v.visit_orders.all()
        ],
    }


def fetch_mr_visits(mr) -> list[dict]:
    """All visits of ``mr``, newest first."""
    qs = (Visit.objects.filter(mr=mr)
          .select_related('doctor')
          .prefetch_related('visit_orders')
          .order_by('-date', '-id'))
    return [visit_record(v) for v in qs]


def _as_date(value) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def order_totals(orders: Iterable[dict]) -> tuple[int, Decimal]:
    """Summed quantity and summed quantity * unit price of a visit's lines."""
    count = 0
    value = Decimal('0')
    for o in orders or []:
        count += o['quantity']
        value += o['quantity'] * Decimal(o['price'])
    return count, value


def month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime('%b %Y')


def summarize_mr_visits(visits: Iterable[dict], today: Optional[date] = None) -> dict:
    """Fold the fetched visits into stats, recent visits and trend.

    ``visits`` must already be ordered newest first; the recent list keeps
    that order.  Trend buckets are keyed by (year, month) and come out in
    chronological order.
    """
    today = today or timezone.localdate()
    current = (today.year, today.month)
    monthly_visits = 0
    monthly_value = Decimal('0')
    doctors = set()
    recent = []
    buckets: dict[tuple[int, int], dict] = {}

    for visit in visits:
        visit_date = _as_date(visit['date'])
        key = (visit_date.year, visit_date.month)
        count, value = order_totals(visit.get('visit_orders'))
        doctor = visit.get('doctor') or {}

        if key == current:
            monthly_visits += 1
            monthly_value += value
        if doctor.get('name'):
            doctors.add(doctor['name'])
        if len(recent) < RECENT_VISITS_LIMIT:
            recent.append({
                'id': visit['id'],
                'doctorName': doctor.get('name') or 'N/A',
                'hospital': doctor.get('hospital') or 'N/A',
                'date': visit_date.isoformat(),
                'orderCount': count,
                'orderValue': value,
            })
        bucket = buckets.setdefault(key, {'visits': 0, 'orders': Decimal('0')})
        bucket['visits'] += 1
        bucket['orders'] += value

    trend = [{
        'month': f'{year:04d}-{month:02d}',
        'label': month_label(year, month),
        'visits': buckets[(year, month)]['visits'],
        'orders': buckets[(year, month)]['orders'].quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
    } for year, month in sorted(buckets)]

    return {
        'stats': {
            'monthlyVisits': monthly_visits,
            'monthlyOrderValue': monthly_value,
            'uniqueDoctors': len(doctors),
        },
        'recentVisits': recent,
        'trend': trend,
    }


def build_mr_dashboard(mr, today: Optional[date] = None) -> dict:
    return summarize_mr_visits(fetch_mr_visits(mr), today=today)
