"""
Admin dashboard aggregation.

Every collection is fetched flat and independently, then joined and
aggregated here in plain Python.  The result is rebuilt from scratch on
each request and after each approval decision; nothing is cached.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from tracker.exceptions import PersistenceError
from tracker.models import Doctor, MedicalVisit, Profile, Report, Visit, VisitOrder
from tracker.services.approvals import (
    PendingApproval,
    PendingDoctor,
    PendingMedicalVisit,
    PendingUser,
    PendingVisit,
)
from tracker.services.mr_dashboard import month_label

logger = logging.getLogger(__name__)


def total_order_value(orders: Iterable[dict]) -> Decimal:
    return sum((o['quantity'] * Decimal(o['price']) for o in orders), Decimal('0'))


def months_back(today: date, months: int) -> date:
    """``today`` moved back by whole months, day clamped to the month's length."""
    index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def monthly_trend(visit_dates: Iterable[date], order_dates: Iterable[date]) -> list[dict]:
    """Visits and order lines per (year, month), ascending.

    ``order_dates`` holds one entry per order line: the date of the visit
    it belongs to.
    """
    buckets: dict[tuple[int, int], dict] = {}
    for d in visit_dates:
        buckets.setdefault((d.year, d.month), {'visits': 0, 'orders': 0})['visits'] += 1
    for d in order_dates:
        buckets.setdefault((d.year, d.month), {'visits': 0, 'orders': 0})['orders'] += 1
    return [{
        'month': f'{year:04d}-{month:02d}',
        'label': month_label(year, month),
        'visits': buckets[(year, month)]['visits'],
        'orders': buckets[(year, month)]['orders'],
    } for year, month in sorted(buckets)]


def rank_representatives(mrs: Iterable[dict], approved_visits: Iterable[dict],
                         orders: Iterable[dict]) -> list[dict]:
    """Approved visit count and order value per representative.

    Sorted by visit count, highest first; ties keep the order of ``mrs``.
    """
    visits_by_mr: dict[int, int] = {}
    mr_by_visit: dict[int, int] = {}
    for v in approved_visits:
        visits_by_mr[v['mr_id']] = visits_by_mr.get(v['mr_id'], 0) + 1
        mr_by_visit[v['id']] = v['mr_id']

    value_by_mr: dict[int, Decimal] = {}
    for o in orders:
        mr_id = mr_by_visit.get(o['visit_id'])
        if mr_id is None:
            continue
        value_by_mr[mr_id] = value_by_mr.get(mr_id, Decimal('0')) + o['quantity'] * Decimal(o['price'])

    rows = [{
        'id': mr['id'],
        'name': mr.get('name') or mr.get('username') or 'Unknown MR',
        'visits': visits_by_mr.get(mr['id'], 0),
        'orderValue': value_by_mr.get(mr['id'], Decimal('0')),
    } for mr in mrs]
    return sorted(rows, key=lambda r: r['visits'], reverse=True)


def build_pending_queue(pending_visits: Iterable[dict], mr_names: dict,
                        pending_users: Iterable[dict], pending_doctors: Iterable[dict],
                        pending_medical_visits: Iterable[dict]) -> list[PendingApproval]:
    queue: list[PendingApproval] = []
    for v in pending_visits:
        queue.append(PendingVisit(
            id=v['id'],
            name=mr_names.get(v['mr_id']) or 'Unknown MR',
            date=v['date'],
            doctor_name=v.get('doctor__name'),
        ))
    for u in pending_users:
        queue.append(PendingUser(
            id=u['id'],
            name=u.get('name') or 'Unknown User',
            email=u.get('email') or 'N/A',
        ))
    for d in pending_doctors:
        queue.append(PendingDoctor(id=d['id'], name=d['name']))
    for mv in pending_medical_visits:
        queue.append(PendingMedicalVisit(
            id=mv['id'],
            name=f"Medical Visit on {mv['visit_date'].isoformat()}",
            date=mv['visit_date'],
        ))
    return queue


def _profile_names(ids) -> dict:
    return {
        p['id']: p['name'] or p['username']
        for p in Profile.objects.filter(id__in=set(ids)).values('id', 'name', 'username')
    }


def build_admin_dashboard(today: Optional[date] = None, months: Optional[int] = None) -> dict:
    today = today or timezone.localdate()
    months = settings.ADMIN_TREND_MONTHS if months is None else months
    start = months_back(today, months)

    try:
        mrs = list(Profile.objects.filter(role=Profile.ROLE_MR).order_by('id').values('id', 'name', 'username'))
        orders = list(VisitOrder.objects.order_by('id').values('visit_id', 'quantity', 'price'))
        approved = list(Visit.objects.filter(status=Visit.STATUS_APPROVED).values('id', 'mr_id'))
        visit_dates = list(Visit.objects.filter(date__gte=start).values_list('date', flat=True))
        order_dates = list(VisitOrder.objects.filter(visit__date__gte=start).values_list('visit__date', flat=True))

        pending_visits = list(Visit.objects.filter(status=Visit.STATUS_PENDING)
                              .order_by('date', 'id').values('id', 'date', 'mr_id', 'doctor__name'))
        pending_users = list(Profile.objects.filter(role=Profile.ROLE_MR, status=Profile.STATUS_PENDING)
                             .order_by('id').values('id', 'name', 'email'))
        pending_doctors = list(Doctor.objects.filter(is_verified=False).order_by('id').values('id', 'name'))
        pending_medical = list(MedicalVisit.objects.filter(status=Visit.STATUS_PENDING)
                               .order_by('visit_date', 'id').values('id', 'visit_date', 'mr_id'))
        pending_reports = list(Report.objects.filter(status=Visit.STATUS_PENDING)
                               .order_by('date', 'id').values('id', 'date', 'status'))
        mr_names = _profile_names(v['mr_id'] for v in pending_visits)
        total_doctors = Doctor.objects.count()
        total_visits = Visit.objects.count()
    except DatabaseError as e:
        logger.warning('admin dashboard fetch failed: %s', e)
        raise PersistenceError(str(e)) from e

    approved_ids = {v['id'] for v in approved}
    queue = build_pending_queue(pending_visits, mr_names, pending_users, pending_doctors, pending_medical)

    return {
        'stats': {
            'totalMRs': len(mrs),
            'totalDoctors': total_doctors,
            'totalVisits': total_visits,
            'totalOrderValue': total_order_value(orders),
            'approvedOrderValue': total_order_value(o for o in orders if o['visit_id'] in approved_ids),
        },
        'trend': monthly_trend(visit_dates, order_dates),
        'leaderboard': rank_representatives(mrs, approved, orders),
        'pendingApprovals': [entry.as_dict() for entry in queue],
        'pendingReports': [
            {'id': r['id'], 'date': r['date'].isoformat(), 'status': r['status']} for r in pending_reports
        ],
    }
