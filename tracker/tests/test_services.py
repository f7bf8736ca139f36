"""
Unit tests for the in-memory parts of the tracker services: order
staging, catalog search and field cleaning, and the dashboard
aggregations.  None of these touch the database.
"""
from datetime import date
from decimal import Decimal

import pytest

from tracker.exceptions import StaleReference, ValidationFailed
from tracker.models import Doctor, Medicine
from tracker.services.admin_dashboard import (
    build_pending_queue,
    monthly_trend,
    months_back,
    rank_representatives,
    total_order_value,
)
from tracker.services.approvals import PendingKind, PendingMedicalVisit, PendingUser, PendingVisit
from tracker.services.catalog import clean_medicine_fields, search_medicines
from tracker.services.mr_dashboard import summarize_mr_visits
from tracker.services.staging import OrderStaging, VisitDraft, parse_quantity


def make_medicines():
    return [
        Medicine(id=1, name='Cardiostat', type='Tablet', category='Antihypertensive',
                 dosage='10mg', pack_size='10 tablets', price=Decimal('12.50')),
        Medicine(id=2, name='Coughex', type='Syrup', category='Respiratory',
                 dosage='5ml', pack_size='100ml', price=Decimal('95.00')),
        Medicine(id=3, name='Lipocare', type='Capsule', category='cardiovascular',
                 dosage='20mg', pack_size='15 capsules', price=Decimal('40.00')),
    ]


# ---------------------------------------------------------------------
# Order staging
# ---------------------------------------------------------------------
def test_staged_line_snapshots_medicine():
    staging = OrderStaging(make_medicines())
    line = staging.add_order('2', 3)
    assert line.name == 'Coughex'
    assert line.pack_size == '100ml'
    assert line.unit_price == Decimal('95.00')
    assert line.line_total == Decimal('285.00')
    assert len(staging) == 1


def test_total_is_sum_of_lines_in_any_order():
    a = OrderStaging(make_medicines())
    a.add_order(1, 2)
    a.add_order(2, 1)
    a.add_order(3, 4)
    b = OrderStaging(make_medicines())
    b.add_order(3, 4)
    b.add_order(1, 2)
    b.add_order(2, 1)
    assert a.total == b.total == Decimal('25.00') + Decimal('95.00') + Decimal('160.00')


@pytest.mark.parametrize('qty', [0, -1, '2.5', 'abc', None, True, 2147483648, 10 ** 19])
def test_bad_quantity_leaves_list_untouched(qty):
    staging = OrderStaging(make_medicines())
    staging.add_order(1, 1)
    with pytest.raises(ValidationFailed):
        staging.add_order(2, qty)
    assert len(staging) == 1
    assert staging.total == Decimal('12.50')


def test_quantity_accepts_integral_strings():
    assert parse_quantity('4') == 4
    assert parse_quantity(' 7 ') == 7
    assert parse_quantity('3.0') == 3
    assert parse_quantity(2147483647) == 2147483647


def test_unknown_medicine_is_stale():
    staging = OrderStaging(make_medicines())
    with pytest.raises(StaleReference) as exc:
        staging.add_order(99, 1)
    assert exc.value.message == 'Selected medicine not found.'
    assert len(staging) == 0


def test_remove_order_by_position():
    staging = OrderStaging(make_medicines())
    staging.add_order(1, 1)
    staging.add_order(2, 1)
    removed = staging.remove_order(0)
    assert removed.name == 'Cardiostat'
    assert [line.name for line in staging.lines] == ['Coughex']
    assert staging.total == Decimal('95.00')


def test_select_doctor_prefills_hospital_once():
    doctors = [Doctor(id=5, name='Dr. Joshi', hospital='City Care'),
               Doctor(id=6, name='Dr. Ali', hospital='')]
    draft = VisitDraft()
    draft.select_doctor(5, doctors)
    assert draft.hospital == 'City Care'
    draft.set_hospital('Annex Clinic')
    assert draft.hospital == 'Annex Clinic'
    # a doctor without a hospital on file leaves the field alone
    draft.select_doctor('6', doctors)
    assert draft.doctor_id == '6'
    assert draft.hospital == 'Annex Clinic'


def test_draft_validation():
    draft = VisitDraft(doctor_id=1, hospital='  ', visit_date=date(2024, 5, 2))
    with pytest.raises(ValidationFailed) as exc:
        draft.validate(today=date(2024, 5, 1))
    assert set(exc.value.detail) == {'hospital', 'date'}

    VisitDraft(doctor_id=1, hospital='City Care', visit_date=date(2024, 5, 1)).validate(today=date(2024, 5, 1))


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------
def test_search_is_case_insensitive_over_name_category_type():
    meds = make_medicines()
    found = search_medicines(meds, 'CARDIO')
    assert [m.name for m in found] == ['Cardiostat', 'Lipocare']
    assert [m.name for m in search_medicines(meds, 'syrup')] == ['Coughex']
    assert search_medicines(meds, '') == meds
    assert search_medicines(meds, None) == meds


def test_clean_fields_defaults():
    values = clean_medicine_fields({
        'name': ' Cardiostat ', 'category': 'Cardio', 'dosage': '10mg', 'price': '12.5',
        'description': '   ',
    })
    assert values['name'] == 'Cardiostat'
    assert values['price'] == Decimal('12.50')
    assert values['stock'] == 0
    assert values['pack_size'] == '1'
    assert values['type'] == 'Tablet'
    assert values['description'] is None


def test_clean_fields_accepts_both_pack_size_keys():
    base = {'name': 'A', 'category': 'B', 'dosage': 'C', 'price': 1}
    assert clean_medicine_fields({**base, 'packSize': '10 tablets'})['pack_size'] == '10 tablets'
    assert clean_medicine_fields({**base, 'pack_size': '100ml'})['pack_size'] == '100ml'


@pytest.mark.parametrize('fields, message', [
    ({'name': '', 'category': 'B', 'dosage': 'C', 'price': '1'}, 'Please fill in all required fields'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C'}, 'Please fill in all required fields'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '0'}, 'Price must be a positive number'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '-3'}, 'Price must be a positive number'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': 'ten'}, 'Price must be a positive number'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '1', 'stock': '-1'},
     'Stock must be a non-negative number'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '1', 'stock': 'many'},
     'Stock must be a non-negative number'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '1', 'stock': str(10 ** 19)},
     'Stock must be at most 2147483647'),
    ({'name': 'A', 'category': 'B', 'dosage': 'C', 'price': '1', 'type': 'Powder'}, 'Unknown medicine type'),
])
def test_clean_fields_rejects(fields, message):
    with pytest.raises(ValidationFailed) as exc:
        clean_medicine_fields(fields)
    assert exc.value.message == message


# ---------------------------------------------------------------------
# Representative dashboard
# ---------------------------------------------------------------------
def visit(pk, day, doctor=None, orders=()):
    return {'id': pk, 'date': day, 'doctor': doctor,
            'visit_orders': [{'quantity': q, 'price': Decimal(p)} for q, p in orders]}


def test_monthly_stats_use_calendar_month():
    visits = [
        visit(2, date(2024, 3, 1), {'name': 'Dr. A', 'hospital': 'H1'}, [(2, '10.00')]),
        visit(1, date(2024, 2, 29), {'name': 'Dr. B', 'hospital': 'H2'}, [(1, '99.00')]),
    ]
    result = summarize_mr_visits(visits, today=date(2024, 3, 1))
    assert result['stats'] == {
        'monthlyVisits': 1,
        'monthlyOrderValue': Decimal('20.00'),
        'uniqueDoctors': 2,
    }


def test_recent_visits_keep_fetch_order_and_fallbacks():
    visits = [visit(i, date(2024, 3, 10 - i), {'name': f'Dr. {i}', 'hospital': ''}) for i in range(7)]
    visits[0]['doctor'] = None
    visits[1]['visit_orders'] = [{'quantity': 3, 'price': Decimal('2.50')}, {'quantity': 1, 'price': Decimal('1')}]
    result = summarize_mr_visits(visits, today=date(2024, 3, 10))
    recent = result['recentVisits']
    assert [r['id'] for r in recent] == [0, 1, 2, 3, 4]
    assert recent[0]['doctorName'] == 'N/A' and recent[0]['hospital'] == 'N/A'
    assert recent[1]['orderCount'] == 4
    assert recent[1]['orderValue'] == Decimal('8.50')


def test_trend_buckets_ascending():
    visits = [
        visit(1, date(2024, 3, 15), orders=[(1, '10.005')]),
        visit(2, date(2024, 1, 2)),
        visit(3, '2024-03-02', orders=[(2, '1.00')]),
    ]
    trend = summarize_mr_visits(visits, today=date(2024, 4, 1))['trend']
    assert [p['month'] for p in trend] == ['2024-01', '2024-03']
    assert [p['label'] for p in trend] == ['Jan 2024', 'Mar 2024']
    assert trend[1]['visits'] == 2
    assert trend[1]['orders'] == Decimal('12.01')
    assert trend[0]['orders'] == Decimal('0.00')


def test_empty_visits_give_zeroed_dashboard():
    result = summarize_mr_visits([], today=date(2024, 4, 1))
    assert result['stats']['monthlyVisits'] == 0
    assert result['recentVisits'] == []
    assert result['trend'] == []


# ---------------------------------------------------------------------
# Admin dashboard
# ---------------------------------------------------------------------
def test_months_back_clamps_day():
    assert months_back(date(2024, 8, 31), 6) == date(2024, 2, 29)
    assert months_back(date(2024, 3, 15), 6) == date(2023, 9, 15)
    assert months_back(date(2024, 1, 1), 0) == date(2024, 1, 1)


def test_admin_trend_counts_order_lines_by_visit_month():
    trend = monthly_trend(
        [date(2024, 2, 3), date(2024, 4, 1), date(2024, 4, 20)],
        [date(2024, 4, 1), date(2024, 4, 1), date(2024, 4, 20)],
    )
    assert trend == [
        {'month': '2024-02', 'label': 'Feb 2024', 'visits': 1, 'orders': 0},
        {'month': '2024-04', 'label': 'Apr 2024', 'visits': 2, 'orders': 3},
    ]


def test_leaderboard_is_stable_on_ties():
    mrs = [{'id': 1, 'name': 'Asha'}, {'id': 2, 'name': 'Bala'}, {'id': 3, 'name': 'Chitra'},
           {'id': 4, 'name': '', 'username': 'mr_dev'}]
    approved = ([{'id': 100 + i, 'mr_id': 1} for i in range(3)]
                + [{'id': 200 + i, 'mr_id': 2} for i in range(5)]
                + [{'id': 300 + i, 'mr_id': 3} for i in range(5)])
    orders = [{'visit_id': 200, 'quantity': 2, 'price': Decimal('10')},
              {'visit_id': 999, 'quantity': 1, 'price': Decimal('50')}]
    rows = rank_representatives(mrs, approved, orders)
    assert [(r['name'], r['visits']) for r in rows] == [
        ('Bala', 5), ('Chitra', 5), ('Asha', 3), ('mr_dev', 0),
    ]
    assert rows[0]['orderValue'] == Decimal('20')
    assert rows[1]['orderValue'] == Decimal('0')


def test_total_order_value_ignores_status():
    orders = [{'quantity': 2, 'price': Decimal('1.25')}, {'quantity': 1, 'price': '3'}]
    assert total_order_value(orders) == Decimal('5.50')
    assert total_order_value([]) == Decimal('0')


def test_pending_queue_variants_and_fallbacks():
    queue = build_pending_queue(
        pending_visits=[{'id': 1, 'mr_id': 7, 'date': date(2024, 5, 1), 'doctor__name': 'Dr. A'},
                        {'id': 2, 'mr_id': 8, 'date': date(2024, 5, 2), 'doctor__name': None}],
        mr_names={7: 'Asha'},
        pending_users=[{'id': 9, 'name': '', 'email': ''}],
        pending_doctors=[{'id': 4, 'name': 'Dr. New'}],
        pending_medical_visits=[{'id': 6, 'visit_date': date(2024, 4, 30), 'mr_id': 7}],
    )
    assert [type(e) for e in queue[:2]] == [PendingVisit, PendingVisit]
    assert queue[0].name == 'Asha'
    assert queue[1].name == 'Unknown MR'
    assert isinstance(queue[2], PendingUser)
    assert queue[2].as_dict() == {'id': 9, 'kind': 'User', 'name': 'Unknown User', 'email': 'N/A'}
    assert queue[3].kind is PendingKind.DOCTOR
    assert isinstance(queue[4], PendingMedicalVisit)
    assert queue[4].as_dict() == {
        'id': 6, 'kind': 'MedicalVisit', 'name': 'Medical Visit on 2024-04-30',
        'date': '2024-04-30', 'doctorName': 'No doctors assigned',
    }


def test_unknown_kind_is_rejected():
    with pytest.raises(ValidationFailed):
        PendingKind.parse('Invoice')
    assert PendingKind.parse('MedicalVisit') is PendingKind.MEDICAL_VISIT
