import random
from datetime import date, datetime

import pytest

from hms.analytics import (
    parse_appointment_records,
    parse_patient_records,
    parse_receptionist_records,
    filter_by_time_range,
    filter_by_branch,
    compute_trends,
    compute_revenue_summary,
    compute_revenue_by_doctor,
    compute_payment_method_distribution,
    compute_monthly_revenue_series,
    predict_next_month_revenue,
    compute_condition_frequency,
    compute_medicine_frequency,
    extract_medicines,
    merge_top_n,
    compute_doctor_scorecards,
    compute_booking_sources,
    compute_receptionist_scorecards,
    build_dashboard,
)
from hms.analytics.revenue import round_half_up


def _rows(*rows):
    defaults = {'status': 'confirmed'}
    return parse_appointment_records([{**defaults, **row} for row in rows])


def test_records_accept_camel_case_and_coerce_soft_fields():
    records = parse_appointment_records([
        {'id': 7, 'doctorId': 3, 'appointmentDate': '2024-06-03T10:00:00Z', 'status': 'completed',
         'paymentAmount': '250', 'createdBy': ''},
        {'id': 8, 'status': 'confirmed', 'appointment_date': 'soon', 'payment_amount': 'n/a'},
    ])

    first, second = records
    assert first.id == '7'
    assert first.doctor_id == '3'
    assert first.appointment_date == date(2024, 6, 3)
    assert first.payment_amount == 250.0
    assert first.created_by is None
    assert second.appointment_date is None
    assert second.payment_amount is None


def test_records_reject_unknown_status_and_non_mappings():
    records = parse_appointment_records([
        {'id': 1, 'status': 'archived'},
        {'id': 2},
        'not a row',
        None,
        {'id': 3, 'status': 'cancelled'},
    ])
    assert [r.id for r in records] == ['3']


def test_patient_and_receptionist_records():
    patients = parse_patient_records([{'id': 1, 'createdBy': 'receptionist', 'createdAt': '2024-06-01T08:00:00'}])
    receptionists = parse_receptionist_records([
        {'id': 4, 'first_name': 'Bob', 'last_name': 'Lee', 'email': 'bob@x.example'},
        {'first_name': 'No Id'},
    ])
    assert patients[0].created_at == datetime(2024, 6, 1, 8, 0)
    assert len(receptionists) == 1
    assert receptionists[0].name == 'Bob Lee'


def test_time_range_filter_is_inclusive_and_drops_undated():
    records = _rows(
        {'id': 1, 'appointment_date': '2024-05-31'},
        {'id': 2, 'appointment_date': '2024-05-30'},
        {'id': 3},
    )
    kept = filter_by_time_range(records, '30days', now=date(2024, 6, 30))
    assert [r.id for r in kept] == ['1']
    assert len(filter_by_time_range(records, 'all', now=date(2024, 6, 30))) == 3

    with pytest.raises(ValueError):
        filter_by_time_range(records, '2weeks')


def test_branch_filter():
    records = _rows({'id': 1, 'branch_id': 1}, {'id': 2, 'branch_id': 2}, {'id': 3})
    assert [r.id for r in filter_by_branch(records, '1')] == ['1']
    assert len(filter_by_branch(records, 'all')) == 3
    assert len(filter_by_branch(records, None)) == 3


def test_trends_buckets():
    records = _rows(
        {'appointment_date': '2024-06-03'},
        {'appointment_date': '2024-06-05'},
        {'appointment_date': '2024-06-05'},
        {'appointment_date': '2024-06-10'},
        {'appointment_date': '2024-05-31'},
        {'appointment_date': '2023-12-31'},
        {'appointment_date': 'not-a-date'},
    )
    trends = compute_trends(records, now=date(2024, 6, 5))

    weekly = trends['weekly']
    assert [p['label'] for p in weekly] == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
    assert weekly[0]['full_label'] == 'Mon, Jun 3'
    assert [p['count'] for p in weekly] == [1, 0, 2, 0, 0, 0, 0]

    monthly = trends['monthly']
    assert [p['label'] for p in monthly] == ['1-5', '6-10', '11-15', '16-20', '21-25', '26-30']
    assert monthly[0]['full_label'] == '1-5 Jun 2024'
    assert [p['count'] for p in monthly] == [3, 1, 0, 0, 0, 0]

    yearly = trends['yearly']
    assert yearly[0]['full_label'] == 'January 2024'
    assert yearly[4]['count'] == 1
    assert yearly[5]['count'] == 4

    assert trends['totals'] == {'weekly': 3, 'monthly': 4, 'yearly': 5}


def test_yearly_trend_spreads_eight_visits_over_three_months():
    dates = ['2024-01-08', '2024-01-19', '2024-01-31',
             '2024-04-02', '2024-04-30',
             '2024-09-01', '2024-09-15', '2024-09-29']
    yearly = compute_trends(_rows(*({'appointment_date': d} for d in dates)), now=date(2024, 10, 2))['yearly']

    counts = [p['count'] for p in yearly]
    non_zero = [count for count in counts if count]
    assert len(counts) == 12
    assert len(non_zero) == 3
    assert sum(non_zero) == 8
    assert counts.count(0) == 9
    assert (counts[0], counts[3], counts[8]) == (3, 2, 3)


def test_monthly_trend_clips_to_short_month():
    trends = compute_trends([], now=date(2023, 2, 10))
    assert trends['monthly'][-1]['label'] == '26-28'
    assert trends['totals'] == {'weekly': 0, 'monthly': 0, 'yearly': 0}


def _revenue_rows():
    return _rows(
        {'id': 'a', 'status': 'completed', 'payment_status': 'paid', 'payment_amount': 500,
         'appointment_date': '2024-06-14', 'doctor_id': 1, 'doctor_name': 'Dr A', 'payment_method': 'upi'},
        {'id': 'b', 'status': 'completed', 'payment_amount': 0, 'total_consultation_fee': 300,
         'appointment_date': '2024-05-20', 'doctor_id': 1, 'doctor_name': 'Dr A'},
        {'id': 'c', 'status': 'completed', 'payment_status': 'cancelled', 'payment_amount': 1000,
         'appointment_date': '2024-06-10', 'doctor_id': 2, 'doctor_name': 'Dr B'},
        {'id': 'd', 'status': 'confirmed', 'payment_amount': 700,
         'appointment_date': '2024-06-12', 'doctor_id': 2, 'doctor_name': 'Dr B'},
        {'id': 'e', 'status': 'completed', 'payment_amount': 200, 'appointment_date': '2023-01-01',
         'doctor_id': 2, 'doctor_name': 'Dr B', 'doctor_specialization': 'Cardiology', 'payment_method': 'cash'},
        {'id': 'f', 'status': 'completed', 'payment_amount': 400, 'doctor_id': 2, 'doctor_name': 'Dr B'},
    )


def test_revenue_summary_windows():
    summary = compute_revenue_summary(_revenue_rows(), now=date(2024, 6, 15))
    assert summary == {'weekly': 500.0, 'monthly': 800.0, 'all_time': 1000.0}


def test_revenue_is_order_independent():
    records = _rows(*[
        {'status': 'completed', 'payment_amount': amount, 'appointment_date': '2024-06-01'}
        for amount in (0.1, 0.2, 0.3, 1e6 + 0.01, 19.99, 0.7, 3.33, 0.05)
    ])
    expected = compute_revenue_summary(records, now=date(2024, 6, 15))

    rng = random.Random(7)
    for _ in range(20):
        shuffled = list(records)
        rng.shuffle(shuffled)
        assert compute_revenue_summary(shuffled, now=date(2024, 6, 15)) == expected


def test_revenue_by_doctor_and_methods():
    by_doctor = compute_revenue_by_doctor(_revenue_rows())
    assert [row['doctor_name'] for row in by_doctor] == ['Dr A', 'Dr B']
    assert by_doctor[0]['total_revenue'] == 800.0
    assert by_doctor[0]['transaction_count'] == 2
    assert by_doctor[0]['average_transaction'] == 400.0
    assert by_doctor[1]['specialization'] == 'Cardiology'

    methods = compute_payment_method_distribution(_revenue_rows())
    assert methods == {
        'upi': {'count': 1, 'amount': 500.0},
        'unknown': {'count': 1, 'amount': 300.0},
        'cash': {'count': 1, 'amount': 200.0},
    }


def test_monthly_series_covers_twelve_months():
    series = compute_monthly_revenue_series(_revenue_rows(), now=date(2024, 6, 15))
    assert len(series) == 12
    assert series[0]['month_key'] == '2023-07'
    assert series[-1]['month'] == 'Jun 2024'
    assert series[-1]['revenue'] == 500.0
    assert series[-2]['revenue'] == 300.0
    assert series[-2]['transactions'] == 1


def test_prediction_needs_three_months():
    series = [{'revenue': 100}, {'revenue': 200}]
    assert predict_next_month_revenue(series) == {
        'predicted_revenue': 0, 'confidence': 'low', 'trend': 'stable', 'percentage_change': 0.0,
    }


def test_prediction_follows_linear_trend():
    series = [{'revenue': r} for r in (50, 100, 200, 300, 400, 500, 600)]
    prediction = predict_next_month_revenue(series)
    assert prediction['predicted_revenue'] == 700
    assert prediction['trend'] == 'increasing'
    assert prediction['percentage_change'] == 16.7
    assert prediction['confidence'] == 'low'


def test_prediction_on_flat_revenue():
    prediction = predict_next_month_revenue([{'revenue': 500}] * 6)
    assert prediction == {'predicted_revenue': 500, 'confidence': 'high', 'trend': 'stable', 'percentage_change': 0.0}


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.49) == 2


def test_condition_frequency_counts_overlapping_terms():
    records = _rows(
        {'chief_complaint': 'Fever and cough'},
        {'chief_complaint': 'chest pain'},
        {'chief_complaint': 'High fever'},
        {'chief_complaint': 'back pain'},
        {'chief_complaint': ''},
    )
    full = compute_condition_frequency(records, top_n=8)
    assert [(e['condition'], e['count']) for e in full] == [
        ('fever', 2), ('pain', 2), ('cough', 1), ('back pain', 1), ('chest pain', 1),
    ]

    top = compute_condition_frequency(records, top_n=3)
    assert top[-1] == {'condition': 'Other', 'count': 2, 'merged': ['back pain', 'chest pain']}
    assert sum(e['count'] for e in top) == sum(e['count'] for e in full)


def test_merge_top_n_without_overflow_adds_no_other():
    entries = [{'name': 'a', 'n': 2}, {'name': 'b', 'n': 1}]
    assert merge_top_n(entries, 6, 'name', 'n') == entries


def test_extract_medicines():
    text = "\n".join([
        "*1\ufe0f\u20e3 Paracetamol 500mg*",
        "1. Amoxicillin 250mg - twice daily",
        "Follow up after 5 days",
        "Cetirizine 10mg",
        "take rest",
        "",
    ])
    assert extract_medicines(text) == ['Paracetamol', 'Amoxicillin', 'Cetirizine']
    assert extract_medicines('') == []
    assert extract_medicines(None) == []


def test_medicine_frequency_only_counts_completed():
    records = _rows(
        {'status': 'completed', 'medicine': '1. Paracetamol 500mg\n2. Cetirizine 10mg'},
        {'status': 'completed', 'medicine': '1. paracetamol 650mg'},
        {'status': 'confirmed', 'medicine': '1. Ibuprofen 400mg'},
    )
    frequency = compute_medicine_frequency(records)
    assert frequency == [
        {'medicine_name': 'Paracetamol', 'prescription_count': 2, 'percentage': 66.67},
        {'medicine_name': 'Cetirizine', 'prescription_count': 1, 'percentage': 33.33},
    ]


def test_medicine_frequency_other_keeps_total():
    names = ['Alpha', 'Bravo', 'Charlie', 'Delta', 'Echo', 'Foxtrot', 'Golf', 'Hotel']
    records = _rows(*[
        {'status': 'completed', 'medicine': f'1. {name} 5mg'} for name in names
    ])
    frequency = compute_medicine_frequency(records, top_n=6)
    assert len(frequency) == 7
    assert frequency[-1]['medicine_name'] == 'Other'
    assert frequency[-1]['merged'] == ['Golf', 'Hotel']
    assert sum(e['prescription_count'] for e in frequency) == 8
    assert frequency[-1]['percentage'] == 25.0


def _doctor_rows():
    rows = [
        {'doctor_id': 1, 'doctor_name': 'Dr A', 'patient_id': 'p1', 'appointment_time': '10:00',
         'status': 'completed', 'payment_amount': 500, 'appointment_date': '2024-06-03', 'created_by': 'patient'},
        {'doctor_id': 1, 'doctor_name': 'Dr A', 'patient_id': 'p2', 'appointment_time': '10:30',
         'status': 'completed', 'payment_amount': 300, 'appointment_date': '2024-06-03', 'created_by': 'receptionist'},
        {'doctor_id': 1, 'doctor_name': 'Dr A', 'patient_id': 'p3', 'appointment_time': '09:00',
         'status': 'confirmed', 'appointment_date': '2024-06-04', 'created_by': 'whatsapp'},
        {'doctor_id': 2, 'doctor_name': 'Dr B', 'patient_id': 'p1', 'status': 'confirmed'},
        {'doctor_id': 2, 'doctor_name': 'Dr B', 'patient_id': 'p2', 'status': 'confirmed'},
        {'doctor_id': 3, 'doctor_name': 'Dr C', 'patient_id': 'p1', 'status': 'confirmed'},
        {'doctor_id': 4, 'doctor_name': 'Dr D', 'patient_id': 'p1', 'status': 'confirmed'},
        {'doctor_id': 5, 'status': 'confirmed'},
    ]
    return _rows(*rows)


def test_doctor_scorecards():
    cards = compute_doctor_scorecards(_doctor_rows())

    assert [c['doctor_name'] for c in cards] == ['Dr A', 'Dr B', 'Dr C', 'Dr D']
    assert [c['badge'] for c in cards] == ['gold', 'silver', 'bronze', None]
    assert [c['rank'] for c in cards] == [1, 2, 3, None]

    top = cards[0]
    assert top['total_patients_seen'] == 3
    assert top['revenue_contribution'] == 800
    assert top['average_consultation_time'] == 18
    assert top['availability_days'] == 2
    assert top['doctor_specialization'] == 'General'
    assert [h['hour'] for h in top['peak_active_hours']] == [10, 9]
    assert top['peak_active_hours'][0] == {'hour': 10, 'hour12': '10 AM', 'appointment_count': 2}
    assert top['appointment_vs_walk_in_ratio'] == {
        'appointments': 2, 'walk_ins': 1, 'appointment_percentage': 66.7, 'walk_in_percentage': 33.3,
    }


def test_booking_sources():
    records = _rows(
        {'created_by': 'whatsapp'},
        {'created_by': 'whatsapp_flow'},
        {'created_by': 'receptionist'},
        {'created_by': 'patient'},
        {'created_by': 'doctor'},
    )
    sources = compute_booking_sources(records)
    assert sources == {
        'whatsapp': {'count': 2, 'percentage': 40.0},
        'receptionist': {'count': 1, 'percentage': 20.0},
        'portal': {'count': 1, 'percentage': 20.0},
        'manual': {'count': 2, 'percentage': 40.0},
    }


def test_receptionist_totals_are_divided_equally():
    appointments = _rows(*[
        {'created_by': 'receptionist', 'payment_amount': 100} for _ in range(4)
    ] + [{'created_by': 'patient', 'payment_amount': 900}])
    patients = parse_patient_records([
        {'id': 1, 'created_by': 'receptionist'},
        {'id': 2, 'created_by': 'receptionist'},
        {'id': 3, 'created_by': 'patient'},
    ])
    receptionists = parse_receptionist_records([
        {'id': 10, 'first_name': 'Bob', 'email': 'bob@x.example'},
        {'id': 11, 'first_name': 'Ann', 'email': 'ann@x.example'},
    ])

    cards = compute_receptionist_scorecards(appointments, receptionists, patients)
    assert len(cards) == 2
    for card in cards:
        assert card['patients_added'] == 1
        assert card['appointments_booked'] == 2
        assert card['total_revenue'] == 200
        assert card['performance_score'] == 100
    assert compute_receptionist_scorecards(appointments, []) == []


def test_receptionist_branch_filter_scopes_appointments_not_patients():
    appointments = [
        {'created_by': 'receptionist', 'branch_id': 1, 'payment_amount': 100},
        {'created_by': 'receptionist', 'branch_id': 2, 'payment_amount': 100},
    ]
    patients = [
        {'id': 1, 'created_by': 'receptionist', 'branchId': 1},
        {'id': 2, 'created_by': 'receptionist', 'branchId': 2},
    ]
    receptionists = [{'id': 10, 'first_name': 'Bob'}]

    report = build_dashboard(appointments, patients, receptionists, branch_id='1',
                             sections=('receptionists',))['receptionists']

    assert report['booking_sources']['receptionist']['count'] == 1
    card = report['receptionists'][0]
    assert card['appointments_booked'] == 1
    assert card['patients_added'] == 2
    assert not hasattr(parse_patient_records(patients)[0], 'branch_id')


def test_dashboard_trends_ignore_time_range():
    rows = [
        {'status': 'completed', 'payment_amount': 100, 'appointment_date': '2024-01-10'},
        {'status': 'completed', 'payment_amount': 50, 'appointment_date': '2024-06-10'},
    ]
    dashboard = build_dashboard(rows, time_range='30days', now=date(2024, 6, 15),
                                sections=('trends', 'revenue'))
    assert dashboard['trends']['totals']['yearly'] == 2
    assert dashboard['revenue']['summary']['all_time'] == 50.0


def test_dashboard_rejects_unknown_section():
    with pytest.raises(ValueError):
        build_dashboard([], sections=('weather',))
