from hms.models import Appointment, AuditLog

from conftest import BOOKING_DATE


def _reserve(client, headers, seed, time='10:30', **extra):
    body = {
        'doctor_id': seed.doctor_id,
        'appointment_date': BOOKING_DATE,
        'appointment_time': time,
        'patient_id': seed.patient_id,
        'patient_name': 'Asha Rao',
        'chief_complaint': 'Fever and cough',
    }
    body.update(extra)
    return client.post('/api/appointments/reserve', json=body, headers=headers)


def test_health(client):
    assert client.get('/health').status_code == 200
    ready = client.get('/health/ready')
    assert ready.status_code == 200
    assert ready.get_json()['database'] == 'connected'
    assert ready.get_json()['notifications']['mode'] == 'inline'


def test_login_returns_tokens_with_claims(client, seed):
    response = client.post('/api/auth/login', json={'username': 'reception1', 'password': 'secret123'})
    data = response.get_json()

    assert response.status_code == 200
    assert data['success'] is True
    assert data['access_token']
    assert data['data']['role'] == 'receptionist'

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.get_json()['data']['login_count'] == 1

    login = AuditLog.query.filter_by(action='login').one()
    assert login.user_id == seed.receptionist_id
    assert login.hospital_id == seed.hospital_id


def test_login_rejects_bad_password(client, seed):
    response = client.post('/api/auth/login', json={'username': 'reception1', 'password': 'wrong'})
    assert response.status_code == 401
    assert response.get_json()['success'] is False


def test_reserve_requires_token(client, seed):
    response = _reserve(client, {}, seed)
    assert response.status_code == 401


def test_reserve_then_conflict(client, seed, headers_for):
    headers = headers_for(seed.receptionist_id)

    created = _reserve(client, headers, seed)
    body = created.get_json()
    assert created.status_code == 201
    assert body['success'] is True
    assert body['id'] == body['data']['id']
    assert body['data']['status'] == 'confirmed'

    conflict = _reserve(client, headers, seed, time='10:30 AM', patient_id=seed.second_patient_id)
    assert conflict.status_code == 409
    assert conflict.get_json() == {
        'success': False,
        'error': 'SLOT_ALREADY_BOOKED',
        'code': 'SLOT_ALREADY_BOOKED',
        'message': 'This time slot has already been booked. Please select another slot.',
    }
    assert Appointment.query.count() == 1


def test_reserve_validation_error_envelope(client, seed, headers_for):
    response = _reserve(client, headers_for(seed.receptionist_id), seed, time='7 o clock')
    body = response.get_json()
    assert response.status_code == 400
    assert body['success'] is False
    assert body['code'] == 'VALIDATION_ERROR'


def test_patient_cannot_book_for_someone_else(client, seed, headers_for):
    response = _reserve(client, headers_for(seed.patient_user_id), seed, patient_id=seed.second_patient_id)
    assert response.status_code == 403
    assert response.get_json()['code'] == 'ACCESS_DENIED'


def test_receptionist_overbooking_flag_is_denied(client, seed, headers_for):
    response = _reserve(client, headers_for(seed.receptionist_id), seed, overbooking_allowed=True)
    assert response.status_code == 403


def test_doctor_overbooks_through_api(client, seed, headers_for):
    _reserve(client, headers_for(seed.receptionist_id), seed)
    response = _reserve(client, headers_for(seed.doctor_id), seed, overbooking_allowed='true',
                        patient_id=seed.second_patient_id)
    assert response.status_code == 201
    assert response.get_json()['data']['is_overbooked'] is True


def test_check_slot(client, seed, headers_for):
    headers = headers_for(seed.patient_user_id)
    url = f'/api/appointments/check-slot?doctor_id={seed.doctor_id}&date={BOOKING_DATE}&time=10:30'

    assert client.get(url, headers=headers).get_json() == {'success': True, 'available': True}

    _reserve(client, headers, seed)
    taken = client.get(url, headers=headers)
    assert taken.status_code == 409
    assert taken.get_json()['available'] is False

    missing = client.get('/api/appointments/check-slot', headers=headers)
    assert missing.status_code == 400


def test_available_slots(client, seed, headers_for):
    headers = headers_for(seed.receptionist_id)
    _reserve(client, headers, seed)

    response = client.get(
        f'/api/appointments/available-slots?doctor_id={seed.doctor_id}&date={BOOKING_DATE}', headers=headers
    )
    slots = response.get_json()['data']
    assert response.status_code == 200
    assert '10:30' not in slots
    assert '10:15' in slots


def test_list_is_staff_only_and_scoped_for_doctors(client, seed, headers_for):
    _reserve(client, headers_for(seed.receptionist_id), seed)
    _reserve(client, headers_for(seed.receptionist_id), seed, doctor_id=seed.doctor2_id)

    assert client.get('/api/appointments', headers=headers_for(seed.patient_user_id)).status_code == 403

    everything = client.get('/api/appointments', headers=headers_for(seed.admin_id)).get_json()
    assert everything['pagination']['total'] == 2

    own = client.get('/api/appointments', headers=headers_for(seed.doctor2_id)).get_json()
    assert [a['doctor_id'] for a in own['data']] == [seed.doctor2_id]


def test_status_and_completion_flow(client, seed, headers_for):
    appointment_id = _reserve(client, headers_for(seed.receptionist_id), seed).get_json()['id']

    denied = client.post(f'/api/appointments/{appointment_id}/complete', json={},
                         headers=headers_for(seed.receptionist_id))
    assert denied.status_code == 403

    done = client.post(
        f'/api/appointments/{appointment_id}/complete',
        json={'medicine': '1. Paracetamol 500mg', 'payment_status': 'paid', 'payment_amount': 500},
        headers=headers_for(seed.doctor_id),
    )
    assert done.status_code == 200
    assert done.get_json()['data']['status'] == 'completed'

    invalid = client.put(f'/api/appointments/{appointment_id}/status', json={'status': 'cancelled'},
                         headers=headers_for(seed.admin_id))
    assert invalid.status_code == 400


def test_whatsapp_request_confirmation_claims_slot(client, seed, headers_for):
    headers = headers_for(seed.receptionist_id)
    body = {
        'doctor_id': seed.doctor_id,
        'appointment_date': BOOKING_DATE,
        'appointment_time': '11:00',
        'patient_id': seed.second_patient_id,
    }
    first = client.post('/api/appointments/whatsapp-requests', json=body, headers=headers).get_json()
    second = client.post('/api/appointments/whatsapp-requests', json=body, headers=headers).get_json()
    assert first['data']['status'] == 'whatsapp_pending'

    confirmed = client.put(f"/api/appointments/{first['id']}/status", json={'status': 'confirmed'}, headers=headers)
    assert confirmed.status_code == 200
    assert confirmed.get_json()['data']['status'] == 'confirmed'

    conflict = client.put(f"/api/appointments/{second['id']}/status", json={'status': 'confirmed'}, headers=headers)
    assert conflict.status_code == 409
    assert conflict.get_json()['code'] == 'SLOT_ALREADY_BOOKED'

    patient_call = client.post('/api/appointments/whatsapp-requests', json=body,
                               headers=headers_for(seed.patient_user_id))
    assert patient_call.status_code == 403


def test_reschedule_endpoint(client, seed, headers_for):
    headers = headers_for(seed.patient_user_id)
    appointment_id = _reserve(client, headers, seed).get_json()['id']

    response = client.post(f'/api/appointments/{appointment_id}/reschedule',
                           json={'appointment_date': BOOKING_DATE, 'appointment_time': '3:00 PM'},
                           headers=headers)
    assert response.status_code == 200
    assert response.get_json()['data']['appointment_time'] == '15:00'
    assert response.get_json()['data']['status'] == 'rescheduled'


def test_patient_cannot_read_other_patients_appointment(client, seed, headers_for):
    appointment_id = _reserve(client, headers_for(seed.receptionist_id), seed,
                              patient_id=seed.second_patient_id).get_json()['id']
    response = client.get(f'/api/appointments/{appointment_id}', headers=headers_for(seed.patient_user_id))
    assert response.status_code == 403

    missing = client.get('/api/appointments/9999', headers=headers_for(seed.admin_id))
    assert missing.status_code == 404
    assert missing.get_json()['code'] == 'APPOINTMENT_NOT_FOUND'


def test_pdf_downloads(client, seed, headers_for):
    appointment_id = _reserve(client, headers_for(seed.receptionist_id), seed).get_json()['id']
    headers = headers_for(seed.patient_user_id)

    confirmation = client.get(f'/api/appointments/{appointment_id}/confirmation-pdf', headers=headers)
    assert confirmation.status_code == 200
    assert confirmation.mimetype == 'application/pdf'
    assert confirmation.data.startswith(b'%PDF')

    early = client.get(f'/api/appointments/{appointment_id}/prescription-pdf', headers=headers)
    assert early.status_code == 400

    client.post(f'/api/appointments/{appointment_id}/complete',
                json={'medicine': '1. Amoxicillin 250mg - twice daily', 'payment_status': 'paid'},
                headers=headers_for(seed.doctor_id))

    prescription = client.get(f'/api/appointments/{appointment_id}/prescription-pdf', headers=headers)
    invoice = client.get(f'/api/appointments/{appointment_id}/invoice-pdf', headers=headers)
    assert prescription.data.startswith(b'%PDF')
    assert invoice.data.startswith(b'%PDF')


def test_analytics_endpoints(client, seed, headers_for):
    appointment_id = _reserve(client, headers_for(seed.receptionist_id), seed).get_json()['id']
    client.post(f'/api/appointments/{appointment_id}/complete',
                json={'medicine': '1. Paracetamol 500mg', 'payment_status': 'paid', 'payment_amount': 500},
                headers=headers_for(seed.doctor_id))
    admin = headers_for(seed.admin_id)

    trends = client.get('/api/analytics/trends', headers=admin).get_json()['data']
    assert set(trends) == {'weekly', 'monthly', 'yearly', 'totals'}

    revenue = client.get('/api/analytics/revenue?time_range=all', headers=admin).get_json()['data']
    assert revenue['summary']['all_time'] == 500.0

    conditions = client.get('/api/analytics/conditions?top_n=6', headers=admin).get_json()['data']
    assert {'condition': 'fever', 'count': 1} in conditions

    medicines = client.get('/api/analytics/medicines', headers=admin).get_json()['data']
    assert medicines[0]['medicine_name'] == 'Paracetamol'

    doctors = client.get('/api/analytics/doctors?branch_id=all', headers=admin).get_json()['data']
    assert doctors[0]['badge'] == 'gold'

    receptionists = client.get('/api/analytics/receptionists', headers=admin).get_json()['data']
    assert receptionists['booking_sources']['receptionist']['count'] == 1
    assert receptionists['receptionists'][0]['receptionist_name'] == 'Bob'


def test_analytics_rejects_bad_parameters(client, seed, headers_for):
    admin = headers_for(seed.admin_id)
    assert client.get('/api/analytics/revenue?time_range=2weeks', headers=admin).status_code == 400
    assert client.get('/api/analytics/conditions?top_n=5', headers=admin).status_code == 400


def test_analytics_role_gates(client, seed, headers_for):
    assert client.get('/api/analytics/trends', headers=headers_for(seed.receptionist_id)).status_code == 200
    assert client.get('/api/analytics/revenue', headers=headers_for(seed.receptionist_id)).status_code == 403
    assert client.get('/api/analytics/doctors', headers=headers_for(seed.doctor_id)).status_code == 403
    assert client.get('/api/analytics/trends', headers=headers_for(seed.patient_user_id)).status_code == 403
