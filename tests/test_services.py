"""
Appointment scheduling, payments and the invoice request queue.
"""
import pytest

from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, AuditLog
from mindclinic.services import appointment_service, billing_service, payment_service
from tasks.billing_tasks import retry_failed_billing_requests
from tests.factories import FIXED_NOW, FakeResponse


@pytest.fixture
def ana(make_patient):
    return make_patient(name='Ana', fee=9000, professional='Dr. Test', dni='30111222', email='ana@example.com')


class TestAppointments:

    def test_price_defaults_to_patient_fee(self, ana):
        appointment = appointment_service.create_appointment({'patient_id': ana.id, 'date': '2026-03-20', 'time': '10:00'})
        assert appointment.price == 9000
        assert appointment.status == 'scheduled'
        assert appointment.professional == 'Dr. Test'
        assert appointment.patient_name == 'Ana'

    def test_validation(self, ana):
        with pytest.raises(ValidationError):
            appointment_service.create_appointment({'patient_id': ana.id})
        with pytest.raises(ValidationError):
            appointment_service.create_appointment({'patient_id': ana.id, 'date': '20/03/2026'})
        with pytest.raises(ValidationError):
            appointment_service.create_appointment({'patient_id': ana.id, 'date': '2026-03-20', 'status': 'done'})
        with pytest.raises(NotFoundError):
            appointment_service.create_appointment({'patient_id': 'missing', 'date': '2026-03-20'})

    def test_dates_and_times_must_be_zero_padded(self, ana):
        for fields in ({'date': '2026-2-5'}, {'date': '2026-02-05T99:junk'}, {'date': '2026-02-05', 'time': '9:5'}):
            with pytest.raises(ValidationError):
                appointment_service.create_appointment(dict(patient_id=ana.id, **fields))
        assert Appointment.query.count() == 0

        appointment = appointment_service.create_appointment({'patient_id': ana.id, 'date': '2026-02-05', 'time': '09:05'})
        with pytest.raises(ValidationError):
            appointment_service.update_appointment(appointment.id, {'date': '2026-2-5'})
        with pytest.raises(ValidationError):
            appointment_service.update_appointment(appointment.id, {'time': '9:5'})
        assert appointment_service.get_appointment(appointment.id).date == '2026-02-05'

    def test_series_cut_date_must_be_zero_padded(self, ana):
        series = appointment_service.create_recurring_series({'patient_id': ana.id, 'date': '2026-03-02'}, 'WEEKLY', 2)
        with pytest.raises(ValidationError):
            appointment_service.delete_series(series[0].recurrence_id, from_date='2026-3-9')
        assert Appointment.query.count() == 2

    def test_recurring_series(self, ana):
        series = appointment_service.create_recurring_series(
            {'patient_id': ana.id, 'date': '2026-03-02', 'time': '18:00'}, 'weekly', 4
        )
        assert [a.date for a in series] == ['2026-03-02', '2026-03-09', '2026-03-16', '2026-03-23']
        assert len({a.recurrence_id for a in series}) == 1
        assert [a.recurrence_index for a in series] == [0, 1, 2, 3]
        assert {a.recurrence_rule for a in series} == {'WEEKLY'}

    def test_bad_frequency(self, ana):
        with pytest.raises(ValidationError):
            appointment_service.create_recurring_series({'patient_id': ana.id, 'date': '2026-03-02'}, 'DAILY', 4)

    def test_delete_series_from_date(self, ana):
        series = appointment_service.create_recurring_series({'patient_id': ana.id, 'date': '2026-03-02'}, 'WEEKLY', 4)
        recurrence_id = series[0].recurrence_id

        deleted = appointment_service.delete_series(recurrence_id, from_date='2026-03-16', user_id='secretary')
        assert deleted == 2
        remaining = Appointment.query.filter_by(recurrence_id=recurrence_id).order_by(Appointment.date).all()
        assert [a.date for a in remaining] == ['2026-03-02', '2026-03-09']
        assert AuditLog.query.filter_by(action='delete_series').count() == 1

        assert appointment_service.delete_series(recurrence_id) == 2
        assert Appointment.query.count() == 0

    def test_list_is_ordered_and_filtered(self, ana, make_patient, make_appointment):
        bea = make_patient(name='Bea', fee=5000, professional='Dr. Other')
        make_appointment(ana, '2026-03-10', time='12:00')
        make_appointment(ana, '2026-03-10', time='09:00')
        make_appointment(bea, '2026-03-05')

        listed = appointment_service.list_appointments(start='2026-03-06', end='2026-03-31')
        assert [(a.date, a.time) for a in listed] == [('2026-03-10', '09:00'), ('2026-03-10', '12:00')]
        assert len(appointment_service.list_appointments(professional='Dr. Other')) == 1


class TestPayments:

    def test_payment_marks_appointment_paid(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        payment = payment_service.record_payment({'amount': 9000}, appointment_id=appointment.id, user_id='secretary')

        assert payment.patient_id == ana.id
        assert payment.patient_name == 'Ana'
        assert payment.date == FIXED_NOW
        assert appointment.is_paid is True

    def test_invalid_amount(self, ana):
        with pytest.raises(ValidationError):
            payment_service.record_payment({'patient_id': ana.id})
        with pytest.raises(ValidationError):
            payment_service.record_payment({'patient_id': ana.id, 'amount': -5})
        with pytest.raises(ValidationError):
            payment_service.record_payment({'patient_id': ana.id, 'amount': 'ten'})

    def test_unknown_appointment(self, ana):
        with pytest.raises(NotFoundError):
            payment_service.record_payment({'amount': 100}, appointment_id=999)

    def test_deleting_payment_keeps_paid_flag(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        payment = payment_service.record_payment({'amount': 9000}, appointment_id=appointment.id)
        payment_service.delete_payment(payment.id)
        assert appointment.is_paid is True

    def test_patient_balance(self, ana, make_appointment):
        make_appointment(ana, '2026-03-01')
        paid = make_appointment(ana, '2026-03-05')
        make_appointment(ana, '2026-03-20')
        payment_service.record_payment({'amount': 9000}, appointment_id=paid.id)

        balance = payment_service.get_patient_balance(ana.id)
        assert balance['debt'] == 9000
        assert balance['total_paid'] == 9000
        assert balance['last_visit'].strftime('%Y-%m-%d') == '2026-03-05'

    def test_balance_of_unknown_patient(self, db):
        with pytest.raises(NotFoundError):
            payment_service.get_patient_balance('missing')


class TestBillingRequests:

    def test_batch_request_is_sent(self, ana, make_appointment, webhook_calls):
        second = make_appointment(ana, '2026-03-09', consultation_type='Terapia individual')
        first = make_appointment(ana, '2026-03-02')

        billing_request = billing_service.request_batch_invoice([second.id, first.id], ana.id, requested_by='secretary')

        assert len(webhook_calls) == 1
        payload = webhook_calls[0]['json']
        assert webhook_calls[0]['url'] == 'http://billing.test/webhook'
        assert payload['requestId'] == str(billing_request.id)
        assert payload['appointmentIds'] == [first.id, second.id]
        assert payload['patientDni'] == '30111222'
        assert payload['totalPrice'] == 18000
        assert payload['lineItems'] == [
            {'description': 'Consulta - 2026-03-02', 'amount': 9000},
            {'description': 'Terapia individual - 2026-03-09', 'amount': 9000},
        ]

        status = billing_service.get_billing_status(billing_request.id)
        assert status['status'] == 'processing'
        assert status['loading'] is True

    def test_completion_callback(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-02')
        billing_request = billing_service.request_batch_invoice([appointment.id], ana.id)

        billing_service.complete_billing_request(billing_request.id, invoice_url='https://invoices.test/A-1', invoice_number='A-0001')
        status = billing_service.get_billing_status(billing_request.id)
        assert status == {
            'status': 'completed',
            'invoice_url': 'https://invoices.test/A-1',
            'invoice_number': 'A-0001',
            'error': None,
            'loading': False,
        }

    def test_workflow_error(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-02')
        billing_request = billing_service.request_batch_invoice([appointment.id], ana.id)
        billing_service.complete_billing_request(billing_request.id, error='Invalid DNI')
        status = billing_service.get_billing_status(billing_request.id)
        assert status['status'] == 'error'
        assert status['error'] == 'Invalid DNI'

    def test_missing_webhook_url(self, app, ana, make_appointment, monkeypatch, webhook_calls):
        monkeypatch.setitem(app.config, 'BILLING_WEBHOOK_URL', None)
        appointment = make_appointment(ana, '2026-03-02')
        billing_request = billing_service.request_batch_invoice([appointment.id], ana.id)

        assert webhook_calls == []
        assert billing_service.get_billing_status(billing_request.id)['status'] == 'error_config'

    def test_failed_send_is_retried(self, ana, make_appointment, monkeypatch):
        responses = [FakeResponse(500), FakeResponse(200)]
        monkeypatch.setattr(
            'mindclinic.services.billing_service.requests.post',
            lambda url, json=None, timeout=None: responses.pop(0),
        )
        appointment = make_appointment(ana, '2026-03-02')
        billing_request = billing_service.request_batch_invoice([appointment.id], ana.id)

        failed = billing_service.get_billing_request(billing_request.id)
        assert failed.status == 'error_sending'
        assert failed.retry_count == 1
        assert '500' in failed.error

        result = retry_failed_billing_requests.apply().get()
        assert result['retried'] == 1
        assert result['sent'] == 1
        assert billing_service.get_billing_request(billing_request.id).status == 'processing'

    def test_exhausted_retries_are_left_alone(self, app, ana, make_appointment, monkeypatch):
        monkeypatch.setattr(
            'mindclinic.services.billing_service.requests.post',
            lambda url, json=None, timeout=None: FakeResponse(503),
        )
        monkeypatch.setitem(app.config, 'BILLING_MAX_RETRIES', 1)
        appointment = make_appointment(ana, '2026-03-02')
        billing_service.request_batch_invoice([appointment.id], ana.id)

        assert billing_service.retryable_request_ids() == []

    def test_appointments_must_belong_to_patient(self, ana, make_patient, make_appointment):
        bea = make_patient(name='Bea')
        appointment = make_appointment(bea, '2026-03-02')
        with pytest.raises(ValidationError):
            billing_service.request_batch_invoice([appointment.id], ana.id)

    def test_unknown_appointments(self, ana):
        with pytest.raises(NotFoundError) as excinfo:
            billing_service.request_batch_invoice([41, 42], ana.id)
        assert excinfo.value.details == {'missing': [41, 42]}
        with pytest.raises(ValidationError):
            billing_service.request_batch_invoice([], ana.id)
