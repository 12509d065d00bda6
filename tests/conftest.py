"""
Shared fixtures: one app per test session on in-memory SQLite, a fresh
schema per test and a pinned clock.
"""
import pytest
from flask_jwt_extended import create_access_token

from mindclinic import create_app
from mindclinic.extensions import db as _db
from mindclinic.models import Appointment, Patient
from tests.factories import FIXED_NOW, FakeResponse


@pytest.fixture(scope='session')
def app():
    app = create_app('testing')
    app.config['CLOCK'] = lambda: FIXED_NOW
    return app


@pytest.fixture
def db(app):
    """Fresh schema for every test, inside an app context."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app, db):
    return app.test_client()


@pytest.fixture
def auth_headers(app, db):
    token = create_access_token(identity='secretary')
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(autouse=True)
def webhook_calls(monkeypatch):
    """Record invoice webhook posts instead of hitting the network."""
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append({'url': url, 'json': json, 'timeout': timeout})
        return FakeResponse(200)

    monkeypatch.setattr('mindclinic.services.billing_service.requests.post', fake_post)
    return calls


@pytest.fixture
def make_patient(db):
    def _make(name='Ana Gómez', fee=10000, source='private', **kwargs):
        patient = Patient(name=name, fee=fee, patient_source=source, **kwargs)
        db.session.add(patient)
        db.session.commit()
        return patient
    return _make


@pytest.fixture
def make_appointment(db):
    def _make(patient, date, **kwargs):
        kwargs.setdefault('price', patient.fee)
        kwargs.setdefault('professional', patient.professional)
        appointment = Appointment(patient_id=patient.id, patient_name=patient.name, date=date, **kwargs)
        db.session.add(appointment)
        db.session.commit()
        return appointment
    return _make


