"""
Session notes, task checklists and the pending-task inbox.
"""
from datetime import datetime

import pytest

from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, AuditLog, ClinicalNote
from mindclinic.services import appointment_service, clinical_note_service
from mindclinic.utils.pending_tasks import collect_pending_tasks


@pytest.fixture
def ana(make_patient):
    return make_patient(name='Ana', fee=9000, professional='Dr. Test')


def note(note_id, appointment_id=None, tasks=(), created_at=datetime(2026, 3, 1, 9, 0), patient_id='p1'):
    item = ClinicalNote(id=note_id, patient_id=patient_id, appointment_id=appointment_id,
                        note_type='note', created_at=created_at)
    item.set_tasks(list(tasks))
    return item


class TestCollectPendingTasks:

    def test_only_incomplete_tasks(self):
        pending = collect_pending_tasks(
            [note(1, tasks=[{'text': 'Call school', 'completed': True}, {'text': 'Send report', 'completed': False}])],
            {},
        )
        assert [(t['note_id'], t['task_index'], t['text']) for t in pending] == [(1, 1, 'Send report')]

    def test_oldest_session_first(self):
        notes = [
            note(1, appointment_id=10, tasks=[{'text': 'a', 'completed': False}]),
            note(2, appointment_id=11, tasks=[{'text': 'b', 'completed': False}]),
            note(3, tasks=[{'text': 'c', 'completed': False}], created_at=datetime(2026, 2, 20, 8, 0)),
        ]
        pending = collect_pending_tasks(notes, {10: '2026-03-05', 11: '2026-02-10'})
        assert [t['text'] for t in pending] == ['b', 'c', 'a']
        assert pending[0]['appointment_date'] == '2026-02-10'
        assert pending[1]['appointment_date'] is None

    def test_patient_filter_and_names(self):
        notes = [
            note(1, tasks=[{'text': 'a', 'completed': False}], patient_id='p1'),
            note(2, tasks=[{'text': 'b', 'completed': False}], patient_id='p2'),
        ]
        pending = collect_pending_tasks(notes, {}, {'p2': 'Bea'}, patient_ids={'p2'})
        assert [(t['text'], t['patient_name']) for t in pending] == [('b', 'Bea')]


class TestNotes:

    def test_save_note_flags_appointment(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        saved = clinical_note_service.save_note(
            {'content': 'Good progress', 'tasks': [{'text': 'Send report'}]},
            appointment_id=appointment.id,
            user_id='dr.test',
        )

        assert saved.patient_id == ana.id
        assert saved.note_type == 'note'
        assert saved.get_tasks() == [{'text': 'Send report', 'completed': False}]
        assert appointment.has_notes is True
        assert clinical_note_service.get_appointment_note(appointment.id).id == saved.id
        assert AuditLog.query.filter_by(entity_type='clinical_note', action='create').count() == 1

    def test_update_keeps_author(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        saved = clinical_note_service.save_note({'content': 'First'}, appointment_id=appointment.id, user_id='dr.test')

        updated = clinical_note_service.save_note({'content': 'Second'}, note_id=saved.id, user_id='secretary')
        assert updated.content == 'Second'
        assert updated.created_by == 'dr.test'
        assert ClinicalNote.query.count() == 1

    def test_validation(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        with pytest.raises(ValidationError):
            clinical_note_service.save_note({'content': 'x'})
        with pytest.raises(NotFoundError):
            clinical_note_service.save_note({'content': 'x'}, appointment_id=999)
        with pytest.raises(ValidationError):
            clinical_note_service.save_note({'tasks': 'call'}, appointment_id=appointment.id)
        with pytest.raises(ValidationError):
            clinical_note_service.save_note({'tasks': [{'completed': False}]}, appointment_id=appointment.id)
        with pytest.raises(NotFoundError):
            clinical_note_service.save_note({'content': 'x'}, note_id=999)

    def test_patient_notes_newest_first(self, ana, make_appointment):
        first = make_appointment(ana, '2026-03-02')
        second = make_appointment(ana, '2026-03-09')
        older = clinical_note_service.save_note({'content': 'a'}, appointment_id=first.id)
        newer = clinical_note_service.save_note({'content': 'b'}, appointment_id=second.id)
        older.created_at = datetime(2026, 3, 2, 19, 0)
        newer.created_at = datetime(2026, 3, 9, 19, 0)
        task = clinical_note_service.add_task({'patient_id': ana.id, 'content': 'Call school'})
        task.created_at = datetime(2026, 3, 10, 8, 0)

        notes = clinical_note_service.list_patient_notes(ana.id)
        assert [n.id for n in notes] == [task.id, newer.id, older.id]

    def test_notes_survive_appointment_delete(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        saved = clinical_note_service.save_note({'content': 'x'}, appointment_id=appointment.id)
        appointment_service.delete_appointment(appointment.id)

        assert Appointment.query.count() == 0
        assert clinical_note_service.get_note(saved.id).appointment_id is None


class TestTasks:

    def test_add_task(self, ana):
        task = clinical_note_service.add_task({'patient_id': ana.id, 'content': '  Call school '}, user_id='secretary')
        assert task.note_type == 'task'
        assert task.get_tasks() == [{'text': 'Call school', 'completed': False}]
        assert task.created_by == 'secretary'

    def test_add_task_validation(self, ana):
        with pytest.raises(ValidationError):
            clinical_note_service.add_task({'patient_id': ana.id, 'content': ' '})
        with pytest.raises(NotFoundError):
            clinical_note_service.add_task({'patient_id': 'missing', 'content': 'x'})
        with pytest.raises(NotFoundError):
            clinical_note_service.add_task({'patient_id': ana.id, 'content': 'x', 'appointment_id': 999})

    def test_complete_task(self, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        saved = clinical_note_service.save_note(
            {'tasks': [{'text': 'a'}, {'text': 'b'}]}, appointment_id=appointment.id
        )
        clinical_note_service.complete_task(saved.id, 1)

        assert [t['completed'] for t in clinical_note_service.get_note(saved.id).get_tasks()] == [False, True]
        with pytest.raises(NotFoundError):
            clinical_note_service.complete_task(saved.id, 2)
        with pytest.raises(NotFoundError):
            clinical_note_service.complete_task(saved.id, -1)

    def test_pending_tasks_by_professional(self, ana, make_patient, make_appointment):
        bea = make_patient(name='Bea', fee=5000, professional='Dr. Other')
        late = make_appointment(ana, '2026-03-09')
        early = make_appointment(bea, '2026-02-16')
        clinical_note_service.save_note({'tasks': [{'text': 'ana task'}]}, appointment_id=late.id)
        clinical_note_service.save_note({'tasks': [{'text': 'bea task'}]}, appointment_id=early.id)

        pending = clinical_note_service.get_pending_tasks()
        assert [t['text'] for t in pending] == ['bea task', 'ana task']
        assert pending[0]['patient_name'] == 'Bea'

        mine = clinical_note_service.get_pending_tasks(professional='Dr. Test')
        assert [t['text'] for t in mine] == ['ana task']
        assert [t['text'] for t in clinical_note_service.get_pending_tasks(patient_id=bea.id)] == ['bea task']


class TestNotesApi:

    def test_note_workflow(self, client, auth_headers, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        response = client.post('/api/notes', json={
            'appointment_id': appointment.id,
            'content': 'Session notes',
            'tasks': [{'text': 'Send report'}],
        }, headers=auth_headers)
        assert response.status_code == 201
        created = response.get_json()['data']
        assert created['created_by'] == 'secretary'

        body = client.get(f'/api/notes/appointment/{appointment.id}', headers=auth_headers).get_json()
        assert body['data']['content'] == 'Session notes'

        listed = client.get(f'/api/notes?patient_id={ana.id}', headers=auth_headers).get_json()
        assert listed['total'] == 1

        appointment_data = client.get(f'/api/appointments/{appointment.id}', headers=auth_headers).get_json()['data']
        assert appointment_data['has_notes'] is True

        pending = client.get('/api/notes/tasks/pending', headers=auth_headers).get_json()
        assert [t['text'] for t in pending['data']] == ['Send report']
        assert pending['data'][0]['appointment_date'] == '2026-03-05'

        response = client.post(f"/api/notes/{created['id']}/tasks/0/complete", headers=auth_headers)
        assert response.status_code == 200
        assert client.get('/api/notes/tasks/pending', headers=auth_headers).get_json()['total'] == 0

    def test_update_and_add_task(self, client, auth_headers, ana, make_appointment):
        appointment = make_appointment(ana, '2026-03-05')
        created = client.post('/api/notes', json={'appointment_id': appointment.id, 'content': 'a'},
                              headers=auth_headers).get_json()['data']

        response = client.put(f"/api/notes/{created['id']}", json={'content': 'b'}, headers=auth_headers)
        assert response.get_json()['data']['content'] == 'b'

        response = client.post('/api/notes/tasks', json={'patient_id': ana.id, 'content': 'Call school'}, headers=auth_headers)
        assert response.status_code == 201
        assert response.get_json()['data']['type'] == 'task'

    def test_errors(self, client, auth_headers, ana):
        assert client.get('/api/notes', headers=auth_headers).status_code == 400
        assert client.get('/api/notes/appointment/999', headers=auth_headers).get_json()['data'] is None
        assert client.post('/api/notes/999/tasks/0/complete', headers=auth_headers).status_code == 404
        assert client.post('/api/notes/tasks', json={'patient_id': ana.id}, headers=auth_headers).status_code == 400
        assert client.get('/api/notes/tasks/pending').status_code == 401
