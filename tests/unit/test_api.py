"""
Unit tests for the HTTP API (summitdesk/api/app.py).

FastAPI's TestClient drives the app with the engine modules patched at the
names app.py imported. Admin routes get a real session token minted with a
patched secret.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from summitdesk.api import app as api
from summitdesk.api import auth
from summitdesk.engine.kinds import QUESTION, PARTNERSHIP, EXHIBITOR
from summitdesk.models import (
    Question, Partnership, Result,
    FAILURE_DUPLICATE, FAILURE_INVALID, FAILURE_NOT_FOUND,
)

QUESTION_ID = '3f2b8a1e-6c1d-4b57-9a7e-2d4c0f9e8b11'
CREATED = datetime(2026, 9, 1, 9, 0, tzinfo=timezone.utc)

PARTNERSHIP_FORM = {
    'organizationName': 'Kijani Bank', 'contactPerson': 'Wanjiru Kamau',
    'email': 'wanjiru@kijani.co.ke', 'phone': '+254712345678', 'supportType': 'financial',
}


@pytest.fixture
def client():
    # No `with`: the lifespan (log file, bus registration) is not run
    return TestClient(api.app)


@pytest.fixture
def admin_headers():
    with patch.object(auth.config, 'SESSION_SECRET_KEY', 'api-test-secret'):
        yield {'Authorization': f'Bearer {auth.create_session_token()}'}


@pytest.fixture
def mock_submissions():
    with patch('summitdesk.api.app.submissions') as mock:
        yield mock


@pytest.fixture
def mock_workflow():
    with patch('summitdesk.api.app.workflow') as mock:
        yield mock


# ---------------------------------------------------------------------------
# request_origin
# ---------------------------------------------------------------------------

class _Req:
    def __init__(self, headers, host='10.0.0.5'):
        self.headers = headers
        self.client = type('Client', (), {'host': host})()


def test_origin_prefers_first_forwarded_for():
    origin = api.request_origin(_Req({'x-forwarded-for': '41.90.1.2, 10.0.0.1', 'x-real-ip': '9.9.9.9'}))
    assert origin.ip_address == '41.90.1.2'


def test_origin_falls_back_to_real_ip_then_peer():
    assert api.request_origin(_Req({'x-real-ip': '9.9.9.9'})).ip_address == '9.9.9.9'
    assert api.request_origin(_Req({})).ip_address == '10.0.0.5'


def test_origin_user_agent_and_referrer():
    origin = api.request_origin(_Req({'user-agent': 'Mozilla/5.0', 'referer': 'https://summit.example.org'}))
    assert origin.user_agent == 'Mozilla/5.0'
    assert origin.referrer == 'https://summit.example.org'


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_health_ok(client):
    with patch('summitdesk.api.app.check_database', return_value=True):
        response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {'success': True, 'data': {'status': 'healthy', 'database': True}}


def test_health_degraded(client):
    with patch('summitdesk.api.app.check_database', return_value=False):
        response = client.get('/health')
    assert response.status_code == 503
    assert response.json()['data']['status'] == 'degraded'


# ---------------------------------------------------------------------------
# Public intake
# ---------------------------------------------------------------------------

def test_partnership_intake_created(client, mock_submissions):
    record = Partnership(id='p1', organization_name='Kijani Bank', email='wanjiru@kijani.co.ke',
                         created_at=CREATED, updated_at=CREATED)
    mock_submissions.create_partnership.return_value = Result.ok(record, 'Partnership inquiry submitted successfully!')

    response = client.post('/api/partnerships', json=PARTNERSHIP_FORM, headers={'X-Forwarded-For': '41.90.1.2'})

    assert response.status_code == 201
    body = response.json()
    assert body['success'] is True
    assert body['data']['organization_name'] == 'Kijani Bank'
    assert body['data']['created_at'] == '2026-09-01T09:00:00+00:00'

    payload, origin = mock_submissions.create_partnership.call_args[0]
    assert payload['organization_name'] == 'Kijani Bank'
    assert origin.ip_address == '41.90.1.2'


def test_partnership_duplicate_is_409(client, mock_submissions):
    mock_submissions.create_partnership.return_value = Result.fail('Already exists.', FAILURE_DUPLICATE)
    response = client.post('/api/partnerships', json=PARTNERSHIP_FORM)
    assert response.status_code == 409
    assert response.json() == {'success': False, 'error': 'Already exists.'}


def test_storage_failure_is_500(client, mock_submissions):
    mock_submissions.create_question.return_value = Result.fail('Failed to submit question. Please try again.')
    response = client.post('/api/questions', json={'name': 'Amina', 'question': 'How do I start a business?'})
    assert response.status_code == 500
    assert response.json()['success'] is False


def test_invalid_payload_never_reaches_engine(client, mock_submissions):
    response = client.post('/api/partnerships', json=dict(PARTNERSHIP_FORM, email='nope'))

    assert response.status_code == 400
    body = response.json()
    assert body['success'] is False
    assert 'email' in body['error']
    mock_submissions.create_partnership.assert_not_called()


@pytest.mark.parametrize("path, form, func", [
    ('/api/registrations', {'fullName': 'Brian Otieno', 'email': 'brian@example.com', 'phone': '0700000001',
                            'profession': 'Engineer', 'workshopPreference': 'innovation'}, 'create_registration'),
    ('/api/questions', {'question': 'How do I start a business?', 'isAnonymous': True}, 'create_question'),
    ('/api/feedback', {'fullName': 'Peter Mwangi', 'email': 'peter@example.com', 'dayAttended': 'partial',
                       'overallRating': 5, 'contentQuality': 4, 'speakerQuality': 4, 'organizationRating': 4,
                       'venueRating': 4, 'networkingRating': 4, 'mostValuable': 'Panels',
                       'improvements': 'Sound', 'futureTopics': 'AI'}, 'create_feedback'),
])
def test_intake_routes(client, mock_submissions, path, form, func):
    getattr(mock_submissions, func).return_value = Result.ok(None, 'Submitted')
    response = client.post(path, json=form)
    assert response.status_code == 201
    assert response.json() == {'success': True, 'message': 'Submitted'}


# ---------------------------------------------------------------------------
# Admin auth
# ---------------------------------------------------------------------------

def test_admin_route_requires_token(client, mock_workflow):
    response = client.get('/api/admin/questions')
    assert response.status_code == 401
    assert response.json() == {'success': False, 'error': 'Admin authentication required'}
    mock_workflow.list_records.assert_not_called()


def test_admin_route_rejects_bad_token(client, mock_workflow):
    response = client.get('/api/admin/questions', headers={'Authorization': 'Bearer forged'})
    assert response.status_code == 401


def test_login_success(client):
    ok = Result.ok({'token': 't', 'token_type': 'bearer', 'expires_in': 60}, 'Login successful')
    with patch('summitdesk.api.app.auth.login', return_value=ok) as login:
        response = client.post('/api/admin/login', json={'password': 'secret'})
    assert response.status_code == 200
    assert response.json()['data']['token'] == 't'
    login.assert_called_once_with('secret')


def test_login_failure_is_401(client):
    with patch('summitdesk.api.app.auth.verify_admin_password', return_value=False):
        response = client.post('/api/admin/login', json={'password': 'ype2025'})
    assert response.status_code == 401
    assert response.json() == {'success': False, 'error': 'Invalid password'}


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------

def test_list_passes_status_and_filters(client, admin_headers, mock_workflow):
    mock_workflow.list_records.return_value = Result.ok([])
    response = client.get('/api/admin/exhibitors?status=approved&category=agritech&name=ignored',
                          headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {'success': True, 'data': []}
    kind = mock_workflow.list_records.call_args[0][0]
    assert kind is EXHIBITOR
    assert mock_workflow.list_records.call_args.kwargs == {'status': 'approved', 'filters': {'category': 'agritech'}}


def test_unknown_kind_is_404(client, admin_headers):
    response = client.get('/api/admin/speakers', headers=admin_headers)
    assert response.status_code == 404
    assert response.json()['success'] is False


def test_stats_route(client, admin_headers, mock_workflow):
    mock_workflow.record_stats.return_value = Result.ok({'total': 2, 'pending': 2})
    response = client.get('/api/admin/partnerships/stats', headers=admin_headers)
    assert response.json()['data'] == {'total': 2, 'pending': 2}
    mock_workflow.record_stats.assert_called_once_with(PARTNERSHIP)


def test_get_missing_is_404(client, admin_headers, mock_workflow):
    mock_workflow.get_record.return_value = Result.fail('Question not found', FAILURE_NOT_FOUND)
    response = client.get(f'/api/admin/questions/{QUESTION_ID}', headers=admin_headers)
    assert response.status_code == 404


def test_status_update_question_answered(client, admin_headers, mock_workflow):
    answered = Question(id=QUESTION_ID, status='answered', is_answered=True, answered_by='Admin')
    mock_workflow.transition.return_value = Result.ok(answered, 'Question status updated successfully')

    response = client.patch(f'/api/admin/questions/{QUESTION_ID}/status',
                            json={'status': 'answered', 'answeredBy': 'Admin'}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()['data']['is_answered'] is True
    args, kwargs = mock_workflow.transition.call_args
    assert args == (QUESTION, QUESTION_ID, 'answered')
    assert kwargs == {'reviewed_by': 'Admin', 'side_fields': {}}


def test_status_update_partnership_side_fields(client, admin_headers, mock_workflow):
    mock_workflow.transition.return_value = Result.ok(Partnership(id='p1', status='confirmed'))
    client.patch('/api/admin/partnerships/p1/status',
                 json={'status': 'confirmed', 'partnershipTier': 'gold', 'partnershipValue': 50000},
                 headers=admin_headers)
    side = mock_workflow.transition.call_args.kwargs['side_fields']
    assert side['partnership_tier'] == 'gold'
    assert side['partnership_value'] == 50000


def test_status_update_invalid_body(client, admin_headers, mock_workflow):
    response = client.patch('/api/admin/registrations/r1/status',
                            json={'status': 'paid', 'paymentMethod': 'cheque'}, headers=admin_headers)
    assert response.status_code == 400
    mock_workflow.transition.assert_not_called()


def test_status_update_rejected_status_is_400(client, admin_headers, mock_workflow):
    mock_workflow.transition.return_value = Result.fail("Invalid status 'done'", FAILURE_INVALID)
    response = client.patch('/api/admin/feedback/f1/status', json={'status': 'done'}, headers=admin_headers)
    assert response.status_code == 400


def test_delete_route(client, admin_headers, mock_workflow):
    mock_workflow.delete_record.return_value = Result.ok(message='Question deleted successfully')
    response = client.delete(f'/api/admin/questions/{QUESTION_ID}', headers=admin_headers)
    assert response.json() == {'success': True, 'message': 'Question deleted successfully'}
    mock_workflow.delete_record.assert_called_once_with(QUESTION, QUESTION_ID)


def test_upvote_route(client, admin_headers, mock_submissions):
    mock_submissions.upvote_question.return_value = Result.ok(Question(id=QUESTION_ID, upvotes=1, status='reviewed'))
    response = client.post(f'/api/admin/questions/{QUESTION_ID}/upvote', headers=admin_headers)
    assert response.json()['data']['upvotes'] == 1


def test_registration_by_email_not_captured_by_id_route(client, admin_headers, mock_submissions, mock_workflow):
    mock_submissions.find_registration_by_email.return_value = Result.ok(None)
    response = client.get('/api/admin/registrations/by-email?email=brian@example.com', headers=admin_headers)
    assert response.status_code == 200
    mock_submissions.find_registration_by_email.assert_called_once_with('brian@example.com')
    mock_workflow.get_record.assert_not_called()


def test_dashboard_route(client, admin_headers):
    with patch('summitdesk.api.app.dashboard.get_dashboard_stats', return_value=Result.ok({'analytics': {'total': 0}})):
        response = client.get('/api/admin/dashboard', headers=admin_headers)
    assert response.json()['data'] == {'analytics': {'total': 0}}


def test_analytics_daily_days_validated(client, admin_headers):
    response = client.get('/api/admin/analytics/daily?days=0', headers=admin_headers)
    assert response.status_code == 400


def test_analytics_daily_route(client, admin_headers):
    with patch('summitdesk.api.app.analytics.daily_counts', return_value=Result.ok([])) as daily:
        client.get('/api/admin/analytics/daily?days=7', headers=admin_headers)
    daily.assert_called_once_with(7)


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

def test_documents_public(client):
    with patch('summitdesk.api.app.library.list_documents', return_value=Result.ok([])) as docs:
        response = client.get('/api/documents?category=resources')
    assert response.status_code == 200
    docs.assert_called_once_with('resources')


def test_document_delete_is_admin_only(client):
    with patch('summitdesk.api.app.library.delete_document') as delete:
        response = client.delete('/api/admin/documents/resources/doc-abc')
    assert response.status_code == 401
    delete.assert_not_called()


def test_gallery_public(client):
    with patch('summitdesk.api.app.library.list_gallery_photos', return_value=Result.ok([])):
        response = client.get('/api/gallery')
    assert response.json() == {'success': True, 'data': []}


def test_partnership_value_beyond_integer_column_is_400(client, admin_headers, mock_workflow):
    response = client.patch('/api/admin/partnerships/p1/status',
                            json={'status': 'confirmed', 'partnershipValue': 3_000_000_000},
                            headers=admin_headers)
    assert response.status_code == 400
    assert 'partnershipValue' in response.json()['error']
    mock_workflow.transition.assert_not_called()


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

def test_startup_configures_server_logging():
    with patch('summitdesk.api.app.configure_logging') as configure, \
         patch('summitdesk.api.app.analytics.register_handlers') as register:
        with TestClient(api.app):
            pass
    configure.assert_called_once_with(server=True)
    register.assert_called_once_with()
