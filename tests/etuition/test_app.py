import pytest
from fastapi.testclient import TestClient

from etuition.auth.jwt_handler import create_access_token
from etuition.main import app


class OfflineGateway:
    def close(self) -> None:
        pass


@pytest.fixture
def client(database):
    app.state.database = database
    app.state.payment_gateway = OfflineGateway()
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.database = None
        app.state.payment_gateway = None


def _auth(email: str) -> dict:
    return {'Authorization': f'Bearer {create_access_token(email)}'}


def test_health_reports_database_status(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'Server Running'
    assert body['db_status'] == 'Connected'
    assert body['db_error'] is None


def test_protected_route_requires_token(client) -> None:
    response = client.get('/my-tuitions')

    assert response.status_code == 401
    assert response.json()['detail'] == 'Unauthorized access: No token provided'


def test_role_gate_rejects_wrong_role(client, make_user) -> None:
    make_user('student@example.com')

    response = client.get('/users', headers=_auth('student@example.com'))

    assert response.status_code == 403
    assert response.json()['detail'] == 'Forbidden: Admin access required'


def test_student_posts_tuition_and_admin_publishes_it(client, make_user) -> None:
    make_user('student@example.com')
    make_user('admin@example.com', role='admin')

    created = client.post(
        '/tuitions-post',
        json={'subject': 'Physics', 'class': 'Class 10', 'location': 'Gulshan, Dhaka', 'salary': 7000},
        headers=_auth('student@example.com'),
    )
    assert created.status_code == 201
    tuition = created.json()
    assert tuition['class'] == 'Class 10'
    assert tuition['status'] == 'pending'

    assert client.get('/tuitions').json()['total'] == 0

    published = client.patch(
        f"/tuition-status/{tuition['id']}",
        json={'status': 'approved'},
        headers=_auth('admin@example.com'),
    )
    assert published.status_code == 200

    listing = client.get('/tuitions', params={'search': 'phys', 'limit': 9}).json()
    assert listing['total'] == 1
    assert listing['currentPage'] == 1
    assert listing['totalPages'] == 1
    assert listing['data'][0]['class'] == 'Class 10'


def test_read_all_route_is_not_shadowed_by_item_route(client) -> None:
    response = client.patch('/notifications/read-all', headers=_auth('student@example.com'))

    assert response.status_code == 200
    assert response.json() == {'success': True, 'updated': 0}


def test_invalid_payload_returns_validation_error(client, make_user) -> None:
    make_user('student@example.com')

    response = client.post('/reviews', json={'tutor_email': 'tutor@example.com', 'rating': 9},
                           headers=_auth('student@example.com'))

    assert response.status_code == 422


def test_conversation_routes_return_serialized_conversations(client, make_user) -> None:
    make_user('student@example.com')
    make_user('tutor@example.com', role='tutor', name='Rahim Uddin')

    started = client.post(
        '/conversations',
        json={'recipient_email': 'tutor@example.com'},
        headers=_auth('student@example.com'),
    )
    assert started.status_code == 200
    conversation = started.json()
    assert sorted(conversation['participants']) == ['student@example.com', 'tutor@example.com']
    assert conversation['other_participant'] is None

    listed = client.get('/my-conversations', headers=_auth('student@example.com'))
    assert listed.status_code == 200
    body = listed.json()
    assert [row['id'] for row in body] == [conversation['id']]
    assert body[0]['other_participant'] == {
        'email': 'tutor@example.com',
        'name': 'Rahim Uddin',
        'photo_url': None,
    }


def test_application_alias_routes_match_primary_routes(client, make_user, make_tuition) -> None:
    make_user('student@example.com')
    make_user('tutor@example.com', role='tutor')
    tuition = make_tuition('student@example.com')

    applied = client.post(
        '/tuition-application',
        json={'tuition_id': tuition.id},
        headers=_auth('tutor@example.com'),
    )
    assert applied.status_code == 201

    applicants = client.get(f'/applied-tutors/{tuition.id}', headers=_auth('student@example.com'))
    assert applicants.status_code == 200
    assert [row['tutor_email'] for row in applicants.json()] == ['tutor@example.com']
    assert applicants.json() == client.get(
        f'/applications/{tuition.id}',
        headers=_auth('student@example.com'),
    ).json()
