"""
HTTP tests for the portfolio item collections.
"""

from portfolio_api import db
from portfolio_api.models import Experience, VerificationRequest
from tests.conftest import auth_headers

EXPERIENCE_PAYLOAD = {
    'title': 'Teaching Assistant',
    'description': 'Ran weekly lab sessions for intro programming',
    'role': 'TA',
    'start_date': '2025-09-01',
    'end_date': '2025-12-15',
    'tags': ['teaching'],
}


class TestExperienceCollection:

    def test_create_and_list(self, client, student):
        created = client.post(
            '/api/v0/experiences/', json=EXPERIENCE_PAYLOAD, headers=auth_headers(student)
        )

        assert created.status_code == 201
        experience = created.get_json()['experience']
        assert experience['title'] == 'Teaching Assistant'
        assert experience['start_date'] == '2025-09-01'
        assert experience['verified'] is False

        listed = client.get('/api/v0/experiences/', headers=auth_headers(student)).get_json()
        assert listed['count'] == 1
        assert listed['items'][0]['id'] == experience['id']

    def test_missing_fields_are_400(self, client, student):
        response = client.post(
            '/api/v0/experiences/', json={'title': 'Only a title'}, headers=auth_headers(student)
        )

        assert response.status_code == 400
        assert 'Missing required fields' in response.get_json()['error']

    def test_end_before_start_is_400(self, client, student):
        payload = dict(EXPERIENCE_PAYLOAD, end_date='2025-01-01')

        response = client.post('/api/v0/experiences/', json=payload, headers=auth_headers(student))

        assert response.status_code == 400

    def test_attachments_must_be_urls(self, client, student):
        payload = dict(EXPERIENCE_PAYLOAD, attachments=['file:///etc/passwd'])

        response = client.post('/api/v0/experiences/', json=payload, headers=auth_headers(student))

        assert response.status_code == 400

    def test_get_someone_elses_item_is_404(self, client, other_student, experience):
        response = client.get(
            f'/api/v0/experiences/{experience.id}', headers=auth_headers(other_student)
        )

        assert response.status_code == 404

    def test_delete_releases_pending_verification(self, client, student, verifier, experience):
        client.post(
            f'/api/v0/verification/request/EXPERIENCE/{experience.id}',
            json={'verifier_email': verifier.email},
            headers=auth_headers(student),
        )
        token = db.session.query(VerificationRequest).one().token
        item_id = experience.id

        response = client.delete(f'/api/v0/experiences/{item_id}', headers=auth_headers(student))

        assert response.status_code == 200
        assert response.get_json()['released_verifications'] == 1
        assert db.session.get(Experience, item_id) is None
        assert client.get(f'/api/v0/verification/{token}').status_code == 404
        approve = client.post(
            f'/api/v0/verification/{token}/approve', json={'actor_email': verifier.email}
        )
        assert approve.status_code == 404


class TestEducationCollection:

    def test_create(self, client, student):
        response = client.post(
            '/api/v0/education/',
            json={
                'course_type': 'MASTERS',
                'course_name': 'MEng EECS',
                'board_or_university': 'MIT',
                'school_or_college': 'EECS',
                'passing_year': '2027',
                'is_expected': True,
            },
            headers=auth_headers(student),
        )

        assert response.status_code == 201
        assert response.get_json()['education']['passing_year'] == 2027

    def test_invalid_course_type_is_400(self, client, student):
        response = client.post(
            '/api/v0/education/',
            json={
                'course_type': 'KINDERGARTEN',
                'course_name': 'Crayons',
                'board_or_university': 'MIT',
                'school_or_college': 'EECS',
                'passing_year': 2024,
            },
            headers=auth_headers(student),
        )

        assert response.status_code == 400


class TestProjectCollection:

    def test_create_and_get(self, client, student):
        created = client.post(
            '/api/v0/projects/',
            json={'title': 'Ray Tracer', 'description': 'Path tracing in Rust'},
            headers=auth_headers(student),
        ).get_json()['project']

        response = client.get(f'/api/v0/projects/{created["id"]}', headers=auth_headers(student))

        assert response.status_code == 200
        assert response.get_json()['project']['title'] == 'Ray Tracer'

    def test_invalid_project_type_is_400(self, client, student):
        response = client.post(
            '/api/v0/projects/',
            json={'title': 'X', 'description': 'Y', 'project_type': 'SECRET'},
            headers=auth_headers(student),
        )

        assert response.status_code == 400
