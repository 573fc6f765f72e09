"""
Tests for health endpoints and bearer token validation.
"""

from datetime import datetime, timedelta, timezone

import jwt

from portfolio_api import db
from tests.conftest import auth_headers


class TestHealth:

    def test_health_check(self, client):
        response = client.get('/api/v0/health/')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'

    def test_database_health(self, client):
        response = client.get('/api/v0/health/database')

        assert response.status_code == 200
        assert response.get_json()['database'] == 'connected'

    def test_metrics_exposes_verification_counters(self, client, student, verifier, experience):
        client.post(
            f'/api/v0/verification/request/EXPERIENCE/{experience.id}',
            json={'verifier_email': verifier.email},
            headers=auth_headers(student),
        )

        response = client.get('/api/v0/health/metrics')

        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert 'verification_requests_created_total{item_kind="EXPERIENCE"}' in text


class TestBearerAuth:

    def test_missing_token(self, client):
        response = client.get('/api/v0/experiences/')

        assert response.status_code == 401
        assert response.get_json()['message'] == 'No access token provided'

    def test_garbage_token(self, client):
        response = client.get('/api/v0/experiences/', headers={'Authorization': 'Bearer nope'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Invalid token'

    def test_expired_token(self, app, client, student):
        token = jwt.encode(
            {'sub': str(student.id), 'role': student.role,
             'exp': datetime.now(timezone.utc) - timedelta(minutes=5)},
            app.config['JWT_SECRET'],
            algorithm=app.config['JWT_ALGORITHM'],
        )

        response = client.get('/api/v0/experiences/', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Token expired'

    def test_inactive_user(self, client, student):
        headers = auth_headers(student)
        student.is_active = False
        db.session.commit()

        response = client.get('/api/v0/experiences/', headers=headers)

        assert response.status_code == 401
        assert response.get_json()['message'] == 'User account is inactive'

    def test_access_token_header(self, client, student):
        token = auth_headers(student)['Authorization'].split(' ', 1)[1]

        response = client.get('/api/v0/experiences/', headers={'X-Access-Token': token})

        assert response.status_code == 200
