"""
HTTP tests for the verifier dashboard.
"""

from portfolio_api import db
from portfolio_api.models import Experience, Education, Project, VerificationRequest
from tests.conftest import auth_headers

BASE = '/api/v0/verifier'


def _request(client, student, verifier, item, kind):
    response = client.post(
        f'/api/v0/verification/request/{kind}/{item.id}',
        json={'verifier_email': verifier.email},
        headers=auth_headers(student),
    )
    assert response.status_code == 201
    return response.get_json()['verification']['id']


class TestListRequests:

    def test_lists_live_pending_requests(self, client, student, verifier, experience, education):
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')

        response = client.get(f'{BASE}/requests', headers=auth_headers(verifier))

        assert response.status_code == 200
        body = response.get_json()
        assert body['pagination']['total'] == 2
        kinds = {r['item_type'] for r in body['requests']}
        assert kinds == {'EXPERIENCE', 'EDUCATION'}
        first = body['requests'][0]
        assert first['student']['email'] == 'sam@mit.edu'
        assert first['item']['title']
        assert 'token' not in first

    def test_filters_by_item_type(self, client, student, verifier, experience, education):
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')

        response = client.get(
            f'{BASE}/requests?item_type=education', headers=auth_headers(verifier)
        )

        requests = response.get_json()['requests']
        assert [r['item_type'] for r in requests] == ['EDUCATION']

    def test_status_filter(self, client, student, verifier, experience, education):
        request_id = _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')
        client.post(f'{BASE}/requests/{request_id}/approve', json={}, headers=auth_headers(verifier))

        pending = client.get(f'{BASE}/requests', headers=auth_headers(verifier)).get_json()
        approved = client.get(f'{BASE}/requests?status=APPROVED', headers=auth_headers(verifier)).get_json()
        everything = client.get(f'{BASE}/requests?status=ALL', headers=auth_headers(verifier)).get_json()

        assert [r['item_type'] for r in pending['requests']] == ['EDUCATION']
        assert [r['id'] for r in approved['requests']] == [request_id]
        assert everything['pagination']['total'] == 2

    def test_invalid_status_is_400(self, client, verifier):
        response = client.get(f'{BASE}/requests?status=EXPIRED', headers=auth_headers(verifier))

        assert response.status_code == 400

    def test_pagination(self, client, student, verifier, experience, education, project):
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')
        _request(client, student, verifier, project, 'PROJECT')

        response = client.get(f'{BASE}/requests?per_page=2&page=2', headers=auth_headers(verifier))

        body = response.get_json()
        assert len(body['requests']) == 1
        assert body['pagination']['pages'] == 2
        assert body['pagination']['has_prev'] is True

    def test_search_matches_item_title(self, client, student, verifier, experience, education, project):
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')
        _request(client, student, verifier, project, 'PROJECT')

        response = client.get(f'{BASE}/requests?search=RESEARCH', headers=auth_headers(verifier))

        body = response.get_json()
        assert [r['item_type'] for r in body['requests']] == ['EXPERIENCE']
        assert body['pagination']['total'] == 1

        response = client.get(f'{BASE}/requests?search=computer', headers=auth_headers(verifier))

        assert [r['item_type'] for r in response.get_json()['requests']] == ['EDUCATION']

    def test_search_matches_student_name(self, client, student, other_student, verifier, experience):
        other_item = Project(user_id=other_student.id, title='Robotics Club', description='Line follower')
        db.session.add(other_item)
        db.session.commit()
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, other_student, verifier, other_item, 'PROJECT')

        response = client.get(f'{BASE}/requests?search=olivia', headers=auth_headers(verifier))

        requests = response.get_json()['requests']
        assert len(requests) == 1
        assert requests[0]['student']['email'] == 'olivia@mit.edu'

    def test_search_treats_wildcards_literally(self, client, student, verifier, experience):
        _request(client, student, verifier, experience, 'EXPERIENCE')

        response = client.get(f'{BASE}/requests?search=%25', headers=auth_headers(verifier))

        assert response.get_json()['requests'] == []

    def test_requests_for_deleted_items_are_not_counted(self, client, student, verifier, experience, education):
        _request(client, student, verifier, experience, 'EXPERIENCE')
        _request(client, student, verifier, education, 'EDUCATION')
        db.session.delete(db.session.get(Experience, experience.id))
        db.session.commit()

        response = client.get(f'{BASE}/requests?per_page=1', headers=auth_headers(verifier))

        body = response.get_json()
        assert [r['item_type'] for r in body['requests']] == ['EDUCATION']
        assert body['pagination']['total'] == 1
        assert body['pagination']['pages'] == 1

    def test_only_own_requests_are_listed(self, client, student, verifier, stanford_verifier, experience):
        _request(client, student, verifier, experience, 'EXPERIENCE')

        response = client.get(f'{BASE}/requests', headers=auth_headers(stanford_verifier))

        assert response.get_json()['requests'] == []

    def test_students_are_denied(self, client, student):
        response = client.get(f'{BASE}/requests', headers=auth_headers(student))

        assert response.status_code == 403
        assert response.get_json()['message'] == 'Verifier role required'


class TestDashboardDecisions:

    def test_approve_by_id(self, client, student, verifier, experience):
        request_id = _request(client, student, verifier, experience, 'EXPERIENCE')

        response = client.post(
            f'{BASE}/requests/{request_id}/approve',
            json={'comment': 'Confirmed with department'},
            headers=auth_headers(verifier),
        )

        assert response.status_code == 200
        assert response.get_json()['verification']['status'] == 'APPROVED'
        item = db.session.get(Experience, experience.id)
        assert item.verified is True
        assert item.verifier_comment == 'Confirmed with department'

    def test_reject_by_id(self, client, student, verifier, education):
        request_id = _request(client, student, verifier, education, 'EDUCATION')

        response = client.post(
            f'{BASE}/requests/{request_id}/reject', json={}, headers=auth_headers(verifier)
        )

        assert response.status_code == 200
        item = db.session.get(Education, education.id)
        assert item.verified is False
        assert item.verified_by == 'val@mit.edu'

    def test_second_decision_is_404(self, client, student, verifier, experience):
        request_id = _request(client, student, verifier, experience, 'EXPERIENCE')
        client.post(f'{BASE}/requests/{request_id}/reject', json={}, headers=auth_headers(verifier))

        response = client.post(
            f'{BASE}/requests/{request_id}/approve', json={}, headers=auth_headers(verifier)
        )

        assert response.status_code == 404
        record = db.session.query(VerificationRequest).one()
        assert record.status == 'REJECTED'

    def test_request_for_another_verifier_is_404(self, client, student, verifier, stanford_verifier, experience):
        request_id = _request(client, student, verifier, experience, 'EXPERIENCE')

        response = client.post(
            f'{BASE}/requests/{request_id}/approve', json={}, headers=auth_headers(stanford_verifier)
        )

        assert response.status_code == 404

    def test_malformed_request_id_is_400(self, client, verifier):
        response = client.post(
            f'{BASE}/requests/abc/approve', json={}, headers=auth_headers(verifier)
        )

        assert response.status_code == 400
