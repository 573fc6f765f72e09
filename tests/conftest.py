"""
Pytest configuration and shared fixtures for the verification API tests.
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("FLASK_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from datetime import date, datetime, timedelta, timezone

import jwt
import pytest
from flask import current_app

from portfolio_api import create_app, db
from portfolio_api.models import User, Experience, Education, Project
from portfolio_api.models.user import ROLE_STUDENT, ROLE_VERIFIER
from portfolio_api.services.identity_service import IdentityLookup
from portfolio_api.services.item_store import ItemStore
from portfolio_api.services.verification_service import VerificationService


class FakeClock:
    """Controllable stand-in for utcnow()"""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Notifier double that records calls; can be told to fail or raise"""

    def __init__(self):
        self.requested = []
        self.decisions = []
        self.result = True
        self.error = None

    def send_verification_requested(self, verifier_email, token, item_title, requester_name, item_kind):
        self.requested.append({
            'verifier_email': verifier_email,
            'token': token,
            'item_title': item_title,
            'requester_name': requester_name,
            'item_kind': item_kind,
        })
        if self.error:
            raise self.error
        return self.result

    def send_decision(self, owner_email, item_title, item_kind, status, comment, actor_name):
        self.decisions.append({
            'owner_email': owner_email,
            'item_title': item_title,
            'item_kind': item_kind,
            'status': status,
            'comment': comment,
            'actor_name': actor_name,
        })
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def app():
    """Fresh application with an empty in-memory database per test"""
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email, name, role, institute):
    user = User(email=email, name=name, role=role, institute=institute, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def student(app):
    return _make_user('sam@mit.edu', 'Sam Student', ROLE_STUDENT, 'MIT')


@pytest.fixture
def other_student(app):
    return _make_user('olivia@mit.edu', 'Olivia Other', ROLE_STUDENT, 'MIT')


@pytest.fixture
def verifier(app):
    return _make_user('val@mit.edu', 'Val Verifier', ROLE_VERIFIER, 'MIT')


@pytest.fixture
def stanford_verifier(app):
    return _make_user('sid@stanford.edu', 'Sid Stanford', ROLE_VERIFIER, 'Stanford')


@pytest.fixture
def experience(student):
    item = Experience(
        user_id=student.id,
        title='Research Assistant',
        description='Worked on distributed systems research',
        role='Assistant',
        start_date=date(2025, 1, 15),
        end_date=date(2025, 8, 31),
        attachments=['https://files.example.com/letter.pdf'],
    )
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def education(student):
    item = Education(
        user_id=student.id,
        course_type='BACHELORS',
        course_name='BSc Computer Science',
        board_or_university='MIT',
        school_or_college='School of Engineering',
        passing_year=2026,
    )
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def project(student):
    item = Project(
        user_id=student.id,
        title='Compiler Toolkit',
        description='A small optimizing compiler',
    )
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(app, clock, notifier):
    """Verification service wired to the test database, clock and notifier"""
    return VerificationService(
        db.session,
        items=ItemStore.for_session(db.session),
        identity=IdentityLookup(db.session),
        notifier=notifier,
        clock=clock,
        ttl_hours=app.config['VERIFICATION_TTL_HOURS'],
    )


def auth_headers(user):
    """Bearer header carrying a signed access token for ``user``"""
    config = current_app.config
    payload = {
        'sub': str(user.id),
        'role': user.role,
        'exp': datetime.now(timezone.utc) + timedelta(hours=1),
    }
    token = jwt.encode(payload, config['JWT_SECRET'], algorithm=config['JWT_ALGORITHM'])
    return {'Authorization': f'Bearer {token}'}
