"""
Item repositories for the verifiable portfolio item kinds
"""
from datetime import date
from sqlalchemy import and_, or_, select, update
from portfolio_api.models.experience import Experience
from portfolio_api.models.education import Education, COURSE_TYPES
from portfolio_api.models.project import Project, PROJECT_TYPES
from portfolio_api.models.user import User
from portfolio_api.models.verification import (
    ITEM_EXPERIENCE, ITEM_EDUCATION, ITEM_PROJECT, ITEM_KINDS
)
from portfolio_api.utils.errors import InvalidArgument
from portfolio_api.utils.common import coerce_uuid


def parse_item_kind(value):
    """Normalize an item kind from a path or payload"""
    kind = (value or '').strip().upper()
    if kind not in ITEM_KINDS:
        raise InvalidArgument(f"Invalid item type. Must be one of: {', '.join(ITEM_KINDS)}")
    return kind


def parse_item_id(value):
    try:
        return coerce_uuid(value)
    except (ValueError, TypeError):
        raise InvalidArgument('Invalid item ID')


def _parse_date(field, value):
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidArgument(f"{field} must be an ISO date (YYYY-MM-DD)")


def like_pattern(term):
    """Substring LIKE pattern with wildcards in ``term`` escaped"""
    escaped = term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f"%{escaped}%"


class ItemRepository:
    """Reads and verification writes for one item model"""

    model = None
    kind = None
    required_fields = ()
    optional_fields = ()
    date_fields = ()

    def __init__(self, db_session):
        self.db = db_session

    def find(self, item_id):
        return self.db.get(self.model, parse_item_id(item_id))

    def find_owned(self, item_id, owner_id):
        return (
            self.db.query(self.model)
            .filter(self.model.id == parse_item_id(item_id),
                    self.model.user_id == coerce_uuid(owner_id))
            .first()
        )

    def list_owned(self, owner_id):
        return (
            self.db.query(self.model)
            .filter(self.model.user_id == coerce_uuid(owner_id))
            .order_by(self.model.created_at.desc())
            .all()
        )

    def match_clause(self, item_id_column, search=None):
        """
        EXISTS clause for a live item with id ``item_id_column``.

        With ``search``, the item title or its owner's name must contain it.
        """
        sub = (
            select(self.model.id)
            .join(User, User.id == self.model.user_id)
            .where(self.model.id == item_id_column)
        )
        if search:
            pattern = like_pattern(search)
            title = getattr(self.model, self.model.title_attribute)
            sub = sub.where(or_(
                title.ilike(pattern, escape='\\'),
                User.name.ilike(pattern, escape='\\'),
            ))
        return sub.exists()

    def mark_verified(self, item_id, by, comment, at):
        """Flag the item verified; returns the number of rows touched"""
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == item_id)
            .values(verified=True, verified_at=at, verified_by=by, verifier_comment=comment)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def mark_decision(self, item_id, by, comment):
        """Record a rejection; ``verified`` stays false so the item can be resubmitted"""
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == item_id)
            .values(verified_by=by, verifier_comment=comment)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def create(self, owner_id, data):
        """Validate a payload and stage a new item for the owner"""
        data = data or {}
        missing = [f for f in self.required_fields if data.get(f) in (None, '')]
        if missing:
            raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")

        values = {}
        for field in self.required_fields + self.optional_fields:
            if field not in data:
                continue
            value = data[field]
            if field in self.date_fields:
                value = _parse_date(field, value)
            values[field] = value

        self.validate(values)
        item = self.model(user_id=coerce_uuid(owner_id), **values)
        self.db.add(item)
        return item

    def validate(self, values):
        start, end = values.get('start_date'), values.get('end_date')
        if start and end and end < start:
            raise InvalidArgument('End date must be after start date')
        attachments = values.get('attachments')
        if attachments is not None:
            if not isinstance(attachments, list) or not all(
                isinstance(a, str) and a.startswith(('http://', 'https://')) for a in attachments
            ):
                raise InvalidArgument('Attachments must be a list of valid URLs')

    def delete(self, item):
        self.db.delete(item)


class ExperienceRepository(ItemRepository):
    model = Experience
    kind = ITEM_EXPERIENCE
    required_fields = ('title', 'description', 'role', 'start_date')
    optional_fields = ('end_date', 'tags', 'attachments', 'is_public')
    date_fields = ('start_date', 'end_date')


class EducationRepository(ItemRepository):
    model = Education
    kind = ITEM_EDUCATION
    required_fields = ('course_type', 'course_name', 'board_or_university',
                       'school_or_college', 'passing_year')
    optional_fields = ('is_expected', 'grade', 'percentage', 'cgpa', 'description', 'attachments')

    def validate(self, values):
        super().validate(values)
        if values['course_type'] not in COURSE_TYPES:
            raise InvalidArgument(f"Invalid course type. Must be one of: {', '.join(COURSE_TYPES)}")
        try:
            year = int(values['passing_year'])
        except (TypeError, ValueError):
            raise InvalidArgument('passing_year must be a year')
        if year < 1990 or year > date.today().year + 10:
            raise InvalidArgument('passing_year is out of range')
        values['passing_year'] = year


class ProjectRepository(ItemRepository):
    model = Project
    kind = ITEM_PROJECT
    required_fields = ('title', 'description')
    optional_fields = ('category', 'project_type', 'github_url', 'live_url', 'skills_used',
                       'start_date', 'end_date', 'supervisor', 'attachments', 'is_public')
    date_fields = ('start_date', 'end_date')

    def validate(self, values):
        super().validate(values)
        project_type = values.get('project_type')
        if project_type is not None and project_type not in PROJECT_TYPES:
            raise InvalidArgument(f"Invalid project type. Must be one of: {', '.join(PROJECT_TYPES)}")


class ItemStore:
    """Routes item operations to the repository for an item kind"""

    def __init__(self, repositories):
        self.repositories = {repo.kind: repo for repo in repositories}

    @classmethod
    def for_session(cls, db_session):
        return cls([
            ExperienceRepository(db_session),
            EducationRepository(db_session),
            ProjectRepository(db_session),
        ])

    def repository(self, item_kind):
        kind = parse_item_kind(item_kind)
        return self.repositories[kind]

    def find(self, item_kind, item_id):
        return self.repository(item_kind).find(item_id)

    def find_owned(self, item_kind, item_id, owner_id):
        return self.repository(item_kind).find_owned(item_id, owner_id)

    def match_clause(self, kind_column, item_id_column, search=None):
        """Filter for rows whose (kind, id) columns point at an existing, matching item"""
        search = (search or '').strip()
        return or_(*[
            and_(kind_column == kind, repo.match_clause(item_id_column, search))
            for kind, repo in self.repositories.items()
        ])

    def mark_verified(self, item_kind, item_id, by, comment, at):
        return self.repository(item_kind).mark_verified(item_id, by, comment, at)

    def mark_decision(self, item_kind, item_id, by, comment):
        return self.repository(item_kind).mark_decision(item_id, by, comment)
