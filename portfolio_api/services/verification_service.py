"""
Verification workflow: request, review by token, approve, reject

A request moves PENDING -> APPROVED | REJECTED exactly once. A PENDING
request past ``expires_at`` is dead for every operation even though its
stored status never changes.
"""
from datetime import timedelta
from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from portfolio_api import db
from portfolio_api.models.verification import (
    VerificationRequest, pending_slot,
    STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUSES
)
from portfolio_api.models.verification_log import (
    ACTION_CREATED, ACTION_VIEWED, ACTION_APPROVED, ACTION_REJECTED
)
from portfolio_api.services.identity_service import IdentityLookup
from portfolio_api.services.item_store import ItemStore, parse_item_kind, parse_item_id
from portfolio_api.services.metrics_service import MetricsService
from portfolio_api.services.notification_service import QueuedNotifier
from portfolio_api.services.token_service import TokenIssuer
from portfolio_api.utils.audit import record_verification_event, list_verification_events
from portfolio_api.utils.errors import NotFound, Conflict, Forbidden, InvalidArgument
from portfolio_api.utils.common import (
    utcnow, as_utc, normalize_email, is_valid_email, mask_token, coerce_uuid
)

# One message for unknown, expired and decided tokens so a token holder
# learns nothing about which requests exist
TOKEN_NOT_AVAILABLE = 'Verification not found or expired'
DECISION_NOT_AVAILABLE = 'Verification not found, already processed, or expired'

INSERT_ATTEMPTS = 2

LOG_ACTIONS = {
    STATUS_APPROVED: ACTION_APPROVED,
    STATUS_REJECTED: ACTION_REJECTED,
}


def _iso(value):
    value = as_utc(value)
    return value.isoformat() if value is not None else None


class VerificationService:
    """Owns verification requests and their log; writes only the verification
    fields of portfolio items."""

    def __init__(self, db_session, items, identity, tokens=None, notifier=None,
                 clock=None, ttl_hours=72, comment_max_length=1000):
        self.db = db_session
        self.items = items
        self.identity = identity
        self.tokens = tokens or TokenIssuer()
        self.notifier = notifier or QueuedNotifier()
        self.clock = clock or utcnow
        self.ttl = timedelta(hours=ttl_hours)
        self.comment_max_length = comment_max_length

    # ------------------------------------------------------------------
    # Request creation
    # ------------------------------------------------------------------

    def request_verification(self, requester_id, item_kind, item_id, verifier_email):
        """
        Open a PENDING request for an item owned by ``requester_id``.

        Returns:
            VerificationRequest: the stored request, token included
        """
        verifier_email = normalize_email(verifier_email)
        if not verifier_email:
            raise InvalidArgument('Verifier email is required')
        if not is_valid_email(verifier_email):
            raise InvalidArgument('Please enter a valid verifier email')

        item_kind = parse_item_kind(item_kind)
        item_id = parse_item_id(item_id)
        label = item_kind.lower()

        item = self.items.find_owned(item_kind, item_id, requester_id)
        if item is None:
            raise NotFound(f"{label} not found", reason='item_missing')
        if item.verified:
            raise Conflict(f"{label} is already verified")

        verifier = self.identity.find_by_email(verifier_email)
        if verifier is None or not verifier.is_verifier:
            raise InvalidArgument('Verifier not found or not registered as verifier')

        requester = self.identity.find_by_id(requester_id)
        if requester is None or not requester.institute or not verifier.institute:
            raise Forbidden('Both student and verifier must have institutes associated')
        if requester.institute != verifier.institute:
            raise Forbidden('Verification can only be requested from verifiers in your institution')

        item_title = item.display_title
        requester_email, requester_name = requester.email, requester.name
        now = self.clock()
        slot = pending_slot(item_kind, item_id)

        for attempt in range(INSERT_ATTEMPTS):
            # Free the slot if its holder has expired; the unique slot column
            # then decides any race between concurrent creations
            self.db.execute(
                update(VerificationRequest)
                .where(VerificationRequest.pending_key == slot,
                       VerificationRequest.expires_at <= now)
                .values(pending_key=None)
                .execution_options(synchronize_session=False)
            )

            token = self.tokens.issue_unique(self._token_exists)
            record = VerificationRequest(
                item_id=item_id,
                item_kind=item_kind,
                verifier_email=verifier_email,
                token=token,
                status=STATUS_PENDING,
                expires_at=now + self.ttl,
                pending_key=slot,
                created_at=now,
                updated_at=now
            )
            self.db.add(record)
            try:
                self.db.flush()
                break
            except IntegrityError:
                self.db.rollback()
                if self._live_pending_exists(item_kind, item_id, now):
                    raise Conflict(f"Verification request already pending for this {label}")
                if attempt + 1 == INSERT_ATTEMPTS:
                    raise
                # The slot holder was decided or released after our insert collided
                current_app.logger.warning(
                    f"Pending slot {slot} freed during insert; retrying request creation"
                )
        self.db.commit()

        record_verification_event(
            self.db, record.id, ACTION_CREATED, requester_email,
            metadata={'verifier_email': verifier_email, 'item_type': item_kind},
            timestamp=now
        )
        MetricsService.track_request_created(item_kind)
        current_app.logger.info(
            f"Verification requested for {item_kind} {item_id} from {verifier_email} "
            f"(token {mask_token(token)})"
        )

        self._notify(
            'request', self.notifier.send_verification_requested,
            verifier_email, token, item_title, requester_name, item_kind
        )
        return record

    # ------------------------------------------------------------------
    # Token holder operations
    # ------------------------------------------------------------------

    def get_by_token(self, token, user_agent=None):
        """Review view of a live request; every successful read is logged"""
        now = self.clock()
        record = self.db.execute(
            select(VerificationRequest)
            .where(VerificationRequest.token == (token or ''),
                   VerificationRequest.expires_at > now)
        ).scalar_one_or_none()
        if record is None:
            current_app.logger.info(f"Token lookup refused for {mask_token(token)}")
            raise NotFound(TOKEN_NOT_AVAILABLE, reason='unknown_or_expired')

        item = self.items.find(record.item_kind, record.item_id)
        if item is None:
            current_app.logger.info(
                f"Token {mask_token(token)} refers to missing {record.item_kind} {record.item_id}"
            )
            raise NotFound(TOKEN_NOT_AVAILABLE, reason='item_missing')

        view = self.describe(record, item, now=now)
        record_verification_event(
            self.db, record.id, ACTION_VIEWED, record.verifier_email,
            metadata={'user_agent': (user_agent or '')[:500]},
            timestamp=now
        )
        return view

    def approve(self, token, actor_email, comment=None):
        return self._decide_by_token(token, STATUS_APPROVED, actor_email, comment)

    def reject(self, token, actor_email, comment=None):
        return self._decide_by_token(token, STATUS_REJECTED, actor_email, comment)

    def _decide_by_token(self, token, status, actor_email, comment):
        actor_email = self._clean_actor(actor_email)
        comment = self._clean_comment(comment)
        now = self.clock()

        record = self.db.execute(
            select(VerificationRequest).where(VerificationRequest.token == (token or ''))
        ).scalar_one_or_none()
        self._ensure_decidable(record, now)

        actor = self.identity.find_by_email(actor_email)
        actor_name = actor.name if actor is not None else actor_email
        return self._decide(record, status, actor_email, actor_name, comment, now, channel='token')

    # ------------------------------------------------------------------
    # Verifier dashboard operations
    # ------------------------------------------------------------------

    def decide_as_verifier(self, request_id, verifier, status, comment=None):
        """Approve or reject a request addressed to ``verifier`` by its id"""
        if status not in (STATUS_APPROVED, STATUS_REJECTED):
            raise InvalidArgument('Decision must be APPROVED or REJECTED')
        try:
            request_id = coerce_uuid(request_id)
        except ValueError:
            raise InvalidArgument('Invalid request ID')
        comment = self._clean_comment(comment)
        now = self.clock()

        record = self.db.execute(
            select(VerificationRequest)
            .where(VerificationRequest.id == request_id,
                   VerificationRequest.verifier_email == normalize_email(verifier.email))
        ).scalar_one_or_none()
        self._ensure_decidable(record, now)

        item = self.items.find(record.item_kind, record.item_id)
        owner = self.identity.find_by_id(item.user_id) if item is not None else None
        if owner is None or not verifier.institute or owner.institute != verifier.institute:
            raise Forbidden('Can only verify items from students in your institution')

        return self._decide(
            record, status, normalize_email(verifier.email), verifier.name, comment, now,
            channel='dashboard'
        )

    def verifier_queue(self, verifier_email, status=STATUS_PENDING, item_kind=None, search=None):
        """
        Select statement for requests addressed to a verifier, newest first.

        ``PENDING`` means live pending only; ``ALL`` disables the status filter.
        ``search`` matches the student's name or the item title, case-insensitively.
        Requests whose item no longer exists are left out.
        """
        status = (status or STATUS_PENDING).upper()
        if status != 'ALL' and status not in STATUSES:
            raise InvalidArgument(f"Invalid status. Must be one of: ALL, {', '.join(STATUSES)}")

        stmt = select(VerificationRequest).where(
            VerificationRequest.verifier_email == normalize_email(verifier_email)
        )
        if status != 'ALL':
            stmt = stmt.where(VerificationRequest.status == status)
        if status == STATUS_PENDING:
            stmt = stmt.where(VerificationRequest.expires_at > self.clock())
        if item_kind:
            stmt = stmt.where(VerificationRequest.item_kind == parse_item_kind(item_kind))
        stmt = stmt.where(self.items.match_clause(
            VerificationRequest.item_kind, VerificationRequest.item_id, search=search
        ))
        return stmt.order_by(VerificationRequest.created_at.desc())

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def history(self, requester_id, item_kind, item_id):
        """All requests ever made for an owned item, newest first"""
        item_kind = parse_item_kind(item_kind)
        item_id = parse_item_id(item_id)
        if self.items.find_owned(item_kind, item_id, requester_id) is None:
            raise NotFound(f"{item_kind.lower()} not found", reason='item_missing')

        now = self.clock()
        records = self.db.execute(
            select(VerificationRequest)
            .where(VerificationRequest.item_id == item_id,
                   VerificationRequest.item_kind == item_kind)
            .order_by(VerificationRequest.created_at.desc())
        ).scalars().all()
        return [record.to_dict(now=now) for record in records]

    def timeline(self, requester_id, request_id):
        """A request owned by ``requester_id`` with its log entries, oldest first"""
        try:
            request_id = coerce_uuid(request_id)
        except ValueError:
            raise InvalidArgument('Invalid request ID')

        record = self.db.get(VerificationRequest, request_id)
        if record is None or self.items.find_owned(
                record.item_kind, record.item_id, requester_id) is None:
            raise NotFound('Verification request not found')

        events = list_verification_events(self.db, record.id)
        return {
            'verification': record.to_dict(now=self.clock()),
            'events': [
                {
                    'action': event.action,
                    'actor_email': event.actor_email,
                    'metadata': event.context_metadata or {},
                    'timestamp': _iso(event.timestamp)
                }
                for event in events
            ]
        }

    def release_pending_for_item(self, item_kind, item_id):
        """
        Expire the live pending request of an item that is being deleted.

        Does not commit; the caller commits together with the deletion.
        """
        now = self.clock()
        result = self.db.execute(
            update(VerificationRequest)
            .where(VerificationRequest.item_kind == item_kind,
                   VerificationRequest.item_id == item_id,
                   VerificationRequest.status == STATUS_PENDING,
                   VerificationRequest.expires_at > now)
            .values(expires_at=now, pending_key=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            current_app.logger.info(
                f"Released {result.rowcount} pending verification(s) for deleted {item_kind} {item_id}"
            )
        return result.rowcount

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def describe(self, record, item=None, now=None):
        """Item snapshot, both identities and decision state of a request"""
        now = now or self.clock()
        if item is None:
            item = self.items.find(record.item_kind, record.item_id)

        student = self.identity.find_by_id(item.user_id) if item is not None else None
        verifier = self.identity.find_by_email(record.verifier_email)

        return {
            'id': str(record.id),
            'item_type': record.item_kind,
            'item_id': str(record.item_id),
            'item': item.snapshot() if item is not None else None,
            'student': student.public_identity() if student is not None else None,
            'verifier': verifier.public_identity() if verifier is not None
            else {'email': record.verifier_email},
            'status': record.status,
            'expired': record.status == STATUS_PENDING and record.is_expired(now),
            'requested_at': _iso(record.created_at),
            'comment': record.comment,
            'acted_by': record.acted_by,
            'acted_at': _iso(record.acted_at),
            'expires_at': _iso(record.expires_at)
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decide(self, record, status, actor_email, actor_name, comment, now, channel):
        item_kind, item_id, record_id = record.item_kind, record.item_id, record.id

        item = self.items.find(item_kind, item_id)
        if item is None:
            raise self._refused('item_missing', record_id)
        owner = self.identity.find_by_id(item.user_id)
        item_title = item.display_title

        # The status predicate makes concurrent decisions on one request
        # resolve to exactly one winner
        result = self.db.execute(
            update(VerificationRequest)
            .where(VerificationRequest.id == record_id,
                   VerificationRequest.status == STATUS_PENDING,
                   VerificationRequest.expires_at > now)
            .values(status=status, comment=comment, acted_by=actor_email,
                    acted_at=now, pending_key=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise self._refused('already_decided', record_id)

        if status == STATUS_APPROVED:
            self.items.mark_verified(item_kind, item_id, actor_email, comment, now)
        else:
            self.items.mark_decision(item_kind, item_id, actor_email, comment)
        self.db.commit()

        record_verification_event(
            self.db, record_id, LOG_ACTIONS[status], actor_email,
            metadata={'comment': comment, 'channel': channel},
            timestamp=now
        )
        MetricsService.track_decision(status, channel)
        current_app.logger.info(
            f"Verification {record_id} {status.lower()} by {actor_email} via {channel}"
        )

        if owner is not None:
            self._notify(
                'decision', self.notifier.send_decision,
                owner.email, item_title, item_kind, status, comment, actor_name
            )

        return {
            'id': str(record_id),
            'item_type': item_kind,
            'status': status,
            'comment': comment,
            'acted_by': actor_email,
            'acted_at': _iso(now)
        }

    def _ensure_decidable(self, record, now):
        if record is None:
            raise self._refused('unknown_token')
        if record.status != STATUS_PENDING:
            raise self._refused('already_decided', record.id)
        if record.is_expired(now):
            raise self._refused('expired', record.id)

    def _refused(self, reason, record_id=None):
        MetricsService.track_refused_decision(reason)
        current_app.logger.info(f"Decision refused ({reason}) for verification {record_id}")
        return NotFound(DECISION_NOT_AVAILABLE, reason=reason)

    def _clean_actor(self, actor_email):
        actor_email = normalize_email(actor_email)
        if not actor_email:
            raise InvalidArgument('Actor email is required')
        if not is_valid_email(actor_email):
            raise InvalidArgument('Please enter a valid actor email')
        return actor_email

    def _clean_comment(self, comment):
        if comment is None:
            return ''
        if not isinstance(comment, str):
            raise InvalidArgument('Comment must be text')
        comment = comment.strip()
        if len(comment) > self.comment_max_length:
            raise InvalidArgument(f"Comment must be at most {self.comment_max_length} characters")
        return comment

    def _token_exists(self, token):
        return self.db.execute(
            select(VerificationRequest.id).where(VerificationRequest.token == token)
        ).first() is not None

    def _live_pending_exists(self, item_kind, item_id, now):
        return self.db.execute(
            select(VerificationRequest.id)
            .where(VerificationRequest.item_kind == item_kind,
                   VerificationRequest.item_id == item_id,
                   VerificationRequest.status == STATUS_PENDING,
                   VerificationRequest.expires_at > now)
        ).first() is not None

    def _notify(self, kind, send, *args):
        try:
            sent = send(*args)
        except Exception as e:
            current_app.logger.warning(f"Notification ({kind}) failed: {e}")
            return False
        if not sent:
            current_app.logger.warning(f"Notification ({kind}) was not delivered")
        return sent


def get_verification_service():
    """Build the verification service for the current request"""
    session = db.session
    return VerificationService(
        session,
        items=ItemStore.for_session(session),
        identity=IdentityLookup(session),
        ttl_hours=current_app.config['VERIFICATION_TTL_HOURS'],
        comment_max_length=current_app.config['VERIFICATION_COMMENT_MAX_LENGTH']
    )
