import datetime

from sqlalchemy.orm import Session, selectinload

from controllers.access import MANAGERS, AccessController
from controllers.activity import ActivityLog
from controllers.numbering import SessionNumberGenerator
from core.auth import CallerContext
from core.errors import NotFound
from database.database import transaction
from models.cases import Case
from models.session import COMPLETED_STATUS, Session as MediationSession, SessionParticipant
from models.user import User
from schema.session import SessionCreate, SessionUpdate
from utils.patch import apply_patch
from utils.state import State

SESSION_PATCH_FIELDS = (
    "title",
    "description",
    "scheduled_date",
    "duration_minutes",
    "status",
    "location",
    "meeting_link",
    "notes",
)


def _format_date(value) -> str:
    return value.isoformat() if isinstance(value, datetime.datetime) else str(value)


class SessionLifecycleManager:
    """Scheduling of mediation sessions under a case.

    Visibility and edit rights follow the parent case. Every change that
    matters to the case history is written to the case's activity log in the
    same transaction.
    """

    def __init__(self, db: Session, access: AccessController | None = None):
        self.db = db
        self.access = access or AccessController()
        self.activities = ActivityLog(db)
        self.numbers = SessionNumberGenerator(db)

    def _load_case(self, case_id: int) -> Case:
        case = (
            self.db.query(Case)
            .options(selectinload(Case.parties))
            .filter(Case.id == case_id)
            .first()
        )
        if not case:
            State.logger.error(f"Case with ID {case_id} not found")
            raise NotFound("Case not found")
        return case

    def _load(self, session_id: int) -> MediationSession:
        session = self.db.get(MediationSession, session_id)
        if not session:
            State.logger.error(f"Session with ID {session_id} not found")
            raise NotFound("Session not found")
        return session

    def list_by_case(self, case_id: int, caller: CallerContext) -> list[MediationSession]:
        case = self._load_case(case_id)
        self.access.require_view(caller, case)
        return (
            self.db.query(MediationSession)
            .options(
                selectinload(MediationSession.participants).selectinload(
                    SessionParticipant.user
                )
            )
            .filter(MediationSession.case_id == case_id)
            .order_by(MediationSession.scheduled_date.desc(), MediationSession.id.desc())
            .all()
        )

    def create(self, payload: SessionCreate, caller: CallerContext) -> MediationSession:
        self.access.require_mutate(caller, MANAGERS)
        with transaction(self.db):
            case = self._load_case(payload.case_id)
            self.access.require_mutate(caller, MANAGERS, case)
            session = MediationSession(
                case_id=case.id,
                session_number=self.numbers.allocate(case.id),
                title=payload.title,
                description=payload.description or None,
                scheduled_date=payload.scheduled_date,
                duration_minutes=payload.duration_minutes,
                location=payload.location,
                meeting_link=payload.meeting_link or None,
            )
            self.db.add(session)
            self.activities.append(
                case.id,
                caller.id,
                "session_scheduled",
                f'Session "{payload.title}" scheduled for {payload.scheduled_label}',
            )
        State.logger.info(
            f"Session {session.session_number} scheduled on case {payload.case_id} by user {caller.id}"
        )
        return session

    def update(self, session_id: int, update: SessionUpdate, caller: CallerContext) -> MediationSession:
        self.access.require_mutate(caller, MANAGERS)
        with transaction(self.db):
            session = self._load(session_id)
            self.access.require_mutate(caller, MANAGERS, self._load_case(session.case_id))
            patch = update.patch()
            changes = apply_patch(session, patch, SESSION_PATCH_FIELDS)
            if patch.get("status") == COMPLETED_STATUS:
                session.completed_at = datetime.datetime.now(datetime.UTC)
            elif "status" in patch:
                # completed_at only stands while the session is completed
                session.completed_at = None

            summary = []
            old_status, new_status = changes.get("status", (None, None))
            if new_status is not None and new_status != old_status:
                summary.append(f'Status changed from "{old_status}" to "{new_status}"')
            old_date, new_date = changes.get("scheduled_date", (None, None))
            if new_date is not None and _naive(new_date) != _naive(old_date):
                summary.append(f"Rescheduled to {_format_date(new_date)}")
            if summary:
                self.activities.append(
                    session.case_id,
                    caller.id,
                    "session_updated",
                    f'Session "{session.title}": ' + "; ".join(summary),
                )
        State.logger.info(f"Session {session_id} updated by user {caller.id}: {sorted(changes)}")
        return session

    def add_participant(self, session_id: int, user_id: int, caller: CallerContext) -> SessionParticipant:
        self.access.require_mutate(caller, MANAGERS)
        with transaction(self.db):
            session = self._load(session_id)
            self.access.require_mutate(caller, MANAGERS, self._load_case(session.case_id))
            if not self.db.get(User, user_id):
                State.logger.error(f"User with ID {user_id} not found")
                raise NotFound("User not found")
            participant = SessionParticipant(
                session_id=session.id, user_id=user_id, attendance_status="invited"
            )
            self.db.add(participant)
            self.activities.append(
                session.case_id,
                caller.id,
                "participant_added",
                f'Participant added to session "{session.title}"',
            )
        State.logger.info(f"User {user_id} invited to session {session_id}")
        return participant


def _naive(value):
    # SQLite hands datetimes back without tzinfo; compare wall-clock UTC.
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        return value.astimezone(datetime.UTC).replace(tzinfo=None)
    return value
