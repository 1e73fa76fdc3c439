import datetime

from sqlalchemy.orm import Session, selectinload

from controllers.access import ADMINS, MANAGERS, AccessController
from controllers.activity import ActivityLog
from controllers.numbering import CaseNumberGenerator, SessionNumberGenerator
from core.auth import CallerContext
from core.errors import NotFound
from database.database import transaction
from models.cases import RESOLVED_STATUSES, Case, CaseParty
from models.session import Session as MediationSession
from models.user import User
from schema.case import CaseCreate, CaseFilter, CaseUpdate, PartyCreate
from utils.patch import apply_patch
from utils.state import State

CASE_PATCH_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "category",
    "assigned_mediator",
    "resolution_summary",
)


class CaseLifecycleManager:
    """Case and case-party operations, each gated by the caller's role."""

    def __init__(self, db: Session, access: AccessController | None = None):
        self.db = db
        self.access = access or AccessController()
        self.activities = ActivityLog(db)
        self.numbers = CaseNumberGenerator(db)

    def _load(self, case_id: int) -> Case:
        case = (
            self.db.query(Case)
            .options(
                selectinload(Case.creator),
                selectinload(Case.mediator),
                selectinload(Case.parties),
            )
            .filter(Case.id == case_id)
            .first()
        )
        if not case:
            State.logger.error(f"Case with ID {case_id} not found")
            raise NotFound("Case not found")
        return case

    def _require_user(self, user_id: int) -> None:
        if not self.db.get(User, user_id):
            State.logger.error(f"User with ID {user_id} not found")
            raise NotFound("User not found")

    def list(self, filters: CaseFilter, caller: CallerContext) -> list[Case]:
        query = self.db.query(Case).options(
            selectinload(Case.creator), selectinload(Case.mediator)
        )
        query = self.access.scope(query, caller)
        if filters.status:
            query = query.filter(Case.status == filters.status)
        if filters.priority:
            query = query.filter(Case.priority == filters.priority)
        if filters.mediator_id:
            query = query.filter(Case.assigned_mediator == filters.mediator_id)
        return query.order_by(Case.created_at.desc(), Case.id.desc()).all()

    def get(self, case_id: int, caller: CallerContext) -> dict:
        case = self._load(case_id)
        self.access.require_view(caller, case)
        parties = (
            self.db.query(CaseParty)
            .options(selectinload(CaseParty.user))
            .filter(CaseParty.case_id == case_id)
            .order_by(CaseParty.id)
            .all()
        )
        sessions = (
            self.db.query(MediationSession)
            .filter(MediationSession.case_id == case_id)
            .order_by(MediationSession.scheduled_date.desc(), MediationSession.id.desc())
            .all()
        )
        return {
            "case": case,
            "parties": parties,
            "sessions": sessions,
            "activities": self.activities.recent(case_id),
        }

    def create(self, payload: CaseCreate, caller: CallerContext) -> Case:
        with transaction(self.db):
            case = Case(
                case_number=self.numbers.allocate(),
                title=payload.title,
                description=payload.description,
                category=payload.category or None,
                priority=payload.priority or "medium",
                status="pending",
                created_by=caller.id,
            )
            self.db.add(case)
            self.db.flush()
            self.activities.append(
                case.id, caller.id, "case_created", f'Case "{case.title}" was created'
            )
        State.logger.info(f"Case {case.case_number} created by user {caller.id}")
        return case

    def update(self, case_id: int, update: CaseUpdate, caller: CallerContext) -> Case:
        self.access.require_mutate(caller, MANAGERS)
        with transaction(self.db):
            case = self._load(case_id)
            self.access.require_mutate(caller, MANAGERS, case)
            patch = update.patch()
            if "assigned_mediator" in patch and patch["assigned_mediator"] is not None:
                self._require_user(patch["assigned_mediator"])
            changes = apply_patch(case, patch, CASE_PATCH_FIELDS)
            if patch.get("status") in RESOLVED_STATUSES:
                case.resolution_date = datetime.datetime.now(datetime.UTC)

            summary = []
            old_status, new_status = changes.get("status", (None, None))
            if "status" in changes and new_status != old_status:
                summary.append(f'Status changed from "{old_status}" to "{new_status}"')
            old_mediator, new_mediator = changes.get("assigned_mediator", (None, None))
            if new_mediator is not None and new_mediator != old_mediator:
                summary.append("Mediator assigned")
            if summary:
                self.activities.append(case.id, caller.id, "case_updated", "; ".join(summary))
        State.logger.info(f"Case {case_id} updated by user {caller.id}: {sorted(changes)}")
        return case

    def delete(self, case_id: int, caller: CallerContext) -> None:
        self.access.require_mutate(caller, ADMINS)
        with transaction(self.db):
            case = self._load(case_id)
            self.access.require_mutate(caller, ADMINS, case)
            self.db.delete(case)
            SessionNumberGenerator(self.db).release(case_id)
        State.logger.info(f"Case {case_id} deleted by user {caller.id}")

    def add_party(self, case_id: int, payload: PartyCreate, caller: CallerContext) -> CaseParty:
        self.access.require_mutate(caller, MANAGERS)
        with transaction(self.db):
            case = self._load(case_id)
            self.access.require_mutate(caller, MANAGERS, case)
            self._require_user(payload.user_id)
            party = CaseParty(
                case_id=case.id,
                user_id=payload.user_id,
                party_type=payload.party_type,
                organization=payload.organization or None,
                representative=payload.representative or None,
            )
            self.db.add(party)
            self.activities.append(
                case.id, caller.id, "party_added", f"Party added as {payload.party_type}"
            )
        State.logger.info(f"User {payload.user_id} added to case {case_id} as {payload.party_type}")
        return party
