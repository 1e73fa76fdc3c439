from sqlalchemy.orm import Session, selectinload

from models.activity import CaseActivity
from utils.state import State

RECENT_ACTIVITY_LIMIT = 20


class ActivityLog:
    """Append-only audit trail keyed by case.

    ``append`` only adds to the caller's session; the row is committed by the
    same transaction as the change it describes.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(self, case_id: int, user_id: int, activity_type: str, description: str) -> CaseActivity:
        activity = CaseActivity(
            case_id=case_id,
            user_id=user_id,
            activity_type=activity_type,
            description=description,
        )
        self.db.add(activity)
        State.logger.info(f"Case {case_id}: {activity_type} by user {user_id}: {description}")
        return activity

    def recent(self, case_id: int, limit: int = RECENT_ACTIVITY_LIMIT) -> list[CaseActivity]:
        return (
            self.db.query(CaseActivity)
            .options(selectinload(CaseActivity.user))
            .filter(CaseActivity.case_id == case_id)
            .order_by(CaseActivity.created_at.desc(), CaseActivity.id.desc())
            .limit(limit)
            .all()
        )
