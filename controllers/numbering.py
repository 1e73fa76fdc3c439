"""Human-readable sequence numbers for cases and sessions.

Numbers come from the ``sequence_counters`` table. The increment is a single
``UPDATE ... SET value = value + 1``, so the row lock held until commit keeps
two transactions from ever reading the same value. Counting existing rows
instead would hand out duplicates under concurrent creates.
"""
import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import StorageError
from models.cases import Case
from models.sequence import SequenceCounter
from models.session import Session as MediationSession
from utils.state import State

CASE_NUMBER_PREFIX = "MED"


def next_value(db: Session, scope: str, key: str, floor: int = 0) -> int:
    """Atomically bump and return the counter for ``(scope, key)``.

    A missing counter row is created at ``floor + 1``. If a concurrent
    transaction creates the row first, the insert fails on the primary key
    and the increment is retried once.
    """
    for attempt in range(2):
        result = db.execute(
            update(SequenceCounter)
            .where(SequenceCounter.scope == scope, SequenceCounter.key == key)
            .values(value=SequenceCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return db.execute(
                select(SequenceCounter.value).where(
                    SequenceCounter.scope == scope, SequenceCounter.key == key
                )
            ).scalar_one()
        try:
            with db.begin_nested():
                db.add(SequenceCounter(scope=scope, key=key, value=floor + 1))
            return floor + 1
        except IntegrityError:
            State.logger.warning(
                f"Counter {scope}/{key} created concurrently, retrying (attempt {attempt + 1})"
            )
    raise StorageError(f"Could not allocate a {scope} number")


def drop_counter(db: Session, scope: str, key: str) -> None:
    db.query(SequenceCounter).filter(
        SequenceCounter.scope == scope, SequenceCounter.key == key
    ).delete(synchronize_session=False)


class CaseNumberGenerator:
    scope = "case"

    def __init__(self, db: Session):
        self.db = db

    def _highest_existing(self, year: int) -> int:
        prefix = f"{CASE_NUMBER_PREFIX}-{year}-"
        latest = self.db.execute(
            select(func.max(Case.case_number)).where(Case.case_number.like(f"{prefix}%"))
        ).scalar()
        return int(latest[len(prefix):]) if latest else 0

    def allocate(self, year: int | None = None) -> str:
        year = year or datetime.datetime.now(datetime.UTC).year
        seq = next_value(self.db, self.scope, str(year), floor=self._highest_existing(year))
        return f"{CASE_NUMBER_PREFIX}-{year}-{seq:04d}"


class SessionNumberGenerator:
    scope = "session"

    def __init__(self, db: Session):
        self.db = db

    def allocate(self, case_id: int) -> int:
        highest = self.db.execute(
            select(func.max(MediationSession.session_number)).where(
                MediationSession.case_id == case_id
            )
        ).scalar()
        return next_value(self.db, self.scope, str(case_id), floor=highest or 0)

    def release(self, case_id: int) -> None:
        """Forget the counter of a deleted case."""
        drop_counter(self.db, self.scope, str(case_id))
