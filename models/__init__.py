from models.user import User
from models.cases import Case, CaseParty
from models.session import Session, SessionParticipant
from models.activity import CaseActivity
from models.sequence import SequenceCounter

__all__ = [
    "User",
    "Case",
    "CaseParty",
    "Session",
    "SessionParticipant",
    "CaseActivity",
    "SequenceCounter",
]
