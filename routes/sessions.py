from fastapi import APIRouter, Depends

from controllers.sessions import SessionLifecycleManager
from core.auth import CallerContext, get_caller
from core.errors import MediationError, StorageError
from database.database import get_db
from schema.session import (
    ParticipantCreate,
    ParticipantOut,
    SessionCreate,
    SessionOut,
    SessionUpdate,
    SessionWithParticipantsOut,
)
from utils.state import State

router = APIRouter()


@router.get("/case/{case_id}")
async def get_case_sessions(
    case_id: int,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        sessions = SessionLifecycleManager(db).list_by_case(case_id, caller)
        return {"sessions": [SessionWithParticipantsOut.model_validate(s) for s in sessions]}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while fetching sessions: {str(e)}")
        raise StorageError() from e


@router.post("/", status_code=201)
async def create_session(
    req: SessionCreate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        session = SessionLifecycleManager(db).create(req, caller)
        return {"message": "Session created successfully", "session": SessionOut.model_validate(session)}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while creating session: {str(e)}")
        raise StorageError() from e


@router.put("/{session_id}")
async def update_session(
    session_id: int,
    req: SessionUpdate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        session = SessionLifecycleManager(db).update(session_id, req, caller)
        return {"message": "Session updated successfully", "session": SessionOut.model_validate(session)}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while updating session: {str(e)}")
        raise StorageError() from e


@router.post("/{session_id}/participants", status_code=201)
async def add_participant(
    session_id: int,
    req: ParticipantCreate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        participant = SessionLifecycleManager(db).add_participant(session_id, req.user_id, caller)
        return {
            "message": "Participant added successfully",
            "participant": ParticipantOut.model_validate(participant),
        }
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while adding participant: {str(e)}")
        raise StorageError() from e
