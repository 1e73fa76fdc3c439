from fastapi import APIRouter, Depends, Query

from controllers.cases import CaseLifecycleManager
from core.auth import CallerContext, get_caller
from core.errors import MediationError, StorageError
from database.database import get_db
from schema.case import (
    ActivityOut,
    CaseCreate,
    CaseDetailOut,
    CaseFilter,
    CaseOut,
    CaseUpdate,
    PartyCreate,
    PartyOut,
)
from schema.session import SessionOut
from utils.state import State

router = APIRouter()


@router.get("/")
async def get_cases(
    status: str = Query(None, description="Only cases with this status"),
    priority: str = Query(None, description="Only cases with this priority"),
    mediator_id: int = Query(None, description="Only cases assigned to this mediator"),
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        filters = CaseFilter(status=status, priority=priority, mediator_id=mediator_id)
        cases = CaseLifecycleManager(db).list(filters, caller)
        return {"cases": [CaseOut.model_validate(case) for case in cases]}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while fetching cases: {str(e)}")
        raise StorageError() from e


@router.get("/{case_id}")
async def get_case(
    case_id: int,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        detail = CaseLifecycleManager(db).get(case_id, caller)
        return {
            "case": CaseDetailOut.model_validate(detail["case"]),
            "parties": [PartyOut.model_validate(p) for p in detail["parties"]],
            "sessions": [SessionOut.model_validate(s) for s in detail["sessions"]],
            "activities": [ActivityOut.model_validate(a) for a in detail["activities"]],
        }
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while fetching case: {str(e)}")
        raise StorageError() from e


@router.post("/", status_code=201)
async def create_case(
    req: CaseCreate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        case = CaseLifecycleManager(db).create(req, caller)
        return {"message": "Case created successfully", "case": CaseOut.model_validate(case)}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while creating new case: {str(e)}")
        raise StorageError() from e


@router.put("/{case_id}")
async def update_case(
    case_id: int,
    req: CaseUpdate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        case = CaseLifecycleManager(db).update(case_id, req, caller)
        return {"message": "Case updated successfully", "case": CaseOut.model_validate(case)}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while updating case: {str(e)}")
        raise StorageError() from e


@router.delete("/{case_id}")
async def delete_case(
    case_id: int,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        CaseLifecycleManager(db).delete(case_id, caller)
        return {"message": "Case deleted successfully"}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while deleting case: {str(e)}")
        raise StorageError() from e


@router.post("/{case_id}/parties", status_code=201)
async def add_party(
    case_id: int,
    req: PartyCreate,
    caller: CallerContext = Depends(get_caller),
    db=Depends(get_db),
):
    try:
        party = CaseLifecycleManager(db).add_party(case_id, req, caller)
        return {"message": "Party added successfully", "party": PartyOut.model_validate(party)}
    except MediationError:
        raise
    except Exception as e:
        State.logger.error(f"An error occured while adding party: {str(e)}")
        raise StorageError() from e
