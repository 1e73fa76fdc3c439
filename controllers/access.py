"""Role policies deciding who may see or change a case and its sessions.

Each role has one policy object. Callers go through ``AccessController``,
which looks the policy up by ``caller.role`` and denies everything for a
role it does not know.
"""
from typing import Iterable

from sqlalchemy import false, or_, select
from sqlalchemy.orm import Query

from core.auth import CallerContext
from core.errors import AccessDenied
from models.cases import Case, CaseParty
from utils.state import State

MANAGERS = frozenset({"admin", "mediator"})
ADMINS = frozenset({"admin"})


class RolePolicy:
    role: str = ""

    def can_view(self, caller: CallerContext, case: Case, party_user_ids: set[int]) -> bool:
        return False

    def can_mutate_case(self, caller: CallerContext, case: Case) -> bool:
        return False

    def scope(self, query: Query, caller: CallerContext) -> Query:
        return query.filter(false())


class AdminPolicy(RolePolicy):
    role = "admin"

    def can_view(self, caller, case, party_user_ids):
        return True

    def can_mutate_case(self, caller, case):
        return True

    def scope(self, query, caller):
        return query


class MediatorPolicy(RolePolicy):
    role = "mediator"

    def can_view(self, caller, case, party_user_ids):
        return case.assigned_mediator == caller.id

    def can_mutate_case(self, caller, case):
        return case.assigned_mediator == caller.id

    def scope(self, query, caller):
        return query.filter(Case.assigned_mediator == caller.id)


class ClientPolicy(RolePolicy):
    role = "client"

    def can_view(self, caller, case, party_user_ids):
        return case.created_by == caller.id or caller.id in party_user_ids

    def scope(self, query, caller):
        party_cases = select(CaseParty.case_id).where(CaseParty.user_id == caller.id)
        return query.filter(
            or_(Case.created_by == caller.id, Case.id.in_(party_cases))
        )


POLICIES = {policy.role: policy for policy in (AdminPolicy(), MediatorPolicy(), ClientPolicy())}


class AccessController:
    def policy_for(self, caller: CallerContext) -> RolePolicy:
        return POLICIES.get(caller.role, RolePolicy())

    def can_view(self, caller: CallerContext, case: Case, parties: Iterable) -> bool:
        party_user_ids = {
            party if isinstance(party, int) else party.user_id for party in parties
        }
        return self.policy_for(caller).can_view(caller, case, party_user_ids)

    def can_mutate(
        self,
        caller: CallerContext,
        allowed_roles: Iterable[str],
        case: Case | None = None,
    ) -> bool:
        """Role gate, plus the per-case rule when ``case`` is given."""
        if caller.role not in allowed_roles:
            return False
        if case is None:
            return True
        return self.policy_for(caller).can_mutate_case(caller, case)

    def scope(self, query: Query, caller: CallerContext) -> Query:
        return self.policy_for(caller).scope(query, caller)

    def require_view(self, caller: CallerContext, case: Case) -> None:
        if not self.can_view(caller, case, case.parties):
            State.logger.warning(
                f"User {caller.id} ({caller.role}) denied view on case {case.id}"
            )
            raise AccessDenied()

    def require_mutate(
        self,
        caller: CallerContext,
        allowed_roles: Iterable[str],
        case: Case | None = None,
    ) -> None:
        if not self.can_mutate(caller, allowed_roles, case):
            State.logger.warning(
                f"User {caller.id} ({caller.role}) denied change"
                + (f" on case {case.id}" if case is not None else "")
            )
            raise AccessDenied()
