import pytest

from controllers.access import ADMINS, MANAGERS, AccessController
from core.auth import CallerContext
from core.errors import AccessDenied
from models.cases import Case

CREATOR, MEDIATOR, PARTY, STRANGER = 10, 20, 30, 40


@pytest.fixture()
def access():
    return AccessController()


@pytest.fixture()
def case():
    return Case(id=1, created_by=CREATOR, assigned_mediator=MEDIATOR)


def test_admin_sees_and_changes_everything(access, case):
    admin = CallerContext(id=99, role="admin")
    assert access.can_view(admin, case, [])
    assert access.can_mutate(admin, MANAGERS, case)
    assert access.can_mutate(admin, ADMINS, case)


def test_mediator_limited_to_assigned_cases(access, case):
    assigned = CallerContext(id=MEDIATOR, role="mediator")
    other = CallerContext(id=STRANGER, role="mediator")
    assert access.can_view(assigned, case, [])
    assert access.can_mutate(assigned, MANAGERS, case)
    assert not access.can_view(other, case, [])
    assert not access.can_mutate(other, MANAGERS, case)


def test_mediator_cannot_delete(access, case):
    assigned = CallerContext(id=MEDIATOR, role="mediator")
    assert not access.can_mutate(assigned, ADMINS, case)


def test_client_views_own_and_party_cases(access, case):
    assert access.can_view(CallerContext(id=CREATOR, role="client"), case, [])
    assert access.can_view(CallerContext(id=PARTY, role="client"), case, [PARTY])
    assert not access.can_view(CallerContext(id=STRANGER, role="client"), case, [PARTY])


def test_client_never_mutates(access, case):
    creator = CallerContext(id=CREATOR, role="client")
    assert not access.can_mutate(creator, MANAGERS)
    assert not access.can_mutate(creator, MANAGERS, case)


def test_unassigned_case_hidden_from_mediators(access):
    unassigned = Case(id=2, created_by=CREATOR, assigned_mediator=None)
    assert not access.can_view(CallerContext(id=MEDIATOR, role="mediator"), unassigned, [])


def test_unknown_role_is_denied(access, case):
    guest = CallerContext(id=CREATOR, role="guest")
    assert not access.can_view(guest, case, [])
    assert not access.can_mutate(guest, {"guest"}, case)


def test_role_gate_without_case(access):
    assert access.can_mutate(CallerContext(id=1, role="mediator"), MANAGERS)
    assert not access.can_mutate(CallerContext(id=1, role="mediator"), ADMINS)


def test_require_helpers_raise_access_denied(access, case):
    stranger = CallerContext(id=STRANGER, role="client")
    with pytest.raises(AccessDenied):
        access.require_view(stranger, case)
    with pytest.raises(AccessDenied):
        access.require_mutate(stranger, MANAGERS, case)
