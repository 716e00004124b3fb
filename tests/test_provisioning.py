import pytest

from pantry_app.core.events import DataScopes, data_changes
from pantry_app.modules.auth.schemas import AuthPrincipal
from pantry_app.modules.households.service import HouseholdContextService
from pantry_app.modules.users.service import ProvisioningError, UserContextService, parse_user_id
from tests.conftest import FakeSupabase, make_token

USER_ID = "0b6e4a0c-7f0e-4c1b-a7a2-2d8c3f4e5a61"
EMAIL = "jo.ann-smith@example.com"


def _principal(user_id=USER_ID, email=EMAIL):
    return AuthPrincipal(
        user_id=user_id,
        email=email,
        access_token=make_token(user_id, email),
        refresh_token="r",
    )


def _service(backend, principal=None):
    principal = principal or _principal()
    return HouseholdContextService(FakeSupabase(backend), principal), principal


@pytest.fixture
def scopes():
    seen = []
    data_changes.subscribe(seen.append)
    yield seen
    data_changes.unsubscribe(seen.append)


def test_parse_user_id_normalizes_and_rejects():
    assert parse_user_id(USER_ID.upper()) == USER_ID
    for bad in (None, "", "not-a-uuid"):
        with pytest.raises(ProvisioningError):
            parse_user_id(bad)


def test_first_call_creates_profile_household_and_owner_membership(backend, scopes):
    service, principal = _service(backend)
    user, group = service.ensure_for_principal(principal)

    assert user.user_id == USER_ID
    assert user.display_name == "Jo Ann Smith"
    assert group.name == "Jo Ann Smith's Household"
    assert group.created_by_user == USER_ID
    memberships = backend.rows("group_members")
    assert len(memberships) == 1
    assert memberships[0]["group_id"] == group.group_id
    assert memberships[0]["user_id"] == USER_ID
    assert memberships[0]["role"] == "owner"
    assert DataScopes.HOUSEHOLD in scopes


def test_repeated_provisioning_is_idempotent(backend):
    service, principal = _service(backend)
    first_user, first_group = service.ensure_for_principal(principal)
    second_user, second_group = service.ensure_for_principal(principal)

    assert first_user.user_id == second_user.user_id
    assert first_group.group_id == second_group.group_id
    assert len(backend.rows("users")) == 1
    assert len(backend.rows("groups")) == 1
    assert len(backend.rows("group_members")) == 1


def test_preferred_display_name_wins(backend):
    service, principal = _service(backend)
    user, group = service.ensure_for_principal(principal, "  mary   JANE ")
    assert user.display_name == "Mary Jane"
    assert group.name == "Mary Jane's Household"


def test_email_drift_updates_the_profile(backend, scopes):
    backend.seed("users", user_id=USER_ID, email="old@example.com", display_name="Jo")
    service, principal = _service(backend)

    user, _ = service.ensure_for_principal(principal)

    assert user.email == EMAIL
    assert backend.rows("users")[0]["email"] == EMAIL
    assert backend.rows("users")[0]["display_name"] == "Jo"
    assert DataScopes.PROFILE in scopes


def test_email_case_difference_is_not_a_change(backend, scopes):
    backend.seed("users", user_id=USER_ID, email=EMAIL.upper(), display_name="Jo")
    service, principal = _service(backend)
    service.ensure_for_principal(principal)

    assert backend.rows("users")[0]["email"] == EMAIL.upper()
    assert DataScopes.PROFILE not in scopes


def test_profile_insert_race_rereads_once(backend):
    def concurrent_insert():
        backend.seed("users", user_id=USER_ID, email=EMAIL, display_name="From Trigger")

    backend.insert_failures["users"] = concurrent_insert
    service, principal = _service(backend)

    user, _ = service.ensure_for_principal(principal)
    assert user.display_name == "From Trigger"
    assert len(backend.rows("users")) == 1


def test_profile_insert_failure_propagates_when_row_is_still_missing(backend):
    backend.insert_failures["users"] = lambda: None
    service, principal = _service(backend)

    with pytest.raises(RuntimeError, match="duplicate key"):
        service.ensure_for_principal(principal)


def test_dangling_membership_gets_a_new_household(backend):
    backend.seed("users", user_id=USER_ID, email=EMAIL, display_name="Jo")
    backend.seed("group_members", group_id="gone", user_id=USER_ID, role="member")
    service, principal = _service(backend)

    _, group = service.ensure_for_principal(principal)
    assert group.group_id != "gone"
    assert group.name == "Jo's Household"


def test_invalid_user_id_is_rejected(backend):
    principal = AuthPrincipal(user_id="nope", email=EMAIL)
    service = HouseholdContextService(FakeSupabase(backend), principal)
    with pytest.raises(ProvisioningError, match="user id"):
        service.ensure_for_principal(principal)
    assert backend.rows("users") == []


def test_missing_email_is_rejected(backend):
    principal = AuthPrincipal(user_id=USER_ID)
    service = HouseholdContextService(FakeSupabase(backend), principal)
    with pytest.raises(ProvisioningError, match="email"):
        service.ensure_for_principal(principal)


def test_blank_email_claim_falls_back_to_the_sdk_session(backend):
    token = make_token(USER_ID, EMAIL)
    principal = AuthPrincipal(user_id=USER_ID, email="  ", access_token=token, refresh_token="r")
    service = HouseholdContextService(FakeSupabase(backend), principal)

    user, _ = service.ensure_for_principal(principal)
    assert user.email == EMAIL


def test_ensure_context_reports_the_role(backend):
    service, principal = _service(backend)
    context = service.ensure_context(principal)
    assert context.role == "owner"
    assert context.user_id == USER_ID


def test_read_only_lookup_never_writes(backend):
    principal = _principal()
    user, group = UserContextService(FakeSupabase(backend), principal).get_for_principal(principal)

    assert user.display_name == "Jo Ann Smith"
    assert group is None
    assert backend.rows("users") == []
    assert backend.rows("groups") == []


def test_read_only_lookup_fills_blank_fields_in_memory(backend):
    backend.seed("users", user_id=USER_ID, email="", display_name="")
    principal = _principal()
    user, _ = UserContextService(FakeSupabase(backend), principal).get_for_principal(principal)

    assert user.email == EMAIL
    assert user.display_name == "Jo Ann Smith"
    assert backend.rows("users")[0]["display_name"] == ""
