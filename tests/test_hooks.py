import time

import jwt
import pytest

from restpipe import (
    AuthenticationError,
    AuthorizationError,
    InactiveAccountError,
    Principal,
    authenticate,
    build_access_token,
    decode_access_token,
    require_active,
    require_owner_or_type,
    require_self_or_type,
    require_type,
    set_field_from_principal,
)
from restpipe.iam.tokens import extract_bearer_token

from conftest import Account, Post, make_context, run_async


SECRET = "hook-test-secret-with-at-least-32-bytes"


# =============================================================================
# Tokens
# =============================================================================


def test_access_token_round_trip():
    payload = decode_access_token(build_access_token(5, SECRET), SECRET)

    assert payload["sub"] == "5"
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_expired_token_is_rejected():
    token = build_access_token(5, SECRET, expires_minutes=-1)
    with pytest.raises(AuthenticationError):
        decode_access_token(token, SECRET)


def test_token_signed_with_another_secret_is_rejected():
    token = build_access_token(5, "another-secret-with-at-least-32-bytes!!")
    with pytest.raises(AuthenticationError):
        decode_access_token(token, SECRET)


def test_non_access_token_is_rejected():
    now = int(time.time())
    token = jwt.encode({"sub": "5", "type": "refresh", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token, SECRET)


@pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer   "])
def test_malformed_authorization_header(header):
    with pytest.raises(AuthenticationError):
        extract_bearer_token(header)


def test_bearer_scheme_is_case_insensitive():
    assert extract_bearer_token("bearer abc") == "abc"


# =============================================================================
# authenticate
# =============================================================================


@pytest.fixture()
def account(persistence):
    persistence.seed(Account, {"id": 10, "email": "a@b.com", "type": "user", "owner": "u1", "active": True})
    return persistence


def test_authenticate_sets_the_principal(account):
    token = build_access_token(10, SECRET)
    context = make_context(headers={"authorization": f"Bearer {token}"})

    run_async(authenticate(SECRET, Account, account)(context))

    assert context.principal.id == 10
    assert context.principal.type == "user"
    assert context.principal.owner == "u1"
    assert context.principal.active is True
    assert context.principal.extra["email"] == "a@b.com"


def test_authenticate_without_header(account):
    with pytest.raises(AuthenticationError):
        run_async(authenticate(SECRET, Account, account)(make_context()))
    assert account.calls == []


def test_authenticate_with_invalid_token(account):
    context = make_context(headers={"Authorization": "Bearer not-a-jwt"})
    with pytest.raises(AuthenticationError):
        run_async(authenticate(SECRET, Account, account)(context))
    assert context.principal is None


def test_authenticate_unknown_account(account):
    context = make_context(headers={"Authorization": f"Bearer {build_access_token(99, SECRET)}"})
    with pytest.raises(AuthenticationError):
        run_async(authenticate(SECRET, Account, account)(context))


# =============================================================================
# Authorization
# =============================================================================


def test_require_type(admin, writer):
    is_admin = require_type("admin")

    context = make_context()
    context.principal = admin
    assert is_admin(context) is None

    context.principal = writer
    with pytest.raises(AuthorizationError):
        is_admin(context)


def test_require_type_without_principal_is_unauthenticated():
    with pytest.raises(AuthenticationError):
        require_type("admin")(make_context())


def test_require_self_or_type(admin, writer, other_user):
    is_self = require_self_or_type("admin")

    for principal in (admin, writer):
        context = make_context(params={"id": "u1"})
        context.principal = principal
        assert is_self(context) is None

    context = make_context(params={"id": "u1"})
    context.principal = other_user
    with pytest.raises(AuthorizationError):
        is_self(context)


def test_require_self_with_missing_owner_is_denied():
    context = make_context(params={})
    context.principal = Principal(id=1, type="user", owner=None)
    with pytest.raises(AuthorizationError):
        require_self_or_type("admin")(context)


def test_owner_check_passes_for_the_owner(persistence, writer):
    persistence.seed(Post, {"id": "p1", "writer": "u1"})
    context = make_context(operation="edit", params={"id": "p1"})
    context.principal = writer

    assert run_async(require_owner_or_type(persistence, Post, "writer")(context)) is None


def test_owner_check_rejects_other_users(persistence, other_user):
    persistence.seed(Post, {"id": "p1", "writer": "u1"})
    context = make_context(operation="edit", params={"id": "p1"})
    context.principal = other_user

    with pytest.raises(AuthorizationError):
        run_async(require_owner_or_type(persistence, Post, "writer")(context))


def test_owner_check_rejects_missing_record(persistence, writer):
    context = make_context(operation="edit", params={"id": "missing"})
    context.principal = writer

    with pytest.raises(AuthorizationError):
        run_async(require_owner_or_type(persistence, Post, "writer")(context))


def test_owner_check_lets_admins_through_without_lookup(persistence, admin):
    context = make_context(operation="edit", params={"id": "p1"})
    context.principal = admin

    run_async(require_owner_or_type(persistence, Post, "writer")(context))

    assert persistence.calls == []


def test_set_field_from_principal(writer):
    context = make_context(operation="add", body={"title": "hi", "writer": "forged"})
    context.principal = writer

    set_field_from_principal("writer")(context)

    assert context.request.body == {"title": "hi", "writer": "u1"}


def test_require_active():
    check = require_active()

    context = make_context(operation="login")
    context.result = {"id": 1, "active": True}
    check(context)

    context.result = None
    check(context)

    context.result = {"id": 1, "active": False}
    with pytest.raises(InactiveAccountError) as excinfo:
        check(context)
    assert excinfo.value.status_code == 403
