"""Unit tests for acl/store.py -- grant, check, and revoke of ACL triples.

Covers:
- grant_access() then has_access() is True; revoke_access() makes it False
- duplicate grant raises IntegrityError and leaves one row
- check_access() raises AccessDeniedError with the resource named in the message
- revoke_access() on a missing triple raises AclEntryNotFoundError
- revoke_all() clears every grant on one resource only
- grants join a caller's transaction and roll back with it
- deleting a user cascades to their ACL rows
- unknown resource types are rejected
"""

import pytest
from sqlalchemy.exc import IntegrityError

from acl.models import ResourceType
from acl.store import ACLStore
from auth.store import UserStore
from core.errors import AccessDeniedError, AclEntryNotFoundError, ErrorCode
from core.schema import users

PROJECT = ResourceType.PROJECT


@pytest.fixture
def stores(memory_db):
    """(user_store, acl_store, db) with two users: alice (id 1) and bob (id 2)."""
    user_store = UserStore(memory_db)
    user_store.create("alice", "pw1")
    user_store.create("bob", "pw2")
    return user_store, ACLStore(memory_db), memory_db


def test_grant_then_has_access(stores):
    _, acl, _ = stores
    assert acl.has_access(1, PROJECT, 42) is False
    acl.grant_access(1, PROJECT, 42)
    assert acl.has_access(1, PROJECT, 42) is True


def test_grant_is_per_user_and_per_resource(stores):
    _, acl, _ = stores
    acl.grant_access(1, PROJECT, 42)
    assert acl.has_access(2, PROJECT, 42) is False
    assert acl.has_access(1, PROJECT, 43) is False


def test_has_access_is_repeatable(stores):
    _, acl, _ = stores
    acl.grant_access(1, PROJECT, 42)
    assert [acl.has_access(1, PROJECT, 42) for _ in range(3)] == [True, True, True]
    assert [acl.has_access(2, PROJECT, 42) for _ in range(3)] == [False, False, False]


def test_duplicate_grant_raises_integrity_error(stores):
    _, acl, _ = stores
    acl.grant_access(1, PROJECT, 42)
    with pytest.raises(IntegrityError):
        acl.grant_access(1, PROJECT, 42)
    assert acl.has_access(1, PROJECT, 42) is True


def test_grant_for_unknown_user_raises_integrity_error(stores):
    _, acl, _ = stores
    with pytest.raises(IntegrityError):
        acl.grant_access(999, PROJECT, 42)


def test_check_access_raises_access_denied(stores):
    _, acl, _ = stores
    with pytest.raises(AccessDeniedError) as exc_info:
        acl.check_access(1, PROJECT, 99)
    assert exc_info.value.code is ErrorCode.ACCESS_DENIED
    assert exc_info.value.message == "User 1 does not have access to resource Project 99"


def test_revoke_removes_access(stores):
    _, acl, _ = stores
    acl.grant_access(1, PROJECT, 42)
    acl.revoke_access(1, PROJECT, 42)
    assert acl.has_access(1, PROJECT, 42) is False


def test_revoke_missing_entry_raises_not_found(stores):
    _, acl, _ = stores
    with pytest.raises(AclEntryNotFoundError):
        acl.revoke_access(1, PROJECT, 42)


def test_revoke_all_only_touches_one_resource(stores):
    _, acl, _ = stores
    acl.grant_access(1, PROJECT, 42)
    acl.grant_access(2, PROJECT, 42)
    acl.grant_access(1, PROJECT, 7)

    assert acl.revoke_all(PROJECT, 42) == 2
    assert acl.has_access(1, PROJECT, 42) is False
    assert acl.has_access(2, PROJECT, 42) is False
    assert acl.has_access(1, PROJECT, 7) is True


def test_resource_type_accepts_enum_value_string(stores):
    _, acl, _ = stores
    acl.grant_access(1, "Project", 42)
    assert acl.has_access(1, PROJECT, 42) is True


def test_unknown_resource_type_rejected(stores):
    _, acl, _ = stores
    with pytest.raises(ValueError):
        acl.grant_access(1, "Folder", 42)


def test_grant_joins_caller_transaction_and_rolls_back(stores):
    _, acl, db = stores
    with pytest.raises(RuntimeError):
        with db.transaction() as conn:
            acl.grant_access(1, PROJECT, 42, conn=conn)
            assert acl.has_access(1, PROJECT, 42, conn=conn) is True
            raise RuntimeError("abort")
    assert acl.has_access(1, PROJECT, 42) is False


def test_grant_commits_with_caller_transaction(stores):
    _, acl, db = stores
    with db.transaction() as conn:
        acl.grant_access(1, PROJECT, 42, conn=conn)
        acl.grant_access(2, PROJECT, 42, conn=conn)
    assert acl.has_access(1, PROJECT, 42) is True
    assert acl.has_access(2, PROJECT, 42) is True


def test_user_delete_cascades_to_acl(stores):
    _, acl, db = stores
    acl.grant_access(1, PROJECT, 42)
    acl.grant_access(2, PROJECT, 42)
    with db.transaction() as conn:
        conn.execute(users.delete().where(users.c.id == 1))
    assert acl.has_access(1, PROJECT, 42) is False
    assert acl.has_access(2, PROJECT, 42) is True


def test_alice_grant_check_revoke_flow(memory_db):
    """create alice -> grant Project 42 -> check ok, 99 denied -> revoke -> 42 denied."""
    user_store = UserStore(memory_db)
    acl = ACLStore(memory_db)

    alice = user_store.create("alice", "pw1")
    assert alice.id == 1

    acl.grant_access(alice.id, PROJECT, 42)
    acl.check_access(alice.id, PROJECT, 42)
    with pytest.raises(AccessDeniedError):
        acl.check_access(alice.id, PROJECT, 99)

    acl.revoke_access(alice.id, PROJECT, 42)
    with pytest.raises(AccessDeniedError):
        acl.check_access(alice.id, PROJECT, 42)
