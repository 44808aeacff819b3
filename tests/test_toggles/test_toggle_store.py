import re
import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from models import FeatureToggle
from toggles.errors import (
    BadInputError,
    NotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
    WriteConflictError,
)
from toggles.store import ToggleStore, normalize_tags


def test_create_new_group_mints_id_and_secret(test_db):
    toggle, secret = ToggleStore(test_db).create("myKey", "true")

    assert re.fullmatch(r"[0-9a-f-]{36}\|myKey", toggle.key)
    assert uuid.UUID(toggle.key.split("|")[0]).version == 4
    assert secret is not None and len(secret) >= 32
    assert toggle.secret == secret
    assert toggle.value == "true"


@pytest.mark.parametrize("name", ["", "plain", "with space", "ünïcode"])
def test_create_keeps_name_as_suffix(test_db, name):
    toggle, _ = ToggleStore(test_db).create(name, "false")
    group, suffix = toggle.key.split("|", 1)
    uuid.UUID(group)
    assert suffix == name


def test_create_in_existing_group_requires_secret(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("first")
    store = ToggleStore(test_db)

    toggle, secret = store.create(f"{group_id}|second", "true", secret=group_secret)

    assert secret is None
    assert toggle.secret == group_secret

    with pytest.raises(UnauthorizedError):
        store.create(f"{group_id}|third", "true", secret="wrong")
    assert store.find(f"{group_id}|third") is None


def test_create_in_unknown_group_is_not_found(test_db):
    with pytest.raises(NotFoundError):
        ToggleStore(test_db).create(f"{uuid.uuid4()}|x", "true", secret="whatever")
    assert test_db.query(FeatureToggle).count() == 0


def test_create_duplicate_is_write_conflict(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("dup")
    with pytest.raises(WriteConflictError):
        ToggleStore(test_db).create(f"{group_id}|dup", "true", secret=group_secret)
    assert test_db.query(FeatureToggle).count() == 1


def test_create_rejects_non_literal_value(test_db):
    with pytest.raises(BadInputError):
        ToggleStore(test_db).create("k", "yes")


def test_create_normalizes_schedule_and_tags(test_db, utc):
    toggle, _ = ToggleStore(test_db).create(
        "k", "false", active_at=utc(2030, 1, 1), tags=[" beta ", "", "beta", "ui"]
    )
    assert toggle.to_dict()["activeAt"] == "2030-01-01T00:00:00+00:00"
    assert toggle.tags == ["beta", "ui"]


def test_create_storage_failure_is_reported(test_db):
    store = ToggleStore(test_db)
    with patch.object(test_db, "commit", side_effect=OperationalError("INSERT", {}, Exception("gone"))):
        with pytest.raises(StorageUnavailableError):
            store.create("k", "true")


def test_read_exact_and_group(test_db, seed_toggle, group_id):
    seed_toggle("b")
    seed_toggle("a")
    store = ToggleStore(test_db)

    assert store.read(f"{group_id}|a").key == f"{group_id}|a"
    listing = store.read(group_id)
    assert [t.key for t in listing] == [f"{group_id}|a", f"{group_id}|b"]


def test_read_prefers_exact_bare_group_key(test_db, seed_toggle, group_id):
    seed_toggle(key=group_id)
    seed_toggle("other")
    assert ToggleStore(test_db).read(group_id).key == group_id


def test_read_missing(test_db, seed_toggle, group_id):
    seed_toggle("a")
    store = ToggleStore(test_db)
    with pytest.raises(NotFoundError):
        store.read("nope")
    with pytest.raises(NotFoundError):
        store.read(f"{group_id}|nope")
    with pytest.raises(NotFoundError):
        store.read(str(uuid.uuid4()))


def test_read_group_filters_by_all_tags(test_db, seed_toggle, group_id):
    seed_toggle("a", tags=["beta", "ui"])
    seed_toggle("b", tags=["beta"])
    seed_toggle("c", tags=[])
    store = ToggleStore(test_db)

    assert [t.key for t in store.read(group_id, tags=["beta"])] == [f"{group_id}|a", f"{group_id}|b"]
    assert [t.key for t in store.read(group_id, tags=["beta", "ui"])] == [f"{group_id}|a"]
    with pytest.raises(NotFoundError):
        store.read(group_id, tags=["missing"])


def test_activate_and_deactivate(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a", value="false")
    store = ToggleStore(test_db)

    assert store.activate(f"{group_id}|a", group_secret).value == "true"
    assert store.deactivate(f"{group_id}|a", group_secret).value == "false"


def test_activate_checks_secret_before_existence(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a")
    store = ToggleStore(test_db)

    with pytest.raises(UnauthorizedError):
        store.activate(f"{group_id}|missing", "wrong")
    with pytest.raises(NotFoundError):
        store.activate(f"{group_id}|missing", group_secret)


def test_activate_wrong_secret_leaves_value(test_db, seed_toggle, group_id):
    toggle = seed_toggle("a", value="false")
    with pytest.raises(UnauthorizedError):
        ToggleStore(test_db).activate(toggle.key, "wrong")
    test_db.refresh(toggle)
    assert toggle.value == "false"


def test_schedule_sets_timestamps_only(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a", value="false")
    store = ToggleStore(test_db)

    toggle = store.activate_at(f"{group_id}|a", group_secret, "2031-05-01T10:00:00Z")
    assert toggle.value == "false"
    assert toggle.to_dict()["activeAt"] == "2031-05-01T10:00:00+00:00"

    toggle = store.deactivate_at(f"{group_id}|a", group_secret, "2031-06-01T12:00:00+02:00")
    assert toggle.to_dict()["disabledAt"] == "2031-06-01T10:00:00+00:00"


def test_schedule_rejects_bad_date(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a")
    with pytest.raises(BadInputError):
        ToggleStore(test_db).activate_at(f"{group_id}|a", group_secret, "next tuesday")


def test_delete_removes_only_one_member(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a")
    seed_toggle("b")
    store = ToggleStore(test_db)

    store.delete(f"{group_id}|a", group_secret)

    assert store.find(f"{group_id}|a") is None
    assert store.find(f"{group_id}|b") is not None


def test_delete_last_member_dissolves_group(test_db, seed_toggle, group_id, group_secret):
    seed_toggle("a")
    store = ToggleStore(test_db)
    store.delete(f"{group_id}|a", group_secret)

    with pytest.raises(NotFoundError):
        store.read(group_id)
    with pytest.raises(NotFoundError):
        store.create(f"{group_id}|again", "true", secret=group_secret)


def test_normalize_tags():
    assert normalize_tags(None) == []
    assert normalize_tags(["a", " a ", "b", ""]) == ["a", "b"]
