import hashlib
import re
import uuid

import pytest

from models import FeatureToggle
from toggles.digest import collection_digest, digest_line, digest_of
from toggles.errors import NotFoundError


def test_digest_line_format(utc):
    toggle = FeatureToggle(
        key="g|a", value="true", active_at=utc(2024, 5, 1), disabled_at=None, tags=["x", "y"]
    )
    assert digest_line(toggle) == "g|a true 2024-05-01 00:00:00+00:00  x,y"


def test_digest_line_empty_fields():
    toggle = FeatureToggle(key="g|a", value="false", tags=[])
    assert digest_line(toggle) == "g|a false   "


def test_digest_is_sha256_of_sorted_lines():
    a = FeatureToggle(key="g|a", value="true", tags=[])
    b = FeatureToggle(key="g|b", value="false", tags=[])
    expected = hashlib.sha256("g|a true    g|b false   ".encode("utf-8")).hexdigest()

    assert digest_of([b, a]) == expected
    assert digest_of([a, b]) == expected


def test_collection_digest_two_members(test_db, seed_toggle, group_id):
    seed_toggle("a", value="true")
    seed_toggle("b", value="false")

    first = collection_digest(test_db, group_id)

    assert re.fullmatch(r"[0-9a-f]{64}", first)
    assert collection_digest(test_db, group_id) == first


def test_collection_digest_independent_of_insert_order(test_db, seed_toggle, group_id):
    seed_toggle("b", value="false")
    seed_toggle("a", value="true", tags=["t"])
    forward = collection_digest(test_db, group_id)

    test_db.query(FeatureToggle).delete()
    test_db.commit()
    seed_toggle("a", value="true", tags=["t"])
    seed_toggle("b", value="false")

    assert collection_digest(test_db, group_id) == forward


def test_collection_digest_ignores_secret_and_other_groups(test_db, seed_toggle, group_id):
    seed_toggle("a")
    before = collection_digest(test_db, group_id)

    seed_toggle(key=f"{uuid.uuid4()}|elsewhere")
    test_db.query(FeatureToggle).filter(FeatureToggle.key == f"{group_id}|a").update({"secret": "rotated"})
    test_db.commit()

    assert collection_digest(test_db, group_id) == before


@pytest.mark.parametrize("change", [
    {"value": "true"},
    {"tags": ["new"]},
    {"key": "renamed"},
])
def test_collection_digest_changes_with_content(test_db, seed_toggle, group_id, change):
    toggle = seed_toggle("a", value="false")
    before = collection_digest(test_db, group_id)

    if "key" in change:
        toggle.key = f"{group_id}|{change['key']}"
    else:
        for field, value in change.items():
            setattr(toggle, field, value)
    test_db.commit()

    assert collection_digest(test_db, group_id) != before


def test_collection_digest_changes_with_schedule(test_db, seed_toggle, group_id, utc):
    toggle = seed_toggle("a")
    before = collection_digest(test_db, group_id)

    toggle.disabled_at = utc(2030, 1, 1)
    test_db.commit()

    assert collection_digest(test_db, group_id) != before


def test_collection_digest_unknown_group(test_db):
    with pytest.raises(NotFoundError):
        collection_digest(test_db, str(uuid.uuid4()))


def test_digest_ignores_tag_order(utc):
    forward = FeatureToggle(key="g|a", value="true", active_at=utc(2024, 5, 1), tags=["x", "y", "z"])
    backward = FeatureToggle(key="g|a", value="true", active_at=utc(2024, 5, 1), tags=["z", "y", "x"])

    assert digest_line(backward) == "g|a true 2024-05-01 00:00:00+00:00  x,y,z"
    assert digest_of([forward]) == digest_of([backward])


def test_digest_changes_when_tag_set_changes():
    before = FeatureToggle(key="g|a", value="true", tags=["x", "y"])
    after = FeatureToggle(key="g|a", value="true", tags=["x"])

    assert digest_of([before]) != digest_of([after])
