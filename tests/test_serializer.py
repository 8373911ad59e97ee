import datetime
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from sacrud import ResourceActions, ResourceSchema
from sacrud.posts import Post
from sacrud.serializer import RelationPopulator, Serializer


class _AccountSchema(ResourceSchema):
    code: str
    full_name: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    owner: Any = None


def _record(**kwargs) -> SimpleNamespace:
    defaults = dict(code="a1", full_name="Ann", created_at=datetime.datetime(2024, 1, 2, 3, 4, 5), owner=None, password="secret")
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def test_serialize_uses_the_allow_list() -> None:
    result = Serializer(_AccountSchema).serialize(_record())

    assert result == {"code": "a1", "fullName": "Ann", "createdAt": "2024-01-02T03:04:05", "owner": None}


def test_serialize_lists_and_none() -> None:
    serializer = Serializer(_AccountSchema)

    assert [item["code"] for item in serializer.serialize([_record(code="a"), _record(code="b")])] == ["a", "b"]
    assert serializer.serialize([]) == []
    assert serializer.serialize(None) is None


def test_schema_aliases() -> None:
    assert _AccountSchema.aliases() == {"code": "code", "fullName": "full_name", "createdAt": "created_at", "owner": "owner"}


class _FakeTarget:
    def __init__(self, records: dict) -> None:
        self.records = records
        self.serializer = Serializer(_AccountSchema)
        self.lookups = []

    def model(self, code: str, actor: Optional[str] = None):
        self.lookups.append(code)
        return self.records.get(code)


def test_populate_single_and_list() -> None:
    target = _FakeTarget({"u1": _record(code="u1")})
    populator = RelationPopulator({"accounts": target})

    single = populator.populate("me", {"code": "p1", "owner": "u1"}, {"owner": "accounts"})
    many = populator.populate("me", [{"code": "p1", "owner": "u1"}, {"code": "p2", "owner": "u1"}, {"code": "p3", "owner": None}], {"owner": "accounts"})

    assert single["owner"]["fullName"] == "Ann"
    assert [item["owner"] and item["owner"]["code"] for item in many] == ["u1", "u1", None]
    # one lookup per referenced code
    assert target.lookups == ["u1", "u1"]


def test_populate_missing_record() -> None:
    populator = RelationPopulator({"accounts": _FakeTarget({})})

    assert populator.populate(None, {"code": "p1", "owner": "gone"}, {"owner": "accounts"}) == {"code": "p1", "owner": None}


def test_populate_unknown_resource_leaves_the_field() -> None:
    populator = RelationPopulator({})

    assert populator.populate(None, {"code": "p1", "owner": "u1"}, {"owner": "accounts"}) == {"code": "p1", "owner": "u1"}


def test_schema_fields_are_checked_against_the_model() -> None:
    class _LeakySchema(ResourceSchema):
        code: str
        secret_token: Optional[str] = None

    with pytest.raises(TypeError):

        class _LeakyActions(ResourceActions):  # pylint: disable=unused-variable
            name = "leaky"
            singular = "leak"
            collection = Post
            schema = _LeakySchema


def test_relations_must_be_serialized_fields() -> None:
    class _PostSchema(ResourceSchema):
        code: str

    with pytest.raises(TypeError):

        class _BrokenActions(ResourceActions):  # pylint: disable=unused-variable
            name = "broken"
            singular = "broken"
            collection = Post
            schema = _PostSchema
            relations = {"author": "users"}
