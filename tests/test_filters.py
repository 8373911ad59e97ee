import pytest

from sacrud.errors import ValidationError
from sacrud.filters import build_filter, parse_filter_expressions


def test_defaults() -> None:
    filter_query = build_filter({}, default_limit=250, max_limit=1000)

    assert filter_query.limit == 250
    assert filter_query.offset == 0
    assert filter_query.sort is None
    assert filter_query.expressions == []
    assert not filter_query.only_mine


def test_unknown_parameters_are_dropped() -> None:
    assert build_filter({"limit": "5", "password": "x"}, 250, 1000) == build_filter({"limit": "5"}, 250, 1000)


def test_limit_is_clamped() -> None:
    assert build_filter({"limit": "5000"}, 250, 1000).limit == 1000
    assert build_filter({"limit": "0"}, 250, 1000).limit == 0


@pytest.mark.parametrize("params", [{"limit": "-1"}, {"offset": "-5"}, {"limit": "ten"}, {"offset": "1.5"}])
def test_invalid_paging(params: dict) -> None:
    with pytest.raises(ValidationError):
        build_filter(params, 250, 1000)


def test_filter_my() -> None:
    filter_query = build_filter({"filter": "my", "author": "abc"}, 250, 1000)

    assert filter_query.only_mine
    assert filter_query.author == "abc"
    assert filter_query.expressions == []


def test_filter_expressions() -> None:
    expressions = parse_filter_expressions('[{"name": "email", "val": "a@b.c"}, {"name": "status", "op": "__gt__", "val": 1}]')

    assert expressions == [{"name": "email", "op": "eq", "val": "a@b.c"}, {"name": "status", "op": "gt", "val": 1}]
    assert parse_filter_expressions('{"name": "email", "op": "like", "val": "%b.c"}') == [{"name": "email", "op": "like", "val": "%b.c"}]


@pytest.mark.parametrize("filter_arg", ["not json", '[{"op": "eq"}]', "[1]"])
def test_invalid_filter_expressions(filter_arg: str) -> None:
    with pytest.raises(ValidationError):
        build_filter({"filter": filter_arg}, 250, 1000)


def test_page_limits_from_the_app_config(app) -> None:
    app.config.update(DEFAULT_PAGE_LIMIT=2, MAX_PAGE_LIMIT="5")

    assert build_filter({}).limit == 2
    assert build_filter({"limit": "50"}).limit == 5


@pytest.mark.parametrize("params", [{"sort": 1}, {"filter": [{"name": "email", "val": "a@b.c"}]}, {"filter": {"name": "email"}}, {"author": ["abc"]}])
def test_structured_values_are_rejected(params: dict) -> None:
    with pytest.raises(ValidationError):
        build_filter(params, 250, 1000)


def test_filter_name_must_be_a_string() -> None:
    with pytest.raises(ValidationError):
        parse_filter_expressions('{"name": ["email"], "val": "a@b.c"}')
