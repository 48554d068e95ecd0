import pytest
from pydantic import ValidationError

from restpipe import (
    ABSENT,
    NOT_FOUND,
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    QueryDescriptor,
    build_query,
    convert,
    convert_data,
    execute,
    run_query,
)

from conftest import Post, Tag, make_context, run_async


# Query stage

@pytest.mark.parametrize(
    "operation, expected",
    [("list", "list"), ("get", "read"), ("add", "create"), ("edit", "update"), ("destroy", "delete")],
)
def test_route_kind_maps_to_descriptor_operation(operation, expected):
    query = build_query(Post, {"id": "p1"}, {"title": "hi"}, operation, [])
    assert query.operation == expected


def test_conditions_and_data_per_operation():
    body = {"title": "hi"}
    params = {"id": "p1"}

    assert build_query(Post, params, body, "list", []).conditions == {}
    assert build_query(Post, params, body, "list", []).data is None
    assert build_query(Post, params, body, "add", []).conditions == {}
    assert build_query(Post, params, body, "add", []).data == {"title": "hi"}
    assert build_query(Post, params, body, "get", []).conditions == {"id": "p1"}
    assert build_query(Post, params, body, "get", []).data is None
    assert build_query(Post, params, body, "edit", []).conditions == {"id": "p1"}
    assert build_query(Post, params, body, "edit", []).data == {"title": "hi"}
    assert build_query(Post, params, body, "destroy", []).data is None


def test_conditions_use_the_model_primary_key():
    query = build_query(Tag, {"id": "python"}, {}, "get", [])
    assert query.conditions == {"slug": "python"}


def test_query_stage_is_idempotent():
    args = (Post, {"id": "p1"}, {"title": "hi"}, "edit", ["writer", "tags"])
    assert build_query(*args) == build_query(*args)


def test_query_data_is_a_copy_of_the_body():
    body = {"title": "hi"}
    query = build_query(Post, {}, body, "add", [])
    body["title"] = "changed"
    assert query.data == {"title": "hi"}


def test_unknown_route_kind_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        build_query(Post, {}, {}, "upsert", [])


def test_operation_is_frozen_once_set():
    query = QueryDescriptor(operation="update", conditions={"id": 1})
    query.conditions["writer"] = "u1"
    with pytest.raises(ValidationError):
        query.operation = "delete"


def test_context_refuses_changing_the_operation():
    context = make_context()
    context.query = QueryDescriptor(operation="list")
    context.query = QueryDescriptor(operation="list", conditions={"active": True})
    with pytest.raises(ValueError):
        context.query = QueryDescriptor(operation="delete")


# Run stage

@pytest.mark.parametrize(
    "operation, primitive",
    [
        ("list", "find_many"),
        ("read", "find_one"),
        ("create", "insert_one"),
        ("update", "update_one"),
        ("delete", "delete_one"),
    ],
)
def test_run_stage_makes_exactly_one_persistence_call(persistence, operation, primitive):
    query = QueryDescriptor(operation=operation, conditions={"id": 1}, data={"title": "x"})
    run_async(execute(persistence, Post, query))
    assert persistence.calls == [(primitive, "Post")]


def test_run_stage_needs_a_query(persistence):
    with pytest.raises(ConfigurationError):
        run_async(run_query(persistence, Post)(make_context()))


def test_persistence_errors_pass_through(broken_persistence):
    context = make_context()
    context.query = QueryDescriptor(operation="list")
    with pytest.raises(PersistenceError, match="database is down"):
        run_async(run_query(broken_persistence, Post)(context))
    assert broken_persistence.call_names() == ["find_many"]


# Convert stage

def test_identity_converter_round_trips_single_and_list():
    record = {"id": 1, "title": "hi", "tags": ["a", "b"]}
    records = [record, {"id": 2, "title": "yo"}]
    identity = {"id": lambda v: v, "title": lambda v: v, "tags": lambda v: v}

    assert convert(record, identity) == record
    assert convert(records, identity) == records
    assert convert(records, {}) == records


def test_absent_transform_removes_the_field():
    output = convert({"email": "a@b.com", "password": "secret"}, {"password": lambda _: ABSENT})
    assert output == {"email": "a@b.com"}
    assert "password" not in output


def test_list_conversion_keeps_order_and_count():
    records = [{"id": i, "n": i} for i in range(5)]
    output = convert(records, {"n": lambda v: v * 10})
    assert [r["id"] for r in output] == [0, 1, 2, 3, 4]
    assert [r["n"] for r in output] == [0, 10, 20, 30, 40]


def test_convert_does_not_mutate_raw_records():
    record = {"password": "secret"}
    convert(record, {"password": lambda _: ABSENT})
    assert record == {"password": "secret"}


def test_converter_for_missing_field_is_skipped():
    assert convert({"id": 1}, {"password": lambda _: ABSENT}) == {"id": 1}


def test_missing_single_record_is_not_found_not_empty():
    assert convert(None, {}) is NOT_FOUND
    assert convert([], {}) == []


def test_convert_action_raises_not_found_for_missing_record():
    context = make_context(operation="get")
    context.query = QueryDescriptor(operation="read", conditions={"id": "404"})
    context.result = None

    with pytest.raises(NotFoundError) as excinfo:
        run_async(convert_data({})(context))

    assert excinfo.value.conditions == {"id": "404"}
    assert excinfo.value.status_code == 404
    assert context.output is None


def test_convert_action_sets_output():
    context = make_context()
    context.result = [{"id": 1, "secret": "x"}]
    run_async(convert_data({"secret": lambda _: ABSENT})(context))
    assert context.output == [{"id": 1}]
