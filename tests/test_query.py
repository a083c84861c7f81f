from __future__ import annotations

import asyncio

import pytest

from settee import Collection, Query, define
from settee.exceptions import StoreError, ViewError
from settee.query import collection_hydrator, hydrate_document, single_hydrator
from settee.registry import TypeRegistry


@pytest.fixture
def QueryMonster(unique_name):
    return define(unique_name("QueryMonster"), views={"byLocation": {}, "byFriendliness": {}})


def _rows(*docs, total_rows=None):
    return {
        "total_rows": len(docs) if total_rows is None else total_rows,
        "offset": 0,
        "rows": [{"id": d.get("_id"), "key": None, "value": None, "doc": d} for d in docs],
    }


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


def test_get_model_returns_query_on_design_document(QueryMonster) -> None:
    query = QueryMonster.get_model("couch")
    assert isinstance(query, Query)
    assert query.design == QueryMonster.type_name


def test_get_model_query_responds_to_views(QueryMonster) -> None:
    query = QueryMonster.get_model("couch")
    assert callable(query.byLocation)
    assert callable(query.byFriendliness)
    assert query.views == ["byLocation", "byFriendliness"]


def test_get_model_options(QueryMonster) -> None:
    assert QueryMonster.get_model("couch").options == {"key": "couch", "include_docs": True, "limit": 2}


def test_get_collection_options_have_no_key(QueryMonster) -> None:
    query = QueryMonster.get_collection("ignored")
    assert query.options == {"include_docs": True}
    assert query.views == ["byLocation", "byFriendliness"]


def test_view_name_clashing_with_query_attribute_reachable_through_run(recording_store) -> None:
    recording_store.responses["view"] = _rows({"_id": "a"})
    query = Query("Design", {"key": "k"}, lambda r: r["rows"], ["run", "options"])

    assert query.views == ["run", "options"]
    assert query.options == {"key": "k"}
    rows = asyncio.run(query.run("run"))

    assert [r["id"] for r in rows] == ["a"]
    assert recording_store.calls == [("view", ("Design", "run", {"key": "k"}))]


def test_get_model_with_view_named_like_query_attribute(unique_name, recording_store) -> None:
    Thing = define(unique_name("Thing"), views=["design", "by_x"])
    query = Thing.get_model("x")

    assert query.design == Thing.type_name
    assert query.views == ["design", "by_x"]
    assert callable(query.by_x)


def test_non_identifier_view_name_reachable_through_run(recording_store) -> None:
    recording_store.responses["view"] = _rows()
    query = Query("Design", {}, lambda r: r["rows"], ["by-location"])

    assert query.views == ["by-location"]
    assert asyncio.run(query.run("by-location")) == []


def test_run_unknown_view_fails(recording_store) -> None:
    query = Query("Design", {}, lambda r: r)
    with pytest.raises(ValueError):
        asyncio.run(query.run("nope"))
    assert recording_store.calls == []


def test_explicit_store_overrides_connection(recording_store) -> None:
    class _Store:
        async def view(self, design, view_name, options):
            return {"rows": ["mine"]}

    query = Query("Design", {}, lambda r: r["rows"], ["v"], store=_Store())
    assert asyncio.run(query.v()) == ["mine"]
    assert recording_store.calls == []


# ---------------------------------------------------------------------------
# get_model hydration
# ---------------------------------------------------------------------------


def test_get_model_hydrates_single_document(QueryMonster, recording_store) -> None:
    marvin = {"_id": "marvin", "_rev": "rev", "type": QueryMonster.type_name, "location": "couch"}
    recording_store.responses["view"] = _rows(marvin)

    model = asyncio.run(QueryMonster.get_model("couch").byLocation())

    assert recording_store.calls == [
        ("view", (QueryMonster.type_name, "byLocation", {"key": "couch", "include_docs": True, "limit": 2})),
    ]
    assert isinstance(model, QueryMonster)
    assert model.attributes == {"_id": "marvin", "_rev": "rev", "location": "couch"}
    # raw document is left alone
    assert marvin["type"] == QueryMonster.type_name


def test_get_model_yields_none_without_rows(QueryMonster, recording_store) -> None:
    recording_store.responses["view"] = _rows()
    assert asyncio.run(QueryMonster.get_model("couch").byLocation()) is None


def test_get_model_counts_returned_rows_not_total_rows(QueryMonster, recording_store) -> None:
    doc = {"_id": "marvin", "type": QueryMonster.type_name}
    recording_store.responses["view"] = _rows(doc, total_rows=40)

    model = asyncio.run(QueryMonster.get_model("couch").byLocation())

    assert model.id == "marvin"


def test_get_model_multiple_documents_is_view_error(QueryMonster, recording_store) -> None:
    results = _rows({"type": QueryMonster.type_name}, {"type": QueryMonster.type_name})
    recording_store.responses["view"] = results

    with pytest.raises(ViewError) as info:
        asyncio.run(QueryMonster.get_model("couch").byLocation())

    assert info.value.message == "Multiple documents found"
    assert info.value.context["query"] == {"key": "couch", "include_docs": True, "limit": 2}
    assert info.value.context["results"] is results


def test_get_model_unknown_type_is_view_error(QueryMonster, recording_store) -> None:
    doc = {"_id": "x", "type": "NeverDefined"}
    recording_store.responses["view"] = _rows(doc)

    with pytest.raises(ViewError, match='Unknown document type "NeverDefined"') as info:
        asyncio.run(QueryMonster.get_model("couch").byLocation())

    assert info.value.document is doc


def test_get_model_hydrates_other_registered_type(QueryMonster, unique_name, recording_store) -> None:
    Ghost = define(unique_name("Ghost"))
    recording_store.responses["view"] = _rows({"_id": "boo", "type": Ghost.type_name})

    model = asyncio.run(QueryMonster.get_model("attic").byLocation())

    assert type(model) is Ghost


def test_store_errors_propagate_from_view(QueryMonster, recording_store) -> None:
    boom = StoreError("down", status_code=503)
    recording_store.responses["view"] = boom

    with pytest.raises(StoreError) as info:
        asyncio.run(QueryMonster.get_model("couch").byLocation())
    assert info.value is boom


def test_each_invocation_is_a_round_trip(QueryMonster, recording_store) -> None:
    recording_store.responses["view"] = _rows()
    query = QueryMonster.get_model("couch")

    asyncio.run(query.byLocation())
    asyncio.run(query.byLocation())

    assert recording_store.ops() == ["view", "view"]


# ---------------------------------------------------------------------------
# get_collection hydration
# ---------------------------------------------------------------------------


def test_get_collection_hydrates_every_row_in_order(QueryMonster, unique_name, recording_store) -> None:
    Ghost = define(unique_name("Ghost"))
    recording_store.responses["view"] = _rows(
        {"_id": "a", "type": QueryMonster.type_name},
        {"_id": "b", "type": Ghost.type_name},
        {"_id": "c", "type": QueryMonster.type_name},
    )

    result = asyncio.run(QueryMonster.get_collection().byFriendliness())

    assert recording_store.calls == [
        ("view", (QueryMonster.type_name, "byFriendliness", {"include_docs": True})),
    ]
    assert isinstance(result, Collection)
    assert result.ids() == ["a", "b", "c"]
    assert [type(m) for m in result] == [QueryMonster, Ghost, QueryMonster]
    assert all(not m.has("type") for m in result)


def test_get_collection_empty(QueryMonster, recording_store) -> None:
    recording_store.responses["view"] = _rows()
    result = asyncio.run(QueryMonster.get_collection().byLocation())
    assert isinstance(result, Collection)
    assert len(result) == 0


def test_get_collection_is_all_or_nothing(QueryMonster, recording_store) -> None:
    bad = {"_id": "b", "type": "NeverDefined"}
    recording_store.responses["view"] = _rows({"_id": "a", "type": QueryMonster.type_name}, bad)

    with pytest.raises(ViewError) as info:
        asyncio.run(QueryMonster.get_collection().byLocation())

    assert info.value.document is bad


# ---------------------------------------------------------------------------
# Hydrators with a private registry
# ---------------------------------------------------------------------------


def test_hydrate_document_strips_discriminator_with_private_registry() -> None:
    reg = TypeRegistry()
    reg.register("Thing", lambda attrs: ("thing", dict(attrs)))

    assert hydrate_document({"_id": "t", "kind": "Thing", "x": 1}, "kind", reg) == ("thing", {"_id": "t", "x": 1})


def test_hydrate_document_without_discriminator_is_view_error() -> None:
    with pytest.raises(ViewError, match='Unknown document type "None"'):
        hydrate_document({"_id": "t"}, "type", TypeRegistry())


def test_row_without_document_is_view_error() -> None:
    hydrate = collection_hydrator("type", TypeRegistry())
    with pytest.raises(ViewError):
        hydrate({"rows": [{"id": "t", "key": 1, "value": None}]})


def test_single_hydrator_with_private_registry() -> None:
    reg = TypeRegistry()
    reg.register("Thing", dict)
    hydrate = single_hydrator({"key": 1}, "type", reg)

    assert hydrate(_rows({"_id": "t", "type": "Thing"})) == {"_id": "t"}
    assert hydrate({"rows": []}) is None
