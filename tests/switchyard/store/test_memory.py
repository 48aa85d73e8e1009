import pytest

from switchyard.store import InMemoryStore, Item


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.mark.asyncio
async def test_put_and_get(store):
    await store.put(("users", "kim"), "prefs", {"theme": "dark"})

    item = await store.get(("users", "kim"), "prefs")

    assert item.namespace == ("users", "kim")
    assert item.key == "prefs"
    assert item.value == {"theme": "dark"}
    assert item.created_at == item.updated_at


@pytest.mark.asyncio
async def test_get_missing(store):
    assert await store.get(("users",), "nobody") is None


@pytest.mark.asyncio
async def test_put_upsert_keeps_created_at(store):
    await store.put(("users",), "kim", {"v": 1})
    first = await store.get(("users",), "kim")

    await store.put(("users",), "kim", {"v": 2})
    second = await store.get(("users",), "kim")

    assert second.value == {"v": 2}
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at


@pytest.mark.asyncio
async def test_values_are_copied(store):
    value = {"tags": ["a"]}
    await store.put(("ns",), "k", value)
    value["tags"].append("b")

    item = await store.get(("ns",), "k")
    item.value["tags"].append("c")

    assert (await store.get(("ns",), "k")).value == {"tags": ["a"]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("namespace", "exp_message"),
    [
        ((), "namespace cannot be empty"),
        (("",), "namespace labels must be non-empty strings"),
        (("a", 1), "namespace labels must be non-empty strings"),
        (("a.b",), "namespace labels cannot contain periods"),
    ],
)
async def test_invalid_namespace(store, namespace, exp_message):
    with pytest.raises(ValueError, match=exp_message):
        await store.put(namespace, "k", 1)


@pytest.mark.asyncio
async def test_search_by_prefix_and_query(store):
    await store.put(("docs", "b"), "2", {"title": "Routing Guide"})
    await store.put(("docs", "a"), "1", {"title": "Checkpoint guide"})
    await store.put(("docs", "a"), "0", {"title": "Café notes"})
    await store.put(("other",), "x", {"title": "guide"})

    assert [(item.namespace, item.key) for item in await store.search(("docs",))] == [
        (("docs", "a"), "0"),
        (("docs", "a"), "1"),
        (("docs", "b"), "2"),
    ]
    assert [item.key for item in await store.search(("docs",), query="GUIDE")] == ["1", "2"]
    assert [item.key for item in await store.search(("docs",), query="café")] == ["0"]
    assert [item.key for item in await store.search((), query="guide")] == ["1", "2", "x"]


@pytest.mark.asyncio
async def test_search_pagination(store):
    for key in "abcde":
        await store.put(("ns",), key, key)

    assert [item.key for item in await store.search(("ns",), limit=2)] == ["a", "b"]
    assert [item.key for item in await store.search(("ns",), limit=2, offset=3)] == ["d", "e"]


@pytest.mark.asyncio
async def test_delete(store):
    await store.put(("ns",), "k", 1)

    await store.delete(("ns",), "k")
    await store.delete(("ns",), "k")
    await store.delete(("unknown",), "k")

    assert await store.get(("ns",), "k") is None
    assert await store.list_namespaces() == []


@pytest.mark.asyncio
async def test_list_namespaces(store):
    await store.put(("users", "kim"), "k", 1)
    await store.put(("users", "alex"), "k", 1)
    await store.put(("docs",), "k", 1)

    assert await store.list_namespaces() == [("docs",), ("users", "alex"), ("users", "kim")]
    assert await store.list_namespaces(("users",)) == [("users", "alex"), ("users", "kim")]


def test_item_to_dict():
    item = Item(namespace=("a", "b"), key="k", value=1, created_at="c", updated_at="u")

    assert item.to_dict() == {
        "namespace": ["a", "b"],
        "key": "k",
        "value": 1,
        "created_at": "c",
        "updated_at": "u",
        "score": None,
    }
