from __future__ import annotations

from confmodel.keys import FlatMap, combine_key, split_key


def test_combine_and_split_key():
    assert combine_key("Data", "DefaultConnection", "Provider") == "Data:DefaultConnection:Provider"
    assert split_key("a:b:c") == ["a", "b", "c"]
    assert split_key("plain") == ["plain"]


def test_lookup_ignores_case():
    data = FlatMap()
    data["Foo:Bar"] = "1"
    assert data["foo:BAR"] == "1"
    assert data.get("FOO:bar") == "1"
    assert "fOo:bAr" in data
    assert 42 not in data


def test_first_casing_is_kept():
    data = FlatMap()
    data["Foo:Bar"] = "1"
    data["foo:bar"] = "2"
    assert list(data) == ["Foo:Bar"]
    assert data["Foo:Bar"] == "2"
    assert len(data) == 1


def test_insertion_order_preserved():
    data = FlatMap({"b": "1", "a": "2", "C": "3"})
    assert list(data.items()) == [("b", "1"), ("a", "2"), ("C", "3")]


def test_delete_and_copy():
    data = FlatMap({"a": "1", "b": "2"})
    clone = data.copy()
    del data["A"]
    assert "a" not in data
    assert clone["a"] == "1"


def test_equality_ignores_key_case():
    assert FlatMap({"Key": "v"}) == {"key": "v"}
    assert FlatMap({"Key": "v"}) != {"key": "other"}
    assert FlatMap({"Key": "v"}) != {"key": "v", "x": "y"}
