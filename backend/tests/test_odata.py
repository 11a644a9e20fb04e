import pytest

from hrproxy import odata


def test_quote_literal_doubles_embedded_quotes() -> None:
    assert odata.quote_literal("o'brien") == "'o''brien'"
    assert odata.quote_literal("''") == "''''''"


@pytest.mark.parametrize("value", ["a'b", "' or 1 eq 1 or '", "x'", "'''"])
def test_eq_filter_never_closes_the_literal_early(value: str) -> None:
    expression = odata.eq_filter("username", value)
    literal = expression[len("username eq "):]
    assert literal.startswith("'") and literal.endswith("'")
    inner = literal[1:-1]
    assert inner.replace("''", "").count("'") == 0
    assert inner.replace("''", "'") == value


def test_any_of_collapses_duplicates() -> None:
    expression = odata.any_of([("externalCode", "u1"), ("externalCode", "alice"), ("externalCode", "u1")])
    assert expression == "externalCode eq 'u1' or externalCode eq 'alice'"


def test_any_of_requires_a_clause() -> None:
    with pytest.raises(ValueError):
        odata.any_of([])


def test_entity_key_path_escapes_and_encodes() -> None:
    assert odata.entity_key_path("User", "u100") == "User('u100')"
    assert odata.entity_key_path("User", "o'neil") == "User('o''neil')"
    assert odata.entity_key_path("User", "a b/c") == "User('a%20b%2Fc')"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("/Date(1700000000000)/", 1700000000000),
        ("/Date(1700000000000+0000)/", 1700000000000),
        ("/Date(-1)/", 0),
        ("2024-01-01", 0),
        (None, 0),
    ],
)
def test_date_millis(value, expected) -> None:
    assert odata.date_millis(value) == expected


def test_results_and_entity_envelopes() -> None:
    payload = {"d": {"results": [{"userId": "a"}, "junk"]}}
    assert odata.results(payload) == [{"userId": "a"}]
    assert odata.results({"d": {"userId": "a"}}) == []
    assert odata.results(None) == []
    assert odata.entity({"d": {"userId": "a"}}) == {"userId": "a"}
    assert odata.entity({"error": "x"}) is None
