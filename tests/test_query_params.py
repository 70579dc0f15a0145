from __future__ import annotations

from tour_booking.query import coerce_value, parse_query_string


def test_parse_query_string_nests_bracketed_keys() -> None:
    params = parse_query_string("?duration[gte]=5&price[lt]=1500&difficulty=easy&sort=-price")
    assert params == {
        "duration": {"gte": "5"},
        "price": {"lt": "1500"},
        "difficulty": "easy",
        "sort": "-price",
    }


def test_parse_query_string_last_value_wins() -> None:
    assert parse_query_string("page=1&page=3") == {"page": "3"}


def test_coerce_value() -> None:
    assert coerce_value("5") == 5
    assert coerce_value("4.7") == 4.7
    assert coerce_value("easy") == "easy"
    assert coerce_value(3) == 3
