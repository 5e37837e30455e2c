import pytest

from newsletter.payload import parse_payload


def test_parse_payload_strips_json_fences():
    raw = '```json\n{"overview": "夏祭りのお知らせ", "actions": []}\n```'
    assert parse_payload(raw) == {"overview": "夏祭りのお知らせ", "actions": []}


def test_parse_payload_returns_copy_of_dict():
    source = {"title": "園だより"}
    parsed = parse_payload(source)
    assert parsed == source
    assert parsed is not source


def test_parse_payload_extracts_object_from_surrounding_text():
    raw = 'Here is the result:\n{"title": "7月号"}\nThanks'
    assert parse_payload(raw) == {"title": "7月号"}


@pytest.mark.parametrize(
    "raw",
    ["```json\n{not valid\n```", "", None, "[1, 2, 3]", "42", 3.14, ["a"]],
)
def test_parse_payload_degrades_to_empty_dict(raw):
    assert parse_payload(raw) == {}
