"""Unit tests for oracle JSON extraction."""

from __future__ import annotations

from casegen.quality.extraction import extract_json_object, extract_json_span


def test_no_braces_yields_none():
    assert extract_json_span("I could not decide.") is None
    assert extract_json_object("I could not decide.") is None
    assert extract_json_object("") is None
    assert extract_json_object(None) is None


def test_reversed_braces_yield_none():
    assert extract_json_span("} oops {") is None


def test_prose_around_object_is_discarded():
    text = 'Here is the fix:\n```json\n{"id": "S001", "name": "Ada"}\n```\nLet me know if you need more.'

    assert extract_json_object(text) == {"id": "S001", "name": "Ada"}


def test_nested_braces_are_kept():
    text = 'Result: {"isClean": false, "details": {"issue": {"area": "timeline"}}} done'

    assert extract_json_object(text) == {"isClean": False, "details": {"issue": {"area": "timeline"}}}


def test_multiple_top_level_objects_fail_to_parse():
    text = '{"id": "S001"} and also {"id": "S002"}'

    assert extract_json_span(text) == text
    assert extract_json_object(text) is None


def test_trailing_prose_with_brace_breaks_parse():
    assert extract_json_object('{"id": "S001"} note: use {braces} carefully') is None


def test_non_object_json_is_rejected():
    assert extract_json_object('The answer is {}') == {}
    assert extract_json_object('["S001"]') is None
