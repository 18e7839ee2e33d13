from rollizr.schemas.models import StructuredOutput, UnstructuredOutput
from rollizr.utils.extraction import (
    extract_structured,
    parse_brace_span,
    parse_fenced_block,
    parse_whole,
)


def test_whole_text_json_is_structured():
    out = extract_structured('{"score": 72, "risks": []}')
    assert isinstance(out, StructuredOutput)
    assert out.data == {"score": 72, "risks": []}


def test_fenced_block_wins_over_surrounding_prose():
    text = 'Here is my analysis:\n```json\n{"approved": true}\n```\nLet me know if you need more.'
    out = extract_structured(text)
    assert isinstance(out, StructuredOutput)
    assert out.data == {"approved": True}


def test_fence_tag_is_case_insensitive():
    assert parse_fenced_block('```JSON\n{"a": 1}\n```') == {"a": 1}


def test_brace_span_tolerates_preamble_and_postamble():
    text = 'Sure. {"score": 55, "top_signals": ["fleet"]} Hope this helps.'
    assert parse_whole(text) is None
    assert parse_fenced_block(text) is None
    assert extract_structured(text).data == {"score": 55, "top_signals": ["fleet"]}


def test_unparseable_text_is_kept_verbatim():
    text = "  I could not find enough information about this company.\n"
    out = extract_structured(text)
    assert isinstance(out, UnstructuredOutput)
    assert out.raw_text == text
    assert out.to_payload() == {"raw_text": text, "parsed": False}


def test_two_separate_objects_fall_back_to_raw_text():
    text = '{"a": 1} and also {"b": 2}'
    assert parse_brace_span(text) is None
    assert isinstance(extract_structured(text), UnstructuredOutput)


def test_json_array_is_not_structured_output():
    assert isinstance(extract_structured("[1, 2, 3]"), UnstructuredOutput)


def test_custom_strategy_order():
    text = '```json\n{"from": "fence"}\n```'
    out = extract_structured(text, strategies=[parse_brace_span])
    assert out.data == {"from": "fence"}
    assert isinstance(extract_structured(text, strategies=[]), UnstructuredOutput)
