import json

import pytest

from reading_translator.models.errors import MalformedResponse
from reading_translator.services.response_extractor import (
    ExtractedFields,
    ResponseExtractor,
    normalize_response,
    scan_string_value,
)

extractor = ResponseExtractor()

ANNOTATED = "東京(とうきょう)に行(い)きます"
TRANSLATED = "I am going to Tokyo"
STRICT = json.dumps({"furiganaText": ANNOTATED, "translatedText": TRANSLATED}, ensure_ascii=False)


def _fields(raw, **kwargs):
    result = extractor.extract(raw, **kwargs)
    assert isinstance(result, ExtractedFields), result
    return result


def test_strict_json():
    fields = _fields(STRICT)
    assert (fields.annotated_text, fields.translated_text) == (ANNOTATED, TRANSLATED)
    assert fields.strategy == "outer-object"


@pytest.mark.parametrize(
    "raw",
    [
        f"```json\n{STRICT}\n```",
        f"Sure! Here it is:\n```json\n{STRICT}\n```\nLet me know if you need more.",
        f'Here is the result: {{"furiganaText": "{ANNOTATED}", "translatedText": "{TRANSLATED}",}}',
        f'{{\n  "furiganaText": "{ANNOTATED}",\n  "translatedText": "{TRANSLATED}",\n}}',
        f"“ignored” {{“furiganaText”: “{ANNOTATED}”, “translatedText”: “{TRANSLATED}”}}",
    ],
    ids=["fenced", "fenced-with-prose", "prose-trailing-comma", "multiline-trailing-comma", "typographic-quotes"],
)
def test_recovers_same_fields_as_strict_input(raw):
    fields = _fields(raw)
    assert (fields.annotated_text, fields.translated_text) == (ANNOTATED, TRANSLATED)


def test_zero_width_characters_are_removed():
    raw = chr(0xFEFF) + STRICT.replace("translatedText", "translated" + chr(0x200B) + "Text")
    fields = _fields(raw)
    assert fields.translated_text == TRANSLATED


def test_first_object_without_fields_is_skipped():
    raw = 'Note {"note": 1} then {"readingsText": "a(b)", "translatedText": "c"}'
    fields = _fields(raw)
    assert fields.strategy == "any-object"
    assert (fields.annotated_text, fields.translated_text) == ("a(b)", "c")


def test_unescaped_inner_quotes_use_manual_scan():
    raw = '{"readingsText": "彼(かれ)は"はい"と言(い)った", "translatedText": "He said "yes", then left"}'
    fields = _fields(raw)
    assert fields.strategy == "manual-scan"
    assert fields.annotated_text == '彼(かれ)は"はい"と言(い)った'
    assert fields.translated_text == 'He said "yes", then left'


def test_manual_scan_unescapes_values():
    text = '{"translatedText": "line one\\nline \\"two\\"", "other": 1'
    assert scan_string_value(text, "translatedText") == 'line one\nline "two"'


def test_manual_scan_missing_key():
    assert scan_string_value('{"a": "b"}', "translatedText") is None


@pytest.mark.parametrize("key", ["furiganaText", "readingsText", "pinyinText", "annotatedText"])
def test_annotation_aliases(key):
    raw = json.dumps({key: "中文(zhōngwén)", "translatedText": "Chinese"}, ensure_ascii=False)
    assert _fields(raw).annotated_text == "中文(zhōngwén)"


def test_values_are_stripped():
    fields = _fields('{"readingsText": "  a(b) ", "translatedText": " c\\n"}')
    assert (fields.annotated_text, fields.translated_text) == ("a(b)", "c")


def test_missing_translation_is_a_failure_value():
    result = extractor.extract('{"readingsText": "a(b)"}')
    assert isinstance(result, MalformedResponse)
    assert result.kind == "malformed-response"


def test_missing_annotation_fails_only_when_required():
    raw = '{"translatedText": "Hello"}'
    assert isinstance(extractor.extract(raw), MalformedResponse)

    fields = _fields(raw, require_annotation=False)
    assert fields.translated_text == "Hello"
    assert fields.annotated_text is None


def test_garbage_keeps_raw_text():
    result = extractor.extract("I'm sorry, I can't help with that.")
    assert isinstance(result, MalformedResponse)
    assert result.raw == "I'm sorry, I can't help with that."


def test_empty_input():
    assert isinstance(extractor.extract(""), MalformedResponse)
    assert isinstance(extractor.extract(None), MalformedResponse)


def test_normalization():
    assert normalize_response("‘a’ – b c") == "'a' - b c"
    assert normalize_response('{"a": [1, 2,], }') == '{"a": [1, 2] }'
