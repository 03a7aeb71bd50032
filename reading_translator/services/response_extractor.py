"""
Recovers ``{annotated text, translated text}`` from free-form model output.

Models wrap their JSON in prose or code fences, leave trailing commas,
swap in typographic quotes and sometimes emit unescaped quotes inside a
value. ``ResponseExtractor.extract`` normalises the text once and then
tries increasingly permissive strategies until one yields both fields.
"""

import json
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from reading_translator.logconf import logger
from reading_translator.models.errors import MalformedResponse

TRANSLATION_KEY = "translatedText"
# first present alias wins
ANNOTATION_KEYS = ("furiganaText", "readingsText", "pinyinText", "annotatedText")

_NORMALIZATIONS = (
    (re.compile("[\u201c\u201d\u201e\u201f\u2033]"), '"'),
    (re.compile("[\u2018\u2019\u201a\u201b\u2032]"), "'"),
    (re.compile("[\u2010\u2011\u2012\u2013\u2014\u2015]"), "-"),
    (re.compile("[\u200b\u200c\u200d\u2060\ufeff]"), ""),
    (re.compile("[\u00a0\u2000-\u200a\u2028\u2029\u202f]"), " "),
    (re.compile(r",(\s*[}\]])"), r"\1"),
)

_FENCED_JSON = re.compile(r"```json\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_SEQUENCE = re.compile(r'\\(["\\/nrt])')

_decoder = json.JSONDecoder(strict=False)


def normalize_response(raw: str) -> str:
    text = raw or ""
    for pattern, replacement in _NORMALIZATIONS:
        text = pattern.sub(replacement, text)
    return text


@dataclass(frozen=True)
class ExtractedFields:
    translated_text: str
    annotated_text: Optional[str]
    strategy: str


def _loads(text: str):
    return _decoder.decode(text)


def _outer_object(text: str):
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads(text[start:end + 1])


def _fenced_block(text: str):
    match = _FENCED_JSON.search(text)
    if not match:
        return None
    return _loads(match.group(1))


def _any_object(text: str):
    for match in re.finditer(r"\{", text):
        try:
            obj, _ = _decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(obj, dict) and TRANSLATION_KEY in obj and any(k in obj for k in ANNOTATION_KEYS):
            return obj
    return None


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _is_inline_comma(text: str, comma_at: int) -> bool:
    """A comma inside the value, i.e. not followed by the next key or the end of the object."""
    nxt = _skip_space(text, comma_at + 1)
    return nxt < len(text) and text[nxt] not in '"}]'


def _closes_value(text: str, quote_at: int) -> bool:
    nxt = _skip_space(text, quote_at + 1)
    if nxt >= len(text):
        return True
    if text[nxt] == ",":
        return not _is_inline_comma(text, nxt)
    return text[nxt] in "}]"


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"', strict=False)
    except ValueError:
        return _ESCAPE_SEQUENCE.sub(lambda m: _ESCAPES[m.group(1)], value)


def scan_string_value(text: str, key: str) -> Optional[str]:
    """
    Walks the value of ``"key": "..."`` character by character, tracking
    escapes, so unescaped inner quotes and very long values survive.
    """
    key_at = text.find(f'"{key}"')
    if key_at == -1:
        return None
    colon = text.find(":", key_at + len(key) + 2)
    if colon == -1:
        return None
    open_quote = text.find('"', colon + 1)
    if open_quote == -1:
        return None

    start = pos = open_quote + 1
    escaped = False
    while pos < len(text):
        char = text[pos]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"' and _closes_value(text, pos):
            break
        pos += 1
    return _unescape(text[start:pos])


def _manual_scan(text: str):
    found = {}
    for key in (TRANSLATION_KEY,) + ANNOTATION_KEYS:
        value = scan_string_value(text, key)
        if value is not None:
            found[key] = value
    return found or None


class ResponseExtractor:
    """Stateless; one instance can serve every invocation."""

    strategies: Tuple[Tuple[str, Callable], ...] = (
        ("outer-object", _outer_object),
        ("fenced-block", _fenced_block),
        ("any-object", _any_object),
        ("manual-scan", _manual_scan),
    )

    def extract(self, raw: str, require_annotation: bool = True) -> Union[ExtractedFields, MalformedResponse]:
        text = normalize_response(raw)
        failures: List[str] = []
        for name, strategy in self.strategies:
            try:
                data = strategy(text)
            except ValueError as e:
                failures.append(f"{name}: {e}")
                logger.debug(f"Extraction strategy {name} failed: {e}")
                continue
            fields = self._fields(data, name, require_annotation)
            if fields is not None:
                logger.debug(f"Extracted response fields with {name}")
                return fields
            failures.append(f"{name}: required fields missing")

        logger.warning(f"Could not extract fields from model output ({len(text)} chars): {'; '.join(failures)}")
        return MalformedResponse(
            "Model output did not contain the required fields", raw=raw or ""
        )

    @staticmethod
    def _fields(data, strategy: str, require_annotation: bool) -> Optional[ExtractedFields]:
        if not isinstance(data, dict):
            return None
        translated = data.get(TRANSLATION_KEY)
        if not isinstance(translated, str) or not translated.strip():
            return None
        annotated = next(
            (data[k] for k in ANNOTATION_KEYS if isinstance(data.get(k), str) and data[k].strip()),
            None,
        )
        if annotated is None and require_annotation:
            return None
        return ExtractedFields(
            translated_text=translated.strip(),
            annotated_text=annotated.strip() if annotated is not None else None,
            strategy=strategy,
        )
