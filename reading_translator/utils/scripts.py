"""Unicode character classes shared by the classifier and the language profiles."""

import re

# character-class bodies (no brackets) so they can be composed into larger patterns
KANA = "\u3040-\u30ff"
HIRAGANA = "\u3040-\u309f"
CJK_IDEOGRAPHS = "\u3400-\u4dbf\u4e00-\u9fff"
HANGUL_SYLLABLES = "\uac00-\ud7af"
HANGUL = "\uac00-\ud7af\u1100-\u11ff\u3130-\u318f\uffa0-\uffdc"
CYRILLIC = "\u0400-\u04ff"
ARABIC = "\u0600-\u06ff\u0750-\u077f\u08a0-\u08ff"
DEVANAGARI = "\u0900-\u097f"
THAI = "\u0e00-\u0e7f"
LATIN = "A-Za-z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u024f\u1e00-\u1eff"
COMBINING_MARKS = "\u0300-\u036f"

# letters only: sentence punctuation, digits and currency signs of the block
# carry no reading
DEVANAGARI_LETTERS = "\u0900-\u0963\u0971-\u097f"
ARABIC_LETTERS = "\u0610-\u061a\u0620-\u065f\u066e-\u06d3\u06d5-\u06ef\u06fa-\u06ff\u0750-\u077f\u08a0-\u08ff"
THAI_LETTERS = "\u0e01-\u0e3a\u0e40-\u0e4e"

# punctuation the model sometimes leaves between a word and its reading
READING_GAP = "!?.,;:'\"\u2018\u2019\u201a\u201c\u201d\u201e\u2039\u203a\u00ab\u00bb\u2011\u2013\u2014\u2026\\s"


def char_class(*bodies: str) -> str:
    return "[" + "".join(bodies) + "]"


def compile_class(*bodies: str) -> re.Pattern:
    return re.compile(char_class(*bodies))


def count_chars(pattern: re.Pattern, text: str) -> int:
    return len(pattern.findall(text or ""))
