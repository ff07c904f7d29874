"""Heuristic repair of character-fragmented PDF text.

PDF text runs often come out as "l a n g e r nu ts" or with words glued
together. Reconstruction applies an ordered list of small, named rules.
Each rule is a pure ``str -> str`` function and can be tested on its own.

The whole rule list is re-applied until the text stops changing, so
``reconstruct(reconstruct(t)) == reconstruct(t)``. The result is
best-effort: legitimately spaced short words may be over-merged.
"""

import re
from dataclasses import dataclass
from typing import Callable

from climbing_kb_pdf.vocabulary import FRAGMENT_FIXES, KNOWN_WORDS

MAX_PASSES = 10

# A lone lowercase letter: not touching another letter on either side.
_L = r"(?<![A-Za-z])([a-z])"
_END = r"(?![A-Za-z])"

_TRIPLE_RE = re.compile(_L + r" ([a-z]) ([a-z])" + _END)
_PAIR_RE = re.compile(_L + r" ([a-z])" + _END)
_FIVE_RE = re.compile(_L + r" ([a-z]) ([a-z]) ([a-z]) ([a-z])" + _END)

_CAMEL_RE = re.compile(r"([a-z])([A-Z])")
_LETTER_DIGIT_RE = re.compile(r"([a-zA-Z])([0-9])")
_DIGIT_LETTER_RE = re.compile(r"([0-9])([a-zA-Z])")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"(?<=[A-Za-z]) +(?=[.,:;!?])")
_PUNCT_LETTER_RE = re.compile(r"([.,:;!?])([A-Za-z])")

_WORD_RE = re.compile(r"[A-Za-z][a-z]+")
_GLUED_SHORT_WORD_RE = re.compile(
    r"^([A-Za-z][a-z]{2,})(and|the|of|to|in|for|with|are|can|will|may)$"
)
_GLUED_SUFFIX_RE = re.compile(r"(?<=[A-Za-z]{2})(ing|tion|ed|er|ly|ness)(?=[a-z]{5,})")

_PLURAL_RE = re.compile(r"\b(anchor|carabiner|placement)s\b", re.IGNORECASE)

_FRAGMENT_RES = [
    (re.compile(r"\b" + re.escape(fragment) + r"\b", re.IGNORECASE), fixed)
    for fragment, fixed in FRAGMENT_FIXES.items()
]


@dataclass(frozen=True)
class Rule:
    """A named text transform."""

    name: str
    apply: Callable[[str], str]


def merge_single_letter_triples(text: str) -> str:
    """Merge "l a n" style runs of three lone letters."""
    return _TRIPLE_RE.sub(r"\1\2\3", text)


def merge_single_letter_pairs(text: str) -> str:
    """Merge two adjacent lone letters."""
    return _PAIR_RE.sub(r"\1\2", text)


def merge_single_letter_fives(text: str) -> str:
    """Merge runs of five lone letters."""
    return _FIVE_RE.sub(r"\1\2\3\4\5", text)


def _split_glued_word(match: re.Match) -> str:
    word = match.group(0)
    if word.lower() in KNOWN_WORDS:
        return word
    glued = _GLUED_SHORT_WORD_RE.match(word)
    if glued and glued.group(1).lower() in KNOWN_WORDS:
        return f"{glued.group(1)} {glued.group(2)}"
    for suffix in _GLUED_SUFFIX_RE.finditer(word):
        head, tail = word[: suffix.end()], word[suffix.end() :]
        if head.lower() in KNOWN_WORDS and tail.lower() in KNOWN_WORDS:
            return f"{head} {tail}"
    return word


def insert_word_boundaries(text: str) -> str:
    """Re-insert spaces where words were glued together.

    - between a lowercase and a following capital letter
    - before a common short word glued to the end of a known word
    - after a suffix, when both halves are known words
    - between letters and digits, in either direction
    - no space before punctuation, one space after it before a letter
    """
    text = _CAMEL_RE.sub(r"\1 \2", text)
    text = _WORD_RE.sub(_split_glued_word, text)
    text = _LETTER_DIGIT_RE.sub(r"\1 \2", text)
    text = _DIGIT_LETTER_RE.sub(r"\1 \2", text)
    text = _SPACE_BEFORE_PUNCT_RE.sub("", text)
    return _PUNCT_LETTER_RE.sub(r"\1 \2", text)


def normalize_domain_terms(text: str) -> str:
    """Singularize plural gear terms ("anchors" -> "anchor")."""
    return _PLURAL_RE.sub(r"\1", text)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs, keep at most one blank line, trim."""
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def fix_fragmented_phrases(text: str) -> str:
    """Replace known fragmented phrases with the intended word."""
    for pattern, fixed in _FRAGMENT_RES:
        text = pattern.sub(fixed, text)
    return text


RULES: tuple[Rule, ...] = (
    Rule("merge_single_letter_triples", merge_single_letter_triples),
    Rule("merge_single_letter_pairs", merge_single_letter_pairs),
    Rule("merge_single_letter_fives", merge_single_letter_fives),
    Rule("insert_word_boundaries", insert_word_boundaries),
    Rule("normalize_domain_terms", normalize_domain_terms),
    Rule("normalize_whitespace", normalize_whitespace),
    Rule("fix_fragmented_phrases", fix_fragmented_phrases),
)


def apply_rules(text: str, rules: tuple[Rule, ...] = RULES) -> str:
    """Run every rule once, in order."""
    for rule in rules:
        text = rule.apply(text)
    return text


def reconstruct_text(raw_text: str, rules: tuple[Rule, ...] = RULES) -> str:
    """Repair fragmented PDF text.

    Args:
        raw_text: Text as extracted from the PDF
        rules: Ordered rule list (default: RULES)

    Returns:
        Cleaned text; empty string for empty input

    Example:
        >>> reconstruct_text("Use  l a n ger nuts")
        'Use lan ger nuts'
    """
    if not raw_text:
        return ""

    text = raw_text
    for _ in range(MAX_PASSES):
        repaired = apply_rules(text, rules)
        if repaired == text:
            break
        text = repaired
    return text
