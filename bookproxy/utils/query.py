"""
Query normalization and author-intent classification.
Pure functions, no I/O.
"""
import regex

FULLWIDTH_SPACE = "\u3000"
NAME_SEPARATOR = "\u30fb"  # katakana middle dot

_WHITESPACE_RUN = regex.compile(r"\s+")
_ASCII_DIGIT = regex.compile(r"[0-9]")
_ASCII_LETTER = regex.compile(r"[A-Za-z]")
_JAPANESE_LETTER = regex.compile(r"[\p{Script=Han}\p{Script=Hiragana}\p{Script=Katakana}]")
_NAME_CHARS = regex.compile(
    r"[\p{Script=Han}\p{Script=Hiragana}\p{Script=Katakana}\p{L}" + NAME_SEPARATOR + r"\s]+"
)


def normalize_query(raw: str, isbn: bool = False) -> str:
    """
    Normalize a search string.

    Trims, converts full-width spaces, collapses whitespace runs and,
    for ISBN lookups, strips hyphens. Hyphens are removed after the
    whitespace pass, so only the keyword mode is idempotent for input
    like "978 - 4".
    """
    result = raw.strip()
    result = result.replace(FULLWIDTH_SPACE, " ")
    result = _WHITESPACE_RUN.sub(" ", result)

    if isbn:
        result = result.replace("-", "")

    return result


def is_likely_author_query(query: str) -> bool:
    """
    Heuristic gate: does this query look like a person's name?

    Mixed Latin/Japanese strings and anything containing digits are
    treated as titles. False positives are recovered by the keyword
    fallback.
    """
    trimmed = query.strip()
    if len(trimmed) < 2:
        return False

    if _ASCII_DIGIT.search(trimmed):
        return False

    if _ASCII_LETTER.search(trimmed) and _JAPANESE_LETTER.search(trimmed):
        return False

    return _NAME_CHARS.fullmatch(trimmed) is not None
