"""Natural-language query to FTS5 match expression."""

import re

STOP_WORDS = frozenset(
    """
    a an the is are was were be been being have has had do does did will
    would could should may might can i me my we our you your he she it they
    them this that what which who how when where why not no so if or and but
    in on at to for of with by from as into about than after before
    """.split()
)

_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_query(query: str) -> list[str]:
    """Lower-case, strip punctuation, drop stop words and 1-char tokens."""
    cleaned = _PUNCTUATION.sub("", (query or "").lower())
    return [term for term in cleaned.split() if len(term) > 1 and term not in STOP_WORDS]


def match_expression(terms: list[str]) -> str:
    """OR-join terms as quoted FTS5 strings for broad recall."""
    return " OR ".join(f'"{term}"' for term in terms)
