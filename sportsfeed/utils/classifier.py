"""Data-driven text classification.

A classifier is an ordered list of ``Rule(tag, predicate)``. ``classify``
returns the tag of the first rule whose predicate accepts the text, so
adding a category (or a finishing method) is a table edit.

Examples:
    >>> rules = [keyword_rule("Sacks", ["sack"]), keyword_rule("Tackles", ["tackle"])]
    >>> classify(rules, "player sacks", default="All Props")
    'Sacks'
    >>> classify(rules, "passing yards", default="All Props")
    'All Props'
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Rule:
    """One row of a rule table."""
    tag: object
    predicate: Callable[[str], bool]


def keyword_rule(tag, keywords: Iterable[str], case_sensitive: bool = False) -> Rule:
    """
    Build a rule that matches when any keyword is a substring of the text.

    With ``case_sensitive=False`` both keywords and text are lowercased.
    """
    words = tuple(keywords if case_sensitive else (k.lower() for k in keywords))

    def _matches(text: str) -> bool:
        haystack = text if case_sensitive else text.lower()
        return any(word in haystack for word in words)

    return Rule(tag=tag, predicate=_matches)


def classify(rules: Sequence[Rule], text: Optional[str], default: T = None) -> T:
    """Return the tag of the first matching rule, or ``default``."""
    if not text:
        return default
    for rule in rules:
        if rule.predicate(text):
            return rule.tag
    return default
