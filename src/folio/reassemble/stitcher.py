"""
Stitch independently processed fragments back into one document.

The join between two fragments is chosen from the last character of the
text assembled so far and the first character of the next fragment.
"""

import re
from typing import Callable, Iterable, List, NamedTuple

LIST_NUMBER_TAIL_RE = re.compile(r"\d\.\Z")
BULLET_TAIL_RE = re.compile(r"-\s\Z")

CLAUSE_PUNCTUATION = ",;:"
SENTENCE_PUNCTUATION = ".!?"


class JoinRule(NamedTuple):
    name: str
    matches: Callable[[str, str], bool]
    join: Callable[[str, str], str]


def _last_char(text: str) -> str:
    return text[-1:] if text else ""


def _both_alpha(acc: str, fragment: str) -> bool:
    return _last_char(acc).isalpha() and fragment[:1].isalpha()


def _leading(chars: str) -> Callable[[str, str], bool]:
    def matches(acc: str, fragment: str) -> bool:
        return fragment[:1] in chars and not _last_char(acc).isalpha()

    return matches


def _space(acc: str, fragment: str) -> str:
    return acc + " " + fragment


def _newline(acc: str, fragment: str) -> str:
    return acc + "\n" + fragment


def _unhyphenate(acc: str, fragment: str) -> str:
    return acc[:-1] + fragment


JOIN_RULES: List[JoinRule] = [
    JoinRule("word-continuation", _both_alpha, _space),
    JoinRule("clause-punctuation", _leading(CLAUSE_PUNCTUATION), _newline),
    JoinRule("sentence-punctuation", _leading(SENTENCE_PUNCTUATION), _newline),
    JoinRule("hyphen-split", _leading("-"), _unhyphenate),
    JoinRule("numbered-list", lambda acc, _: bool(LIST_NUMBER_TAIL_RE.search(acc)), _newline),
    JoinRule("bullet-list", lambda acc, _: bool(BULLET_TAIL_RE.search(acc)), _newline),
]

# Used when no rule recognises the boundary
FALLBACK_RULE = JoinRule("fallback", lambda acc, fragment: True, _space)


def join_pair(acc: str, fragment: str) -> str:
    """Append one fragment to the accumulated text."""
    if not fragment:
        return acc
    if not acc:
        return fragment
    for rule in JOIN_RULES:
        if rule.matches(acc, fragment):
            return rule.join(acc, fragment)
    return FALLBACK_RULE.join(acc, fragment)


def reassemble(fragments: Iterable[str]) -> str:
    """Left fold of join_pair over the fragments, starting from ''."""
    acc = ""
    for fragment in fragments:
        acc = join_pair(acc, fragment)
    return acc
