"""
Heading-detection rules for page bodies.

Each rule is a (predicate, transform) pair over the page's lines. Rules are
evaluated in priority order and the first whose predicate holds decides the
page heading. A rule may open a new top-level section and may consume the
leading title lines from the body.
"""

import re
from typing import Callable, List, NamedTuple, Optional, Tuple

SECTION_START_RE = re.compile(r"^Section\D")
UPPERCASE_LINE_RE = re.compile(r"[A-Z][A-Z ]*")
SINGLE_LETTER_RE = re.compile(r"[A-Z]")
BARE_INTEGER_RE = re.compile(r"\d+")

FOREWORD = "Foreword"


class Heading(NamedTuple):
    """Outcome of a heading rule."""

    section: Optional[str]  # new section title, None keeps the current one
    subsection: str
    lines: List[str]  # body lines left after consuming the heading


class HeadingRule(NamedTuple):
    name: str
    matches: Callable[[List[str]], bool]
    apply: Callable[[List[str]], Heading]


def consume_uppercase_title(lines: List[str]) -> Tuple[str, List[str]]:
    """Greedily take leading all-uppercase lines as a title.

    A lone uppercase letter is a wrapped drop-cap ("A" / "GRICULTURE"); it is
    glued to the following line. Consumption continues if the result is
    still an uppercase line; otherwise the glued line opens the body.
    """
    parts: List[str] = []
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if SINGLE_LETTER_RE.fullmatch(line):
            if i + 1 >= len(lines):
                break
            joined = line + lines[i + 1].strip()
            if not UPPERCASE_LINE_RE.fullmatch(joined):
                # Drop cap opening the body text
                return " ".join(parts), [joined] + lines[i + 2 :]
            parts.append(joined)
            i += 2
            continue
        if not UPPERCASE_LINE_RE.fullmatch(line):
            break
        parts.append(line)
        i += 1

    return " ".join(parts), lines[i:]


def _is_section_start(lines: List[str]) -> bool:
    return bool(lines) and bool(SECTION_START_RE.match(lines[0].strip()))


def _section_start(lines: List[str]) -> Heading:
    subsection, rest = consume_uppercase_title(lines[1:])
    return Heading(lines[0].strip(), subsection, rest)


def _is_foreword(lines: List[str]) -> bool:
    return bool(lines) and lines[-1].strip() == FOREWORD


def _foreword(lines: List[str]) -> Heading:
    subsection, rest = consume_uppercase_title(lines[:-1])
    return Heading(FOREWORD, subsection, rest)


def _is_front_matter_number(lines: List[str]) -> bool:
    return bool(lines) and bool(BARE_INTEGER_RE.fullmatch(lines[0].strip()))


def _front_matter_number(lines: List[str]) -> Heading:
    # The stray number is a running page number left over from extraction
    subsection, rest = consume_uppercase_title(lines[1:])
    return Heading(None, subsection, rest)


HEADING_RULES: List[HeadingRule] = [
    HeadingRule("section-start", _is_section_start, _section_start),
    HeadingRule("foreword", _is_foreword, _foreword),
    HeadingRule("front-matter-number", _is_front_matter_number, _front_matter_number),
]


def detect_heading(lines: List[str], rules: Optional[List[HeadingRule]] = None) -> Tuple[Optional[str], Heading]:
    """Run the rules in order and return (rule name, heading) of the first match.

    When no rule matches the lines come back untouched with an empty
    subsection and the rule name is None.
    """
    for rule in rules if rules is not None else HEADING_RULES:
        if rule.matches(lines):
            return rule.name, rule.apply(lines)
    return None, Heading(None, "", lines)
