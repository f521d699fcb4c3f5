"""
Template parser for the wiki's markup dialect.

Tournament pages are built from template invocations such as:

    {{Infobox league
    |name=The International 2024
    |prizepoolusd={{:The_International/2024/prizepool}}
    |format=Group stage: {{Abbr/Bo2}}
     Playoffs: Double elimination
    }}

Infoboxes and prize tables routinely nest templates inside field values,
so a regex like ``\\{\\{.*\\}\\}`` cannot find where one ends. Instead we
scan forward from the opening ``{{`` counting brace pairs: ``{{`` raises
the depth, ``}}`` lowers it, and the template ends when the depth is back
to zero. Pairs are consumed two characters at a time; a lone ``{`` or ``}``
never changes the depth.

Infobox field extraction is line oriented: ``|key=value`` starts a field
and any following line that is not itself a field continues the previous
value. Templates whose parameters share lines ({{TeamCard}}, {{Match}},
{{TeamOpponent}}) are read with mwparserfromhell instead; see
template_params.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

import mwparserfromhell

from aegis.wiki.sanitize import sanitize

FIELD_LINE = re.compile(r"^\s*\|([^=]+)=(.*)$")
_KEY_WHITESPACE = re.compile(r"\s+")

# Characters allowed right after a template name. Anything else means we
# hit a longer name sharing the prefix ({{Match vs {{Matchlist).
_NAME_TERMINATORS = frozenset("|}\n\r\t <")


@dataclass(frozen=True)
class TemplateInvocation:
    """
    One located template invocation.

    Attributes:
        name: Template name as searched for
        body: Exact source span, from the opening to the closing braces
        start: Offset of the opening braces in the source text
        end: Offset just past the closing braces
        fields: Ordered key -> value mapping (empty until parsed)
    """
    name: str
    body: str
    start: int
    end: int
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.fields.get(key)
        return value if value else default

    def __repr__(self) -> str:
        return f"<TemplateInvocation(name='{self.name}', span={self.start}:{self.end}, fields={len(self.fields)})>"


def find_balanced_end(text: str, start: int) -> Optional[int]:
    """
    Find the end of the brace-balanced span opening at ``start``.

    Args:
        text: Source text
        start: Offset of an opening ``{{``

    Returns:
        Offset just past the matching ``}}``, or None when the template
        is never closed.
    """
    depth = 0
    i = start
    last = len(text) - 1
    while i < last:
        pair = text[i:i + 2]
        if pair == "{{":
            depth += 1
            i += 2
        elif pair == "}}":
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return None


def _occurrences(text: str, name: str) -> Iterator[int]:
    token = "{{" + name
    pos = text.find(token)
    while pos != -1:
        after = pos + len(token)
        if after >= len(text) or text[after] in _NAME_TERMINATORS:
            yield pos
        pos = text.find(token, pos + 1)


def find_all_templates(text: str, name: str) -> list[TemplateInvocation]:
    """Locate every invocation of ``name`` in document order (fields unparsed)."""
    found = []
    resume = 0
    for pos in _occurrences(text, name):
        # Skip occurrences nested inside one we already returned
        if pos < resume:
            continue
        end = find_balanced_end(text, pos)
        if end is None:
            continue
        found.append(TemplateInvocation(name=name, body=text[pos:end], start=pos, end=end))
        resume = end
    return found


def find_template(text: str, name: str) -> Optional[TemplateInvocation]:
    """Locate the first invocation of ``name``, or None when absent."""
    if not text:
        return None
    for pos in _occurrences(text, name):
        end = find_balanced_end(text, pos)
        if end is not None:
            return TemplateInvocation(name=name, body=text[pos:end], start=pos, end=end)
    return None


def normalize_key(key: str) -> str:
    return _KEY_WHITESPACE.sub("_", key.strip().lower())


def extract_fields(body: str, preserve_raw: Iterable[str] = ()) -> dict[str, str]:
    """
    Parse ``|key=value`` fields from a template body.

    Args:
        body: Template span as returned by find_template (outer braces
            are optional)
        preserve_raw: Normalized keys whose values skip sanitization, e.g.
            a prize pool that holds a transclusion we still need to follow

    Returns:
        Ordered mapping of normalized key -> value. Later duplicates win.
    """
    raw_keys = set(preserve_raw)
    inner = body
    if inner.startswith("{{") and inner.endswith("}}"):
        inner = inner[2:-2]

    fields: dict[str, str] = {}
    current_key: Optional[str] = None
    current_value = ""

    def _store() -> None:
        value = current_value.strip()
        fields[current_key] = value if current_key in raw_keys else sanitize(value)

    for line in inner.split("\n"):
        match = FIELD_LINE.match(line)
        if match:
            if current_key is not None:
                _store()
            current_key = normalize_key(match.group(1))
            current_value = match.group(2)
        elif current_key is not None:
            current_value += " " + line.strip()

    if current_key is not None:
        _store()

    return fields


def template_name(template) -> str:
    """Lowercased name of a parsed template, without comments or padding."""
    return template.name.strip_code().strip().lower()


def template_params(body: str) -> dict[str, str]:
    """
    Raw parameters of the outermost template in ``body``.

    Parameters may share a line (``|p1=Yatoro |p1flag=ua``) or sit on the
    opening line itself (``{{TeamCard|team=Team Spirit|p1=Yatoro}}``).
    Positional parameters are keyed "1", "2", ... Values are stripped but
    not sanitized; later duplicates win.
    """
    templates = mwparserfromhell.parse(body or "").filter_templates(recursive=False)
    if not templates:
        return {}
    return {normalize_key(str(param.name)): str(param.value).strip() for param in templates[0].params}


def parse_template(
    text: str,
    name: str,
    preserve_raw: Iterable[str] = (),
) -> Optional[TemplateInvocation]:
    """Locate the first ``name`` invocation and parse its fields."""
    located = find_template(text, name)
    if located is None:
        return None
    return TemplateInvocation(
        name=located.name,
        body=located.body,
        start=located.start,
        end=located.end,
        fields=extract_fields(located.body, preserve_raw),
    )
