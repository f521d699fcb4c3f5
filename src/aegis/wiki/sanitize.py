"""
Markup sanitizer for wiki field values.

Infobox and roster values arrive as raw wiki markup:

    [[Team Spirit|Spirit]] {{Flag|ru}}<br>'''Invited'''

This module folds that into plain text ("Spirit Invited"). The value is
parsed with mwparserfromhell and its node tree is rendered back as text:
links become their label (or target), tags give up their contents and
templates are dropped. A handful of meta-templates with a known plain-text
meaning ({{!}}, {{BASEPAGENAME}}, {{Abbr/...}}) are rendered explicitly.
Any other template is dropped wholesale, since unknown templates almost
never carry text worth keeping.

The transform is pure and idempotent: sanitize(sanitize(x)) == sanitize(x).
It is applied until the value stops changing, so folding a link can never
expose markup that a second call would still remove. Every pass that
changes the value either shortens it or only rewrites whitespace, so the
loop always reaches that fixed point.
"""

import re

import mwparserfromhell
from mwparserfromhell.nodes import Argument, Comment, Tag, Template, Text, Wikilink
from mwparserfromhell.wikicode import Wikicode

# Tags the parser leaves as plain text (unbalanced or stray markup)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_HTML_TAG = re.compile(r"<[^>]+>")
_EMPHASIS = re.compile(r"'''?")
_WHITESPACE = re.compile(r"\s+")


def _template_text(template: Template) -> str:
    name = str(template.name).strip()
    if name == "!":
        return "|"
    if name.startswith("Abbr/"):
        return name[len("Abbr/"):]
    # BASEPAGENAME, transclusions ({{:page}}) and everything else
    return ""


def _render(code: Wikicode) -> str:
    parts = []
    for node in code.nodes:
        if isinstance(node, Text):
            parts.append(str(node))
        elif isinstance(node, Wikilink):
            parts.append(_render(node.text if node.text is not None else node.title))
        elif isinstance(node, Template):
            parts.append(_template_text(node))
        elif isinstance(node, Tag):
            if str(node.tag).strip().lower() == "br":
                parts.append(" ")
            elif node.contents is not None:
                parts.append(_render(node.contents))
        elif isinstance(node, (Argument, Comment)):
            continue
        else:
            parts.append(str(node))
    return "".join(parts)


def _sanitize_once(value: str) -> str:
    text = _render(mwparserfromhell.parse(value))
    text = _LINE_BREAK.sub(" ", text)
    text = _HTML_TAG.sub("", text)
    text = _EMPHASIS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def sanitize(value: str) -> str:
    """
    Reduce a raw wiki value to plain text.

    Args:
        value: Raw markup from a template field

    Returns:
        Plain text with links folded, templates and tags removed and
        whitespace collapsed. Empty input gives an empty string.

    Examples:
        >>> sanitize("[[Team Liquid|Liquid]]")
        'Liquid'
        >>> sanitize("Seattle{{!}}USA")
        'Seattle|USA'
        >>> sanitize("'''TI''' {{Flag|us}}<br/>2024")
        'TI 2024'
    """
    if not value:
        return ""

    text = value
    while True:
        cleaned = _sanitize_once(text)
        if cleaned == text:
            return text
        text = cleaned
