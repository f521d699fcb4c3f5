"""Unit tests for wiki markup sanitization."""

import pytest

from aegis.wiki.sanitize import sanitize


class TestSanitize:
    """Tests for markup -> plain text."""

    def test_labelled_link(self):
        assert sanitize("[[Team Liquid|Liquid]]") == "Liquid"

    def test_plain_link(self):
        assert sanitize("[[Team Spirit]]") == "Team Spirit"

    def test_escaped_pipe(self):
        assert sanitize("Seattle{{!}}USA") == "Seattle|USA"

    def test_abbreviation(self):
        assert sanitize("{{Abbr/Bo3}} series") == "Bo3 series"

    def test_unknown_templates_are_dropped(self):
        assert sanitize("Invited {{Flag|ru}}") == "Invited"

    def test_nested_templates_are_dropped(self):
        assert sanitize("A {{Outer|{{Inner|x}}}} B") == "A B"

    def test_transclusion_is_dropped(self):
        assert sanitize("{{:The_International/2024/prizepool}}") == ""

    def test_emphasis_breaks_and_tags(self):
        assert sanitize("'''TI''' {{Flag|us}}<br/>2024") == "TI 2024"
        assert sanitize("<span class=\"x\">Grand</span><br>Final") == "Grand Final"

    def test_whitespace_collapsed(self):
        assert sanitize("  Team \n  Spirit  ") == "Team Spirit"

    def test_empty(self):
        assert sanitize("") == ""

    def test_basepagename(self):
        assert sanitize("{{BASEPAGENAME}} Qualifier") == "Qualifier"

    def test_comments_are_dropped(self):
        assert sanitize("Grand<!-- TBD --> Final") == "Grand Final"

    def test_markup_inside_labels_is_folded(self):
        assert sanitize("[[Team Spirit|'''Spirit''' {{Flag|ru}}]]") == "Spirit"

    def test_deep_nesting_reaches_plain_text(self):
        assert sanitize("[[" * 20 + "x" + "]]" * 20) == "x"

    @pytest.mark.parametrize(
        "raw",
        [
            "[[Team Spirit|Spirit]] {{Flag|ru}}<br>'''Invited'''",
            "[[[[Nested]]|x]]",
            "Seattle{{!}}USA",
            "{{Outer|[[Link|Label]]}} tail",
            "''''quad''''",
            "[[" * 20 + "x" + "]]" * 20,
            "{{" * 20 + "x" + "}}" * 20 + " tail",
        ],
    )
    def test_idempotent(self, raw):
        once = sanitize(raw)
        assert sanitize(once) == once
