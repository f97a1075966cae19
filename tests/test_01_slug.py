"""
Slug and sorting tests
======================
  - make_slug: character folding, separator collapsing, random suffix
  - natural ordering of read models
"""

from __future__ import annotations

import re

from app.services.slug import make_slug, strip_diacritics
from app.services.sorting import natural_key, sort_initiatives, sort_people


SLUG = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*-[0-9a-f]{8}$")


def without_suffix(slug: str) -> str:
    return slug[:-9]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. make_slug
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestMakeSlug:
    def test_shape(self):
        for name in ["Alice Doe", "  Klimafonds 2030 ", "A/B_C-D", "Ünïcödé Ärger"]:
            assert SLUG.match(make_slug(name)), name

    def test_lowercases(self):
        assert without_suffix(make_slug("Alice Doe")) == "alice-doe"

    def test_strips_diacritics(self):
        assert without_suffix(make_slug("Jürg Müller")) == "jurg-muller"
        assert without_suffix(make_slug("ö")) == "o"

    def test_sharp_s_expands(self):
        assert without_suffix(make_slug("Straße")) == "strasse"

    def test_collapses_separator_runs(self):
        assert without_suffix(make_slug("a-  _  -__ -b")) == "a-b"
        assert without_suffix(make_slug("a / b")) == "a-b"

    def test_trims_leading_and_trailing_separators(self):
        assert without_suffix(make_slug("--  hello  __")) == "hello"

    def test_drops_other_characters(self):
        assert without_suffix(make_slug("Rock'n'Roll! (live)")) == "rocknroll-live"

    def test_removed_characters_leave_no_double_hyphen(self):
        assert without_suffix(make_slug("Ab ( ) cd")) == "ab-cd"
        assert without_suffix(make_slug("Clean Water !! - Now")) == "clean-water-now"
        assert without_suffix(make_slug("(Ab) cd (")) == "ab-cd"

    def test_punctuation_only(self):
        slug = make_slug("!!!! ???? ....")
        assert SLUG.match(slug)
        assert without_suffix(slug) == "x"

    def test_shape_for_awkward_names(self):
        for name in ["Ab ( ) cd", "- ! -", "((((()))))", "a--!--b", " ß ", "Ω Ж 中文"]:
            assert SLUG.match(make_slug(name)), name

    def test_suffix_is_random(self):
        assert make_slug("same name") != make_slug("same name")

    def test_strip_diacritics_keeps_base_letters(self):
        assert strip_diacritics("éèëï") == "eeei"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. Sorting
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestSorting:
    def test_numbers_compare_numerically(self):
        assert natural_key("Item 9") < natural_key("Item 10")

    def test_case_and_accents_ignored(self):
        assert natural_key("Émile") == natural_key("emile")

    def test_people_by_name_then_id(self):
        people = [
            {"id": "b", "name": "Zoe"},
            {"id": "c", "name": "anna"},
            {"id": "a", "name": "Anna"},
        ]
        assert [p["id"] for p in sort_people(people)] == ["a", "c", "b"]

    def test_initiatives_deadline_descending(self):
        rows = [
            {"id": "1", "short_name": "Beta", "deadline": "2024-01-01"},
            {"id": "2", "short_name": "Alpha", "deadline": "2025-06-30"},
            {"id": "3", "short_name": "Gamma", "deadline": None},
            {"id": "4", "short_name": "Alpha", "deadline": "2024-01-01"},
        ]
        assert [r["id"] for r in sort_initiatives(rows)] == ["2", "4", "1", "3"]
