"""
Tests for 'did you mean' suggestions
"""
import pytest
from mediator.suggestions import component_names, levenshtein, suggest


class TestLevenshtein:

    @pytest.mark.unit
    @pytest.mark.parametrize("a,b,expected", [
        ("", "abc", 3),
        ("button", "button", 0),
        ("buton", "button", 1),
        ("kitten", "sitting", 3),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected


class TestSuggest:

    @pytest.mark.unit
    def test_typo_suggests_component(self):
        assert suggest("Buton", ["Button", "Stack", "TextBox"]) == ["Button"]

    @pytest.mark.unit
    def test_exact_match_is_not_suggested(self):
        assert suggest("button", ["Button", "IconButton"]) == ["IconButton"]

    @pytest.mark.unit
    def test_closest_first_and_capped(self):
        out = suggest("stack", ["VStack", "HStack", "CHStack", "Stacks", "Text"], max_n=2)
        assert len(out) == 2
        assert out[0] in ("VStack", "HStack", "Stacks")

    @pytest.mark.unit
    def test_nothing_close(self):
        assert suggest("zzznotarealthing", ["Button", "Stack"]) == []

    @pytest.mark.unit
    def test_component_names(self, corpus):
        names = component_names(corpus)
        assert "Button" in names and "BarChart" in names
        assert "_overview" not in names

    @pytest.mark.unit
    def test_component_names_without_docs(self, tmp_path):
        assert component_names(tmp_path) == []
