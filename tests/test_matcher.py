import pytest

from copilot_context.core.errors import ConfigError
from copilot_context.core.matcher import FilterSet, MatchRule


def test_no_rules_includes_everything():
    assert FilterSet().includes("anything/at/all.txt")
    assert FilterSet.parse(None).includes("x")


def test_last_match_wins():
    rules = FilterSet.parse(["*.md", "!secret.md"])
    assert rules.includes("readme.md")
    assert not rules.includes("secret.md")


def test_rule_order_matters():
    rules = FilterSet.parse(["!secret.md", "*.md"])
    assert rules.includes("secret.md")
    assert rules.includes("readme.md")


def test_evaluation_is_deterministic():
    rules = FilterSet.parse(["docs/**", "!docs/private/*", "*.md"])
    for path in ["docs/a.md", "docs/private/x.md", "docs/private/y.txt", "src/main.py"]:
        assert rules.includes(path) == rules.includes(path)


def test_only_excludes_means_everything_else():
    rules = FilterSet.parse(["!CNAME"])
    assert not rules.includes("CNAME")
    assert rules.includes("index.html")
    assert rules.includes("css/site.css")


def test_includes_make_unmatched_paths_excluded():
    rules = FilterSet.parse(["*.md"])
    assert rules.includes("readme.md")
    assert not rules.includes("main.py")


def test_single_star_does_not_cross_separators():
    rule = MatchRule.parse("*.md")
    assert rule.matches("readme.md")
    assert not rule.matches("docs/readme.md")


def test_double_star_crosses_separators():
    rules = FilterSet.parse(["**/*.rs"])
    assert rules.includes("lib.rs")
    assert rules.includes("src/deep/mod.rs")
    assert not rules.includes("src/readme.md")


def test_directory_suffix_matches_whole_subtree():
    rules = FilterSet.parse(["!b/**"])
    assert not rules.includes("b/b.txt")
    assert not rules.includes("b/c/d.txt")
    assert rules.includes("a.txt")
    assert not FilterSet.parse(["!vendor/"]).includes("vendor/x/y.js")


def test_question_mark_and_classes():
    assert MatchRule.parse("file?.txt").matches("file1.txt")
    assert not MatchRule.parse("file?.txt").matches("file/.txt")
    assert MatchRule.parse("[ab].txt").matches("a.txt")
    assert not MatchRule.parse("[!ab].txt").matches("a.txt")
    assert MatchRule.parse("[!ab].txt").matches("c.txt")


def test_matching_is_case_sensitive():
    assert not FilterSet.parse(["*.MD"]).includes("readme.md")


def test_windows_separators_are_normalised():
    rules = FilterSet.parse(["docs/*.md"])
    assert rules.includes("docs\\guide.md")
    assert rules.includes("./docs/guide.md")


def test_special_characters_are_literal():
    assert MatchRule.parse("a+b(1).txt").matches("a+b(1).txt")
    assert not MatchRule.parse("a.txt").matches("abtxt")


@pytest.mark.parametrize("raw", ["", "   ", "!", "! "])
def test_empty_pattern_is_a_config_error(raw):
    with pytest.raises(ConfigError):
        MatchRule.parse(raw)
