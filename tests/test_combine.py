from unittest.mock import patch

import pytest

from copilot_context.core.clipboard import ClipboardError
from copilot_context.services import combine as combine_service


@pytest.fixture
def context_dir(tmp_path):
    path = tmp_path / ".copilot-context"
    path.mkdir()
    return path


def test_headers_with_default_separator(context_dir, write_tree):
    write_tree(context_dir, {"a.txt": "Hello", "b.txt": "World"})
    result = combine_service.combine(
        context_dir, ["a.txt", "b.txt"], with_headers=True, header_format="### {path} ###",
    )
    assert result.text == "### a.txt ###\nHello\n### b.txt ###\nWorld"
    assert result.files == ["a.txt", "b.txt"]


def test_blank_line_separator(context_dir, write_tree):
    write_tree(context_dir, {"a.txt": "Hello", "b.txt": "World"})
    result = combine_service.combine(context_dir, ["a.txt", "b.txt"], separator="\n\n")
    assert result.text == "Hello\n\nWorld"


def test_separator_without_leading_newline(context_dir, write_tree):
    write_tree(context_dir, {"a.rs": "struct A;", "b.rs": "struct B;"})
    result = combine_service.combine(
        context_dir,
        ["*.rs"],
        with_headers=True,
        header_format="// Path: {path}",
        separator="---\n",
    )
    assert result.text == "// Path: a.rs\nstruct A;\n---\n// Path: b.rs\nstruct B;"


def test_default_header_format_uses_relative_paths(context_dir, write_tree):
    write_tree(context_dir, {"docs/guide.md": "guide\n", "notes/todo.md": "todo\n", "skip.txt": "x"})
    result = combine_service.combine(context_dir, ["**/*.md"], with_headers=True)
    assert result.text == "// File: docs/guide.md\nguide\n\n// File: notes/todo.md\ntodo\n"


def test_exclude_patterns_apply(context_dir, write_tree):
    write_tree(context_dir, {"a.md": "a", "b.md": "b", "c.md": "c"})
    files = combine_service.collect(context_dir, ["*.md", "!b.md"])
    assert files == ["a.md", "c.md"]


def test_unsorted_still_contains_every_file(context_dir, write_tree):
    write_tree(context_dir, {"b.txt": "Content B", "a.txt": "Content A"})
    result = combine_service.combine(context_dir, ["*.txt"], sort_files=False)
    assert sorted(result.files) == ["a.txt", "b.txt"]
    assert "Content A" in result.text
    assert "Content B" in result.text


def test_no_match_gives_empty_result(context_dir):
    result = combine_service.combine(context_dir, ["*.nothing"])
    assert result.text == ""
    assert result.files == []


def test_deliver_to_file(tmp_path):
    out = tmp_path / "out" / "combined.txt"
    sink = combine_service.deliver("hello", output=out)
    assert sink == str(out)
    assert out.read_text() == "hello"


def test_deliver_to_clipboard():
    with patch("copilot_context.core.clipboard.copy_text", return_value="pbcopy") as copy:
        sink = combine_service.deliver("hello", to_clipboard=True)
    copy.assert_called_once_with("hello")
    assert sink == "clipboard (pbcopy)"


def test_deliver_rejects_two_sinks(tmp_path):
    with pytest.raises(ValueError):
        combine_service.deliver("x", output=tmp_path / "o.txt", to_clipboard=True)


def test_clipboard_without_tool_raises():
    with patch("copilot_context.core.clipboard.shutil.which", return_value=None):
        with pytest.raises(ClipboardError):
            combine_service.deliver("x", to_clipboard=True)
