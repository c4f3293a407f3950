import json
import os
import threading
from unittest.mock import patch

import pytest

from copilot_context.core.errors import ConfigError, NetworkError
from copilot_context.core.models import ContextConfig, FetchedFile, SourceSpec
from copilot_context.services import runner


@pytest.fixture
def project(tmp_path, write_tree):
    write_tree(tmp_path, {"README.md": "readme", "docs/guide.md": "guide", "docs/skip.txt": "no"})
    return tmp_path


def _cfg(*sources: SourceSpec) -> ContextConfig:
    return ContextConfig(dest="ctx", sources=list(sources))


def _three_sources() -> ContextConfig:
    return _cfg(
        SourceSpec(name="readme", kind="path", dest="notes/README.md", path="README.md"),
        SourceSpec(name="remote", kind="url", dest="specs/api.yaml", url="https://example.com/api.yaml"),
        SourceSpec(name="docs", kind="path", dest="docs", path="docs", files=["*.md"]),
    )


def test_failing_source_does_not_stop_the_others(project):
    with patch(
        "copilot_context.fetchers.url.fetch", side_effect=NetworkError("connection refused"),
    ):
        summary = runner.run_sources(_three_sources(), project)

    assert summary.attempted == 3
    assert summary.succeeded == 2
    assert summary.failed == 1
    assert summary.failures == [("remote", "connection refused")]
    assert not summary.ok
    assert (project / "ctx/notes/README.md").read_text() == "readme"
    assert (project / "ctx/docs/guide.md").read_text() == "guide"
    assert not (project / "ctx/docs/skip.txt").exists()
    assert not (project / "ctx/specs").exists()


def test_events_follow_the_source_lifecycle(project):
    events = []
    cfg = _cfg(SourceSpec(name="readme", kind="path", dest="README.md", path="README.md"))
    runner.run_sources(cfg, project, on_event=events.append)
    assert [e.state for e in events] == ["pending", "fetching", "writing", "succeeded"]
    assert events[-1].detail == "1 file(s)"


def test_failed_fetch_emits_failed_event(project):
    events = []
    cfg = _cfg(SourceSpec(name="gone", kind="path", dest="x", path="missing"))
    summary = runner.run_sources(cfg, project, on_event=events.append)
    assert [e.state for e in events] == ["pending", "fetching", "failed"]
    assert summary.outcomes[0].error_type == "NotFoundError"


def test_parallel_run_writes_in_declaration_order(project):
    order = []

    def fake_write(files, context_root, dest, *, flatten=False):
        order.append(dest)
        return [dest]

    cfg = _cfg(
        *[SourceSpec(name=f"s{i}", kind="path", dest=f"d{i}", path="README.md") for i in range(5)]
    )
    with patch("copilot_context.services.writer.write", side_effect=fake_write):
        summary = runner.run_sources(cfg, project, jobs=3)
    assert order == ["d0", "d1", "d2", "d3", "d4"]
    assert summary.succeeded == 5
    assert summary.ok


def test_cancel_before_start_marks_sources_cancelled(project):
    cancel = threading.Event()
    cancel.set()
    summary = runner.run_sources(_three_sources(), project, cancel=cancel)
    assert summary.cancelled == ["readme", "remote", "docs"]
    assert summary.attempted == 0
    assert not summary.ok
    assert not (project / "ctx").exists()


def test_write_failure_is_reported_per_source(project):
    cfg = _cfg(
        SourceSpec(name="escape", kind="path", dest=".", path="README.md"),
        SourceSpec(name="fine", kind="path", dest="README.md", path="README.md"),
    )
    summary = runner.run_sources(cfg, project)
    escape, fine = summary.outcomes
    assert escape.state == "failed"
    assert escape.error_type == "PathEscapeError"
    assert fine.state == "succeeded"


def test_unexpected_exception_is_isolated(project):
    cfg = _three_sources()
    with patch(
        "copilot_context.fetchers.url.fetch", side_effect=RuntimeError("boom"),
    ):
        summary = runner.run_sources(cfg, project, jobs=2)
    assert summary.succeeded == 2
    remote = summary.outcomes[1]
    assert remote.state == "failed"
    assert remote.error_type == "RuntimeError"


def test_only_restricts_sources(project):
    summary = runner.run_sources(_three_sources(), project, only=["docs"])
    assert [o.name for o in summary.outcomes] == ["docs"]
    assert summary.ok


def test_only_rejects_unknown_names(project):
    with pytest.raises(ConfigError, match="nope"):
        runner.run_sources(_three_sources(), project, only=["nope"])


def test_source_timeout_overrides_run_timeout(project):
    seen = {}

    def fake_fetch(url, *, timeout=None, client=None):
        seen["timeout"] = timeout
        return [FetchedFile("", b"body")]

    cfg = _cfg(
        SourceSpec(name="remote", kind="url", dest="api.yaml", url="https://example.com/a", timeout=2.5),
    )
    with patch("copilot_context.fetchers.url.fetch", side_effect=fake_fetch):
        summary = runner.run_sources(cfg, project, timeout=60)
    assert seen["timeout"] == 2.5
    assert (project / "ctx/api.yaml").read_bytes() == b"body"
    assert summary.ok


@pytest.mark.skipif(os.name == "nt", reason="scripts use POSIX sh")
def test_shell_source_output_lands_under_dest(project):
    cfg = _cfg(SourceSpec(name="tree", kind="sh", dest="info", script="echo hi > out.txt"))
    summary = runner.run_sources(cfg, project)
    assert summary.outcomes[0].files == ["info/out.txt"]
    assert (project / "ctx/info/out.txt").read_text() == "hi\n"


def test_summary_json(project, tmp_path):
    with patch(
        "copilot_context.fetchers.url.fetch", side_effect=NetworkError("offline"),
    ):
        summary = runner.run_sources(_three_sources(), project)
    out = tmp_path / "reports" / "summary.json"
    runner.write_summary_json(summary, out)

    data = json.loads(out.read_text())
    assert data["attempted"] == 3
    assert data["failed"] == 1
    remote = data["sources"][1]
    assert remote["name"] == "remote"
    assert remote["state"] == "failed"
    assert remote["error_type"] == "NetworkError"
    assert data["sources"][0]["files"] == ["notes/README.md"]
