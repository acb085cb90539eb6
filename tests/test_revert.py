"""Tests for transactional reverts."""

import shutil
import subprocess
from pathlib import Path

import pytest

from ccguard.snapshot.content import ContentStore, digest
from ccguard.snapshot.errors import RevertError
from ccguard.snapshot.models import ProjectSnapshot
from ccguard.snapshot.revert import RevertEngine
from ccguard.snapshot.scanner import ProjectScanner


def _capture(root: Path, blobs: Path) -> tuple[ProjectScanner, ContentStore, ProjectSnapshot]:
    scanner = ProjectScanner(root)
    content = ContentStore(blobs)
    snapshot = ProjectSnapshot(session_id="s", files=scanner.scan_project())
    content.capture(snapshot.files.values(), scanner.read_bytes)
    return scanner, content, snapshot


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "a.py").write_bytes(b"alpha = 1\n\n# trailing spaces   \n")
    (root / "b.py").write_bytes(b"beta = 2\n")
    return root.resolve()


def test_restores_modified_and_deletes_created(project: Path, tmp_path: Path) -> None:
    scanner, content, before = _capture(project, tmp_path / "blobs")
    original = (project / "a.py").read_bytes()
    (project / "a.py").write_text("alpha = 1\nextra = 2\nmore = 3\n", encoding="utf-8")
    (project / "new.py").write_text("created\n", encoding="utf-8")

    engine = RevertEngine(project, content_store=content, use_git=False)
    result = engine.revert_to_snapshot([str(project / "a.py"), str(project / "new.py")], before)

    assert result.success
    assert (project / "a.py").read_bytes() == original
    assert not (project / "new.py").exists()
    assert result.restored == (str(project / "a.py"),)
    assert result.deleted == (str(project / "new.py"),)
    rescanned = scanner.scan_file(project / "a.py")
    expected = before.files[str(project / "a.py")]
    assert (rescanned.line_count, rescanned.content_hash) == (expected.line_count, expected.content_hash)


def test_recreates_deleted_file_from_content(project: Path, tmp_path: Path) -> None:
    _, content, before = _capture(project, tmp_path / "blobs")
    (project / "b.py").unlink()

    result = RevertEngine(project, content_store=content, use_git=False).revert_to_snapshot(
        [str(project / "b.py")], before
    )

    assert result.success
    assert (project / "b.py").read_bytes() == b"beta = 2\n"


def test_without_content_or_git_recorded_file_is_deleted(project: Path) -> None:
    before = ProjectSnapshot(session_id="s", files=ProjectScanner(project).scan_project())
    (project / "a.py").write_text("changed\n", encoding="utf-8")

    result = RevertEngine(project, use_git=False).revert_to_snapshot([str(project / "a.py")], before)

    assert result.success
    assert not (project / "a.py").exists()


def test_failure_midway_rolls_every_path_back(
    project: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _, content, before = _capture(project, tmp_path / "blobs")
    (project / "a.py").write_text("a changed\n", encoding="utf-8")
    (project / "b.py").write_text("b changed\n", encoding="utf-8")
    (project / "c.py").write_text("c created\n", encoding="utf-8")
    paths = [str(project / name) for name in ("a.py", "b.py", "c.py", "never.py")]
    state_before_attempt = {path: Path(path).read_bytes() if Path(path).exists() else None for path in paths}

    original_restore = RevertEngine._restore
    calls: list[str] = []

    def _flaky(
        self: RevertEngine, path: str, target: ProjectSnapshot, kept: frozenset[str]
    ) -> str:
        calls.append(path)
        if len(calls) == 2:
            raise OSError("disk full")
        return original_restore(self, path, target, kept)

    monkeypatch.setattr(RevertEngine, "_restore", _flaky)
    result = RevertEngine(project, content_store=content, use_git=False).revert_to_snapshot(paths, before)

    assert not result.success
    assert "disk full" in (result.error or "")
    after = {path: Path(path).read_bytes() if Path(path).exists() else None for path in paths}
    assert after == state_before_attempt


class _BrokenGit:
    def is_tracked(self, path: object) -> bool:
        return True

    def checkout(self, path: object, revision: str = "HEAD") -> None:
        raise RevertError("checkout exploded")


def test_git_failure_is_surfaced_and_tree_left_untouched(project: Path) -> None:
    before = ProjectSnapshot(session_id="s", files=ProjectScanner(project).scan_project())
    (project / "a.py").write_text("edited\n", encoding="utf-8")
    (project / "extra.py").write_text("new\n", encoding="utf-8")

    engine = RevertEngine(project, git=_BrokenGit())  # type: ignore[arg-type]
    result = engine.revert_to_snapshot([str(project / "a.py"), str(project / "extra.py")], before)

    assert not result.success
    assert "checkout exploded" in (result.error or "")
    assert (project / "a.py").read_text(encoding="utf-8") == "edited\n"
    assert (project / "extra.py").read_text(encoding="utf-8") == "new\n"


@pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")
def test_git_checkout_restores_tracked_file(project: Path) -> None:
    def _git(*args: str) -> None:
        subprocess.run(
            ["git", "-c", "user.name=ccguard", "-c", "user.email=ccguard@example.com", *args],
            cwd=project,
            check=True,
            capture_output=True,
        )

    _git("init", "-q")
    _git("add", "a.py")
    _git("commit", "-q", "-m", "init")
    before = ProjectSnapshot(session_id="s", files=ProjectScanner(project).scan_project())
    original = (project / "a.py").read_bytes()
    (project / "a.py").write_text("rewritten\n", encoding="utf-8")

    result = RevertEngine(project).revert_to_snapshot([str(project / "a.py")], before)

    assert result.success
    assert (project / "a.py").read_bytes() == original


def test_content_store_prunes_and_verifies(tmp_path: Path) -> None:
    store = ContentStore(tmp_path / "blobs")
    keep = store.put(b"keep me")
    drop = store.put(b"drop me")

    assert store.retain({keep}) == 1
    assert store.get(keep) == b"keep me"
    assert not store.has(drop)

    (tmp_path / "blobs" / keep).write_bytes(b"tampered")
    assert store.get(keep) is None
    assert keep == digest(b"keep me")


def test_undoing_creation_prunes_directories_it_made(project: Path, tmp_path: Path) -> None:
    (project / "pkg").mkdir()
    (project / "pkg" / "old.py").write_text("kept = 1\n", encoding="utf-8")
    _, content, before = _capture(project, tmp_path / "blobs")
    created = project / "new" / "deep" / "mod.py"
    created.parent.mkdir(parents=True)
    created.write_text("x = 1\n", encoding="utf-8")
    sibling = project / "pkg" / "sub" / "extra.py"
    sibling.parent.mkdir()
    sibling.write_text("y = 2\n", encoding="utf-8")

    result = RevertEngine(project, content_store=content, use_git=False).revert_to_snapshot(
        [str(created), str(sibling)], before
    )

    assert result.success
    assert not (project / "new").exists()
    assert not (project / "pkg" / "sub").exists()
    assert (project / "pkg" / "old.py").exists()
    assert project.exists()


def test_kept_paths_are_never_deleted(project: Path) -> None:
    before = ProjectSnapshot(session_id="s", files={})
    (project / "a.py").write_text("grown\n" * 3, encoding="utf-8")
    (project / "fresh.py").write_text("new\n", encoding="utf-8")

    result = RevertEngine(project, use_git=False).revert_to_snapshot(
        [str(project / "a.py"), str(project / "fresh.py")],
        before,
        keep=[str(project / "a.py")],
    )

    assert result.success
    assert (project / "a.py").exists()
    assert not (project / "fresh.py").exists()
    assert result.deleted == (str(project / "fresh.py"),)
