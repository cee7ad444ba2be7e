"""Tests for the bulk install operation."""

from __future__ import annotations

import gzip
import threading
from pathlib import Path

import pytest

from spv3_installer.errors import InstallCancelledError, InstallOperationFailure
from spv3_installer.operation import CopyTreeInstaller, InstallOperation
from spv3_installer.protocols import BulkInstaller
from spv3_installer.types import InstallationProgress


@pytest.fixture
def payload(tmp_path: Path) -> Path:
    source = tmp_path / "data"
    (source / "maps").mkdir(parents=True)
    (source / "manifest.bin").write_bytes(b"manifest")
    (source / "spv3.exe").write_bytes(b"loader")
    (source / "maps" / "a10.map").write_bytes(b"a10")
    with gzip.open(source / "maps" / "b30.map.gz", "wb") as f:
        f.write(b"b30 inflated")
    return source


class ScriptedEngine:
    """BulkInstaller double replaying a fixed list of snapshots."""

    def __init__(self, snapshots: list[tuple[int, int]], error: Exception | None = None):
        self.snapshots = snapshots
        self.error = error

    def install(self, source_dir, target_dir, progress, compress) -> None:
        for current, total in self.snapshots:
            progress(InstallationProgress(current, total))
        if self.error is not None:
            raise self.error


class TestCopyTreeInstaller:
    """Tests for the default copy engine."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(CopyTreeInstaller(), BulkInstaller)

    def test_copies_payload_without_manifest(self, payload: Path, tmp_path: Path) -> None:
        target = tmp_path / "target"
        snapshots: list[InstallationProgress] = []

        CopyTreeInstaller().install(payload, target, snapshots.append, compress=True)

        assert (target / "spv3.exe").read_bytes() == b"loader"
        assert (target / "maps" / "a10.map").read_bytes() == b"a10"
        assert (target / "maps" / "b30.map.gz").exists()
        assert not (target / "manifest.bin").exists()
        assert snapshots[0] == InstallationProgress(0, 3)
        assert snapshots[-1] == InstallationProgress(3, 3)

    def test_inflates_without_compression(self, payload: Path, tmp_path: Path) -> None:
        target = tmp_path / "target"

        CopyTreeInstaller().install(payload, target, lambda p: None, compress=False)

        assert (target / "maps" / "b30.map").read_bytes() == b"b30 inflated"
        assert not (target / "maps" / "b30.map.gz").exists()


class TestInstallOperation:
    """Tests for InstallOperation."""

    def test_reports_progress_and_returns_last(self, payload: Path, tmp_path: Path) -> None:
        seen: list[InstallationProgress] = []
        operation = InstallOperation(CopyTreeInstaller(), payload, tmp_path / "target")

        last = operation.run(seen.append)

        assert last == InstallationProgress(3, 3)
        assert [p.current for p in seen] == [0, 1, 2, 3]

    def test_out_of_order_snapshots_dropped(self, tmp_path: Path) -> None:
        """Test that forwarded progress never goes backwards."""
        engine = ScriptedEngine([(0, 4), (2, 4), (1, 4), (4, 4)])
        seen: list[InstallationProgress] = []

        InstallOperation(engine, tmp_path, tmp_path).run(seen.append)

        percents = [p.percent for p in seen]
        assert percents == [0.0, 50.0, 100.0]

    def test_engine_error_wrapped(self, tmp_path: Path) -> None:
        engine = ScriptedEngine([(0, 1)], error=OSError("disk full"))

        with pytest.raises(InstallOperationFailure, match="disk full"):
            InstallOperation(engine, tmp_path, tmp_path).run(lambda p: None)

    def test_cancelled_before_start(self, tmp_path: Path) -> None:
        cancel = threading.Event()
        cancel.set()
        seen: list[InstallationProgress] = []

        with pytest.raises(InstallCancelledError):
            InstallOperation(ScriptedEngine([(0, 1)]), tmp_path, tmp_path).run(
                seen.append, cancel
            )
        assert seen == []

    def test_cancelled_between_reports(self, tmp_path: Path) -> None:
        """Test that setting cancel stops the engine at its next report."""
        cancel = threading.Event()
        seen: list[InstallationProgress] = []

        def on_progress(progress: InstallationProgress) -> None:
            seen.append(progress)
            if progress.current == 1:
                cancel.set()

        engine = ScriptedEngine([(0, 3), (1, 3), (2, 3), (3, 3)])
        with pytest.raises(InstallCancelledError, match="Installation was cancelled."):
            InstallOperation(engine, tmp_path, tmp_path).run(on_progress, cancel)

        assert [p.current for p in seen] == [0, 1]
