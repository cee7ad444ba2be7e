"""Bulk payload installation."""

from __future__ import annotations

import gzip
import logging
import shutil
import threading
from pathlib import Path

from spv3_installer.config import MANIFEST_NAME
from spv3_installer.errors import InstallCancelledError, InstallOperationFailure
from spv3_installer.protocols import BulkInstaller, ProgressSink
from spv3_installer.types import InstallationProgress

logger = logging.getLogger(__name__)

# Payload entries that are already compressed and are copied verbatim.
COMPRESSED_SUFFIXES = {".gz"}


class CopyTreeInstaller:
    """Default payload engine: copies every file of the source tree.

    Files stored as `.gz` in the payload are inflated into the target unless
    `compress` is set, in which case they are kept as-is. The manifest itself
    is not installed. Satisfies the BulkInstaller protocol structurally.
    """

    def install(
        self,
        source_dir: Path,
        target_dir: Path,
        progress: ProgressSink,
        compress: bool,
    ) -> None:
        files = sorted(
            p for p in source_dir.rglob("*") if p.is_file() and p.name != MANIFEST_NAME
        )
        total = len(files)
        progress(InstallationProgress(0, total))

        for index, src in enumerate(files, start=1):
            relative = src.relative_to(source_dir)
            target_dir.joinpath(relative).parent.mkdir(parents=True, exist_ok=True)
            if src.suffix in COMPRESSED_SUFFIXES and not compress:
                self._inflate(src, target_dir / relative.with_suffix(""))
            else:
                shutil.copy2(src, target_dir / relative)
            progress(InstallationProgress(index, total))

    def _inflate(self, src: Path, dst: Path) -> None:
        with gzip.open(src, "rb") as fin, dst.open("wb") as fout:
            shutil.copyfileobj(fin, fout)


class InstallOperation:
    """One run of the bulk installer, with progress and a cancel context.

    The wrapped engine reports through a sink; this class checks the cancel
    event between reports and converts engine errors into
    InstallOperationFailure.
    """

    def __init__(
        self,
        engine: BulkInstaller,
        source_dir: Path,
        target_dir: Path,
        compress: bool = True,
    ) -> None:
        self.engine = engine
        self.source_dir = source_dir
        self.target_dir = target_dir
        self.compress = compress

    def run(
        self,
        on_progress: ProgressSink,
        cancel: threading.Event | None = None,
    ) -> InstallationProgress | None:
        """Run the install to completion on the calling thread.

        Args:
            on_progress: Receives every snapshot the engine reports.
            cancel: Set it to abort at the next progress report.

        Returns:
            The last reported snapshot.

        Raises:
            InstallCancelledError: If cancel was set.
            InstallOperationFailure: If the engine failed.
        """
        last: InstallationProgress | None = None

        def sink(snapshot: InstallationProgress) -> None:
            nonlocal last
            if cancel is not None and cancel.is_set():
                raise InstallCancelledError()
            if last is not None and snapshot.current < last.current:
                logger.debug("Ignoring out-of-order progress %s after %s", snapshot, last)
                return
            last = snapshot
            on_progress(snapshot)

        if cancel is not None and cancel.is_set():
            raise InstallCancelledError()

        logger.debug(
            "Installing %s -> %s (compress=%s)", self.source_dir, self.target_dir, self.compress
        )
        try:
            self.engine.install(self.source_dir, self.target_dir, sink, self.compress)
        except InstallOperationFailure:
            raise
        except Exception as e:
            raise InstallOperationFailure(str(e)) from e
        return last
