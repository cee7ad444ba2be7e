"""Install target validation.

Checks run in a fixed order: writability, free space, then conflicting
installs. Every check runs even after an earlier one failed. The last check
that reports anything decides the status text; the gate stays open only
while no check has failed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from spv3_installer.config import CONFLICT_MARKERS, GIB, PROBE_FILE, REQUIRED_FREE_BYTES
from spv3_installer.filesystem import RealFileSystem, is_network_path
from spv3_installer.protocols import FileSystem
from spv3_installer.types import InstallTarget, ValidationOutcome, ValidationReport
from spv3_installer.workflow import READY_MESSAGE

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = (
    "Selected folder contains existing HCE or SPV3 data. Please choose a different location."
)


class _Verdict:
    """Running status text and failures; later messages overwrite earlier ones."""

    __slots__ = ("failures", "outcome", "reason")

    def __init__(self) -> None:
        self.outcome = ValidationOutcome.OK
        self.failures: list[ValidationOutcome] = []
        self.reason = ""

    @property
    def can_install(self) -> bool:
        return not self.failures

    def passed(self, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason

    def failed(self, outcome: ValidationOutcome, reason: str) -> None:
        self.outcome = outcome
        self.failures.append(outcome)
        self.reason = reason


class PathValidator:
    """Validates candidate install directories.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        required_free_bytes: int = REQUIRED_FREE_BYTES,
        conflict_markers: tuple[str, ...] = CONFLICT_MARKERS,
    ) -> None:
        """Initialize the validator.

        Args:
            filesystem: Filesystem abstraction (required).
            required_free_bytes: Minimum free space, inclusive.
            conflict_markers: File names indicating an incompatible install.
        """
        self.fs = filesystem
        self.required_free_bytes = required_free_bytes
        self.conflict_markers = conflict_markers

    @classmethod
    def create(
        cls,
        filesystem: FileSystem | None = None,
        required_free_bytes: int = REQUIRED_FREE_BYTES,
    ) -> PathValidator:
        """Factory method for production instantiation."""
        return cls(
            filesystem=filesystem or RealFileSystem(),
            required_free_bytes=required_free_bytes,
        )

    def validate(self, path: Path) -> ValidationReport:
        """Validate a candidate install directory.

        Args:
            path: Candidate directory, created temporarily if missing.

        Returns:
            ValidationReport with the verdict of the last reporting check.
        """
        verdict = _Verdict()

        writable = self._check_writable(path, verdict)
        free_bytes = self._check_space(path, verdict)
        conflict = self._check_conflicts(path, verdict)

        target = InstallTarget(
            path=path,
            writable=writable,
            free_bytes=free_bytes,
            has_conflicting_install=conflict,
        )
        logger.debug("Validated %s: %s (%s)", path, verdict.outcome.value, verdict.reason)
        return ValidationReport(
            target=target,
            outcome=verdict.outcome,
            reason=verdict.reason,
            can_install=verdict.can_install,
            failures=tuple(verdict.failures),
        )

    def _check_writable(self, path: Path, verdict: _Verdict) -> bool:
        """Write and remove a probe file, rolling back a freshly created directory."""
        try:
            self.probe_write(path)
        except OSError as e:
            verdict.failed(
                ValidationOutcome.NOT_WRITABLE,
                f"Installation not possible at selected path: {_describe(e).lower()}",
            )
            return False
        verdict.passed(READY_MESSAGE)
        return True

    def probe_write(self, path: Path) -> None:
        """Create path if needed, write and delete a probe file inside it.

        Raises:
            OSError: If any step fails. A directory created here is removed
                again on every exit path.
        """
        existed = self.fs.exists(path)
        if not existed:
            self.fs.mkdir(path, parents=True)
        probe = path / PROBE_FILE
        try:
            try:
                self.fs.write_bytes(probe, bytes(8))
            finally:
                if self.fs.exists(probe):
                    self.fs.unlink(probe)
        finally:
            if not existed and self.fs.exists(path):
                self.fs.rmdir(path)

    def _check_space(self, path: Path, verdict: _Verdict) -> int | None:
        """Compare free space against the threshold, skipping network shares."""
        if is_network_path(path):
            logger.debug("Skipping free space check for network path %s", path)
            return None

        try:
            free = self.fs.free_bytes(path)
        except OSError as e:
            verdict.failed(
                ValidationOutcome.INSUFFICIENT_SPACE,
                f"Failed to get drive space: {_describe(e).lower()}",
            )
            return None

        if free is None:
            return None
        if free >= self.required_free_bytes:
            verdict.passed()
        else:
            verdict.failed(
                ValidationOutcome.INSUFFICIENT_SPACE,
                f"Not enough disk space ({self.required_free_bytes // GIB}GB required) "
                f"at selected path: {path}",
            )
        return free

    def _check_conflicts(self, path: Path, verdict: _Verdict) -> bool:
        """Refuse folders that already hold a prerequisite or product install."""
        for marker in self.conflict_markers:
            if self.fs.exists(path / marker):
                verdict.failed(ValidationOutcome.CONFLICTING_INSTALL, CONFLICT_MESSAGE)
                return True
        return False


def _describe(error: OSError) -> str:
    return error.strerror or str(error)
