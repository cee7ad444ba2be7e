"""Shared data types for the SPV3 installer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

__all__ = [
    "AWAITING_INPUT",
    "DetectionReport",
    "InstallTarget",
    "InstallationProgress",
    "LOCATOR_PROMPT",
    "PrerequisiteLocation",
    "Provenance",
    "ValidationOutcome",
    "ValidationReport",
    "ViewState",
    "WorkflowPhase",
    "WorkflowState",
]

AWAITING_INPUT = "Awaiting user input..."
LOCATOR_PROMPT = "Find Steam.exe or its shortcut and we'll do the rest!"


class ValidationOutcome(str, Enum):
    """Verdict of the last install-target check that reported a problem."""

    OK = "ok"
    NOT_WRITABLE = "not_writable"
    INSUFFICIENT_SPACE = "insufficient_space"
    CONFLICTING_INSTALL = "conflicting_install"


class Provenance(str, Enum):
    """Channel through which a prerequisite was located."""

    DIRECT_PROBE = "direct-probe"
    PACKAGE_MANAGER_LOOKUP = "package-manager-lookup"
    NONE = "none"


class ViewState(str, Enum):
    """Panel currently shown to the user. Exactly one is visible."""

    MAIN = "main"
    PREREQUISITE_INSTALL = "prerequisite_install"
    ALTERNATE_PLATFORM = "alternate_platform"
    LOAD_READY = "load_ready"


class WorkflowPhase(str, Enum):
    """Phase of the installation workflow."""

    UNINITIALIZED = "uninitialized"
    READY_TO_INSTALL = "ready_to_install"
    MISSING_PREREQUISITE = "missing_prerequisite"
    MISSING_MANIFEST = "missing_manifest"
    INSTALLING = "installing"
    ACTIVATED = "activated"
    PROVISIONING = "provisioning"
    DONE = "done"
    FAILED_BUT_RECOVERABLE = "failed_but_recoverable"


@dataclass(frozen=True)
class InstallTarget:
    """A candidate install directory and what validation learned about it.

    Attributes:
        path: Candidate directory.
        writable: True if a probe file could be written and removed.
        free_bytes: Free space on the backing volume, None when indeterminate.
        has_conflicting_install: True if a known marker file exists under path.
    """

    path: Path
    writable: bool = False
    free_bytes: int | None = None
    has_conflicting_install: bool = False


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating an install target.

    `reason` holds the status text of the last check that produced one and
    `can_install` the gate value after all checks ran.
    """

    target: InstallTarget
    outcome: ValidationOutcome
    reason: str
    can_install: bool
    failures: tuple[ValidationOutcome, ...] = ()

    @property
    def ok(self) -> bool:
        return self.outcome is ValidationOutcome.OK


@dataclass(frozen=True)
class PrerequisiteLocation:
    """Discovered location of the prerequisite library, if any."""

    path: Path | None = None
    provenance: Provenance = Provenance.NONE

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.provenance is Provenance.NONE and self.path is not None:
            raise ValueError("provenance=NONE cannot carry a path")
        if self.provenance is not Provenance.NONE and self.path is None:
            raise ValueError(f"provenance={self.provenance.value} requires a path")

    @property
    def found(self) -> bool:
        return self.provenance is not Provenance.NONE

    @classmethod
    def not_found(cls) -> PrerequisiteLocation:
        return cls()


@dataclass(frozen=True)
class DetectionReport:
    """Outcome of a locator-driven prerequisite detection.

    Attributes:
        location: Where the prerequisite library was found.
        locator_status: Feedback about the launcher path itself.
        status: Message for the main status line, None when nothing to say.
    """

    location: PrerequisiteLocation
    locator_status: str
    status: str | None = None


@dataclass(frozen=True)
class InstallationProgress:
    """Snapshot emitted by the bulk installer."""

    current: int
    total: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.total < 0 or self.current < 0:
            raise ValueError("progress values cannot be negative")
        if self.current > self.total:
            raise ValueError(f"current ({self.current}) exceeds total ({self.total})")

    @property
    def fraction(self) -> float:
        # An empty payload is complete as soon as it starts.
        if self.total == 0:
            return 1.0
        return self.current / self.total

    @property
    def percent(self) -> float:
        # Truncated, never rounded up, so 100 only shows once current == total.
        if self.total == 0:
            return 100.0
        return (self.current * 10000 // self.total) / 100

    @property
    def complete(self) -> bool:
        return self.current == self.total


@dataclass(frozen=True)
class WorkflowState:
    """Everything the presentation layer renders.

    Instances are immutable; the orchestrator publishes a new value after
    every change.
    """

    phase: WorkflowPhase = WorkflowPhase.UNINITIALIZED
    view: ViewState = ViewState.MAIN
    status: str = AWAITING_INPUT
    can_install: bool = False
    locator_status: str = LOCATOR_PROMPT
    progress: InstallationProgress | None = field(default=None, compare=False)

    def evolve(self, **changes: object) -> WorkflowState:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def visible_panels(self) -> dict[ViewState, bool]:
        """Visibility flag per panel, derived from the single view value."""
        return {view: view is self.view for view in ViewState}
