"""Workflow events and the pure state transition function.

`transition(state, event)` returns the next `WorkflowState` together with the
effects the orchestrator has to carry out. It performs no I/O, so every
status text and gate decision of the installer can be tested without a UI
or a filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass

from spv3_installer.types import (
    DetectionReport,
    InstallationProgress,
    ValidationReport,
    ViewState,
    WorkflowPhase,
    WorkflowState,
)

READY_MESSAGE = "Waiting for user to install SPV3."
MISSING_MANIFEST_MESSAGE = "Could not find manifest in the data directory."
MISSING_PREREQUISITE_MESSAGE = "Please install a legal copy of HCE before installing SPV3."
ACTIVATED_MESSAGE = "SPV3 successfully activated."
ACTIVATION_FAILED_PREFIX = "Failed to Activate Halo: "
CONFIRM_MESSAGE = (
    "Installation has been successful! "
    "Please install OpenSauce to the SPV3 folder OR Halo CE folder using AmaiSosu. "
    "Click OK to continue ..."
)
FINISHED_MESSAGE = (
    "Installation of SPV3 has successfully finished! "
    "Enjoy SPV3, and join our Discord and Reddit communities!"
)
PROVISIONING_MESSAGE = "Creating SPV3 shortcuts."
LOADER_MISSING_MESSAGE = (
    "SPV3 loader could not be found in the target directory. Please load manually."
)

# Phases during which a commit is in flight; the gate stays closed.
BUSY_PHASES = frozenset(
    {WorkflowPhase.INSTALLING, WorkflowPhase.ACTIVATED, WorkflowPhase.PROVISIONING}
)


def progress_message(progress: InstallationProgress) -> str:
    """Status line shown while the payload is being installed."""
    return f"Installing SPV3. Please wait until this is finished! - {progress.percent:.2f}%"


# ============================================================================
# Events
# ============================================================================


class Event:
    """Base class for workflow events."""

    pass


@dataclass(frozen=True)
class ManifestChecked(Event):
    present: bool


@dataclass(frozen=True)
class LegacyDetectionFinished(Event):
    found: bool


@dataclass(frozen=True)
class TargetValidated(Event):
    report: ValidationReport


@dataclass(frozen=True)
class PrerequisiteDetected(Event):
    report: DetectionReport


@dataclass(frozen=True)
class CommitStarted(Event):
    pass


@dataclass(frozen=True)
class ActivationFinished(Event):
    error: str | None = None


@dataclass(frozen=True)
class ProgressReported(Event):
    progress: InstallationProgress


@dataclass(frozen=True)
class InstallFinished(Event):
    pass


@dataclass(frozen=True)
class ShortcutFailed(Event):
    message: str


@dataclass(frozen=True)
class ShortcutsProvisioned(Event):
    pass


@dataclass(frozen=True)
class AddonFailed(Event):
    message: str


@dataclass(frozen=True)
class ProvisioningFinished(Event):
    product_present: bool


@dataclass(frozen=True)
class CommitFailed(Event):
    message: str


@dataclass(frozen=True)
class StatusReported(Event):
    message: str


@dataclass(frozen=True)
class ViewRequested(Event):
    view: ViewState


# ============================================================================
# Effects
# ============================================================================


class Effect:
    """Base class for side effects requested by a transition."""

    pass


@dataclass(frozen=True)
class ConfirmWithUser(Effect):
    """Block until the user acknowledged message."""

    message: str


# ============================================================================
# Transition
# ============================================================================


def transition(state: WorkflowState, event: Event) -> tuple[WorkflowState, list[Effect]]:
    """Compute the state following event.

    Args:
        state: Current workflow state.
        event: What happened.

    Returns:
        Tuple of (next state, effects to perform).

    Raises:
        TypeError: If event is not a known workflow event.
    """
    busy = state.phase in BUSY_PHASES

    if isinstance(event, ManifestChecked):
        if not event.present:
            return state.evolve(
                phase=WorkflowPhase.MISSING_MANIFEST,
                view=ViewState.MAIN,
                status=MISSING_MANIFEST_MESSAGE,
                can_install=False,
            ), []
        return state.evolve(
            phase=WorkflowPhase.READY_TO_INSTALL,
            view=ViewState.MAIN,
            status=READY_MESSAGE,
            can_install=True,
        ), []

    if isinstance(event, LegacyDetectionFinished):
        if event.found:
            return state, []
        return state.evolve(
            phase=WorkflowPhase.MISSING_PREREQUISITE,
            view=ViewState.PREREQUISITE_INSTALL,
            status=MISSING_PREREQUISITE_MESSAGE,
            can_install=False,
        ), []

    if isinstance(event, TargetValidated):
        return state.evolve(
            status=event.report.reason or state.status,
            can_install=event.report.can_install and not busy,
        ), []

    if isinstance(event, PrerequisiteDetected):
        report = event.report
        changes: dict[str, object] = {"locator_status": report.locator_status}
        if report.status is not None:
            changes["status"] = report.status
        if report.location.found and not busy:
            changes.update(
                phase=WorkflowPhase.READY_TO_INSTALL,
                view=ViewState.MAIN,
                can_install=True,
            )
        return state.evolve(**changes), []

    if isinstance(event, CommitStarted):
        return state.evolve(
            phase=WorkflowPhase.INSTALLING, can_install=False, progress=None
        ), []

    if isinstance(event, ActivationFinished):
        if event.error is not None:
            return state.evolve(
                phase=WorkflowPhase.FAILED_BUT_RECOVERABLE,
                status=ACTIVATION_FAILED_PREFIX + event.error,
                can_install=True,
            ), []
        return state.evolve(phase=WorkflowPhase.ACTIVATED, status=ACTIVATED_MESSAGE), []

    if isinstance(event, ProgressReported):
        return state.evolve(
            phase=WorkflowPhase.INSTALLING,
            status=progress_message(event.progress),
            progress=event.progress,
        ), []

    if isinstance(event, InstallFinished):
        return state.evolve(
            phase=WorkflowPhase.PROVISIONING, status=PROVISIONING_MESSAGE, progress=None
        ), []

    if isinstance(event, (ShortcutFailed, AddonFailed, StatusReported)):
        return state.evolve(status=event.message), []

    if isinstance(event, ShortcutsProvisioned):
        return state, [ConfirmWithUser(CONFIRM_MESSAGE)]

    if isinstance(event, ProvisioningFinished):
        if event.product_present:
            return state.evolve(
                phase=WorkflowPhase.DONE,
                view=ViewState.LOAD_READY,
                status=FINISHED_MESSAGE,
                can_install=True,
            ), []
        return state.evolve(
            phase=WorkflowPhase.DONE,
            status=LOADER_MISSING_MESSAGE,
            can_install=True,
        ), []

    if isinstance(event, CommitFailed):
        return state.evolve(
            phase=WorkflowPhase.FAILED_BUT_RECOVERABLE,
            status=event.message,
            can_install=True,
        ), []

    if isinstance(event, ViewRequested):
        return state.evolve(view=event.view), []

    raise TypeError(f"Unknown workflow event: {event!r}")
