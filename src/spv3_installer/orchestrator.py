"""Installation orchestrator.

Owns the `WorkflowState` and sequences validation, detection, activation,
the bulk install and provisioning. State changes go through
`workflow.transition`; subscribers receive every new state.

Only the thread that created the orchestrator may change its state. The
bulk install runs on a worker thread and its progress reports are posted
back to the event loop that awaits `commit()`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Awaitable, Callable

from spv3_installer.activation import ActivationStep
from spv3_installer.config import PRODUCT_EXECUTABLE, InstallerConfig
from spv3_installer.detection import PrerequisiteDetector
from spv3_installer.operation import InstallOperation
from spv3_installer.protocols import BulkInstaller, CommandRunner, FileSystem
from spv3_installer.provisioning import ProvisioningStep
from spv3_installer.types import (
    DetectionReport,
    PrerequisiteLocation,
    ValidationReport,
    ViewState,
    WorkflowState,
)
from spv3_installer.validation import PathValidator
from spv3_installer.workflow import (
    ActivationFinished,
    AddonFailed,
    CommitFailed,
    CommitStarted,
    ConfirmWithUser,
    Effect,
    Event,
    InstallFinished,
    LegacyDetectionFinished,
    ManifestChecked,
    PrerequisiteDetected,
    ProgressReported,
    ProvisioningFinished,
    ShortcutFailed,
    ShortcutsProvisioned,
    StatusReported,
    TargetValidated,
    ViewRequested,
    transition,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[WorkflowState], None]
Confirm = Callable[[str], "Awaitable[Any] | Any"]


class InstallOrchestrator:
    """Drives one installation workflow.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` (or `context.create_context()`) for
    production instantiation.
    """

    def __init__(
        self,
        config: InstallerConfig,
        validator: PathValidator,
        detector: PrerequisiteDetector,
        activation: ActivationStep,
        provisioning: ProvisioningStep,
        engine: BulkInstaller,
        filesystem: FileSystem,
        runner: CommandRunner,
        exit_process: Callable[[int], Any] = sys.exit,
    ) -> None:
        """Initialize the orchestrator with required dependencies.

        Args:
            config: Installer settings.
            validator: Install target validator.
            detector: Prerequisite detector.
            activation: Privileged activation step.
            provisioning: Shortcut and add-on provisioning.
            engine: Bulk payload installer.
            filesystem: Filesystem abstraction.
            runner: Runs the prerequisite setup and the installed product.
            exit_process: Terminates the process after launching the product.
        """
        self.config = config
        self.validator = validator
        self.detector = detector
        self.activation = activation
        self.provisioning = provisioning
        self.engine = engine
        self.fs = filesystem
        self.runner = runner
        self.exit_process = exit_process

        self.target: Path = config.target_dir
        self.locator: Path = config.steam_exe
        self.library: Path = detector.probe.library_path(config.steam_exe)
        self.location = PrerequisiteLocation.not_found()

        self._state = WorkflowState()
        self._subscribers: list[Subscriber] = []
        self._owner = threading.get_ident()

    @classmethod
    def create(cls, config: InstallerConfig | None = None) -> InstallOrchestrator:
        """Factory method wiring the default collaborators."""
        from spv3_installer.context import create_context

        return create_context(config=config).orchestrator

    # ------------------------------------------------------------------
    # State and subscriptions
    # ------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback receiving every new state.

        Returns:
            Function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dispatch(self, event: Event) -> list[Effect]:
        """Apply an event and publish the resulting state.

        Raises:
            RuntimeError: If called from a thread other than the owner.
        """
        if threading.get_ident() != self._owner:
            raise RuntimeError("Workflow state can only change on the thread that owns it")

        new_state, effects = transition(self._state, event)
        if new_state is not self._state:
            if new_state.status != self._state.status:
                logger.info("%s", new_state.status)
            self._state = new_state
            for callback in list(self._subscribers):
                callback(new_state)
        return effects

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def initialise(self) -> None:
        """Check the payload manifest and the legacy prerequisite install."""
        self.dispatch(ViewRequested(ViewState.MAIN))

        manifest = self.config.manifest_path
        present = self.fs.exists(manifest)
        self.dispatch(ManifestChecked(present=present))
        if not present:
            logger.debug("Manifest missing at %s", manifest)
            return

        if self.config.skip_prerequisite_detection:
            logger.debug("Prerequisite detection skipped by configuration")
            return

        legacy = self.detector.detect_legacy()
        self.dispatch(LegacyDetectionFinished(found=legacy.found))

    def set_target(self, path: Path) -> ValidationReport:
        """Select and validate a new install target."""
        self.target = path
        report = self.validator.validate(path)
        self.dispatch(TargetValidated(report))
        return report

    def set_locator(self, path: Path) -> DetectionReport:
        """Select a new launcher path and re-run prerequisite detection."""
        self.locator = path
        report = self.detector.detect(path)
        if report.location.found:
            self.location = report.location
            self.library = report.location.path
        elif self.fs.exists(path):
            self.library = self.detector.probe.library_path(path)
        self.dispatch(PrerequisiteDetected(report))
        return report

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    async def commit(
        self,
        confirm: Confirm | None = None,
        cancel: threading.Event | None = None,
    ) -> WorkflowState:
        """Activate, install and provision the product.

        Does nothing while `can_install` is False; that flag is the only
        guard against concurrent commits.

        Args:
            confirm: Called with the post-install message; awaited if it
                returns an awaitable.
            cancel: Set to abort the bulk install.

        Returns:
            The state after the commit finished.
        """
        if not self._state.can_install:
            logger.debug("Commit ignored, installation is not possible right now")
            return self._state

        target = self.target
        self.dispatch(CommitStarted())
        try:
            if self.fs.exists(self.library):
                try:
                    await asyncio.to_thread(self.activation.activate, target)
                except Exception as e:
                    logger.exception("Activation failed")
                    self.dispatch(ActivationFinished(error=str(e)))
                    return self._state
                self.dispatch(ActivationFinished())

            await self._install(target, cancel)
            self.dispatch(InstallFinished())

            for message in self.provisioning.create_shortcuts(target):
                self.dispatch(ShortcutFailed(message))
            await self._perform(self.dispatch(ShortcutsProvisioned()), confirm)

            try:
                await asyncio.to_thread(self.provisioning.run_addon, target)
            except Exception as e:
                logger.warning("Add-on installer failed: %s", e)
                self.dispatch(AddonFailed(str(e)))
            finally:
                present = self.fs.exists(target / PRODUCT_EXECUTABLE)
                self.dispatch(ProvisioningFinished(product_present=present))
        except Exception as e:
            logger.exception("Installation failed")
            self.dispatch(CommitFailed(str(e)))
        return self._state

    async def _install(self, target: Path, cancel: threading.Event | None) -> None:
        """Run the bulk install on a worker thread, streaming progress."""
        loop = asyncio.get_running_loop()
        operation = InstallOperation(
            self.engine,
            self.config.source_dir,
            target,
            compress=self.config.compress,
        )

        def on_progress(progress) -> None:
            loop.call_soon_threadsafe(self.dispatch, ProgressReported(progress))

        await asyncio.to_thread(operation.run, on_progress, cancel)

    async def _perform(self, effects: list[Effect], confirm: Confirm | None) -> None:
        for effect in effects:
            if isinstance(effect, ConfirmWithUser) and confirm is not None:
                result = confirm(effect.message)
                if inspect.isawaitable(result):
                    await result

    # ------------------------------------------------------------------
    # Views and terminal actions
    # ------------------------------------------------------------------

    def view_main(self) -> None:
        self.dispatch(ViewRequested(ViewState.MAIN))

    def view_alternate_platform(self) -> None:
        self.dispatch(ViewRequested(ViewState.ALTERNATE_PLATFORM))

    def view_prerequisite_install(self) -> None:
        self.dispatch(ViewRequested(ViewState.PREREQUISITE_INSTALL))

    def install_prerequisite(self) -> None:
        """Run the prerequisite setup bundled with the payload."""
        setup = self.config.prerequisite_setup
        try:
            if not self.fs.exists(setup):
                raise FileNotFoundError(f"Could not find the HCE installer at {setup}")
            code = self.runner.run([str(setup)], cwd=setup.parent)
            if code != 0:
                raise RuntimeError(f"HCE installer exited with code {code}")
        except Exception as e:
            logger.warning("Prerequisite setup failed: %s", e)
            self.dispatch(StatusReported(str(e)))

    def invoke_product(self) -> None:
        """Launch the installed product and terminate this process."""
        executable = self.target / PRODUCT_EXECUTABLE
        self.runner.spawn([str(executable)], cwd=self.target)
        self.exit_process(0)
