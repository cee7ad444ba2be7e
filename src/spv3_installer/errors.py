"""Error taxonomy for the installation workflow.

Validation problems are reported as `ValidationOutcome` values rather than
raised. Everything else that can go wrong during a commit derives from
`InstallerError` so the orchestrator can render it into the status line.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for installer failures."""

    pass


class DetectionFailure(InstallerError):
    """The prerequisite could not be located."""

    pass


class ActivationFailure(InstallerError):
    """Writing or importing the registration record failed."""

    pass


class InstallOperationFailure(InstallerError):
    """The bulk payload install failed."""

    pass


class InstallCancelledError(InstallOperationFailure):
    """The bulk payload install was cancelled through its cancel context."""

    def __init__(self, message: str = "Installation was cancelled.") -> None:
        super().__init__(message)


class ProvisioningFailure(InstallerError):
    """A shortcut or the add-on installer failed."""

    pass
