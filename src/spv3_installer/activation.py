"""Privileged activation of the installed product."""

from __future__ import annotations

import logging
from pathlib import Path

from spv3_installer.errors import ActivationFailure
from spv3_installer.protocols import CommandRunner
from spv3_installer.registry import RegistrationRecord, RegistrationStore

logger = logging.getLogger(__name__)

IMPORT_PROGRAM = "regedit.exe"


class ActivationStep:
    """Registers the install with the prerequisite's registry entry.

    A record is written only when none exists for the variant, so an
    earlier install path is never overwritten. The privileged import runs
    every time.
    """

    def __init__(
        self,
        store: RegistrationStore,
        runner: CommandRunner,
        variant: str = "Custom",
        version: str = "1.10",
    ) -> None:
        """Initialize the activation step.

        Args:
            store: Registration record store.
            runner: Runs the privileged import.
            variant: Product variant the record is keyed by.
            version: Version written into new records.
        """
        self.store = store
        self.runner = runner
        self.variant = variant
        self.version = version

    def activate(self, target: Path) -> RegistrationRecord:
        """Write the registration record and import it with elevation.

        Args:
            target: Install target recorded as the install path of a new record.

        Returns:
            The record that was imported.

        Raises:
            ActivationFailure: If the record cannot be written or the import
                exits non-zero.
        """
        try:
            record = self.store.get(self.variant)
            if record is None:
                record = self.store.put(
                    self.variant,
                    RegistrationRecord(version=self.version, exe_path=str(target)),
                )
            else:
                logger.debug("Keeping existing %s record at %s", self.variant, record.exe_path)
            reg_file = self.store.write_reg_file(self.variant, record)
        except (OSError, ValueError) as e:
            raise ActivationFailure(f"Failed to write registration record: {e}") from e

        try:
            code = self.runner.run(
                [IMPORT_PROGRAM, "/s", str(reg_file)],
                cwd=reg_file.parent,
                elevated=True,
            )
        except OSError as e:
            raise ActivationFailure(f"Failed to start {IMPORT_PROGRAM}: {e}") from e

        if code != 0:
            logger.warning("%s exited with code %s", IMPORT_PROGRAM, code)
            raise ActivationFailure("Failed to import to Registry.")
        return record
