"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from spv3_installer.config import ConfigStore, InstallerConfig
from spv3_installer.protocols import CommandRunner, FileSystem

if TYPE_CHECKING:
    from spv3_installer.orchestrator import InstallOrchestrator


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for everything the CLI commands and
    the interactive app use.
    """

    config: InstallerConfig
    config_store: ConfigStore
    orchestrator: InstallOrchestrator
    filesystem: FileSystem
    runner: CommandRunner


def create_context(
    config: InstallerConfig | None = None,
    config_dir: Path | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        config: Settings to use instead of the stored configuration.
        config_dir: Override configuration directory (for testing).

    Returns:
        Configured AppContext with all dependencies.
    """
    from spv3_installer.activation import ActivationStep
    from spv3_installer.detection import PrerequisiteDetector
    from spv3_installer.filesystem import RealFileSystem
    from spv3_installer.operation import CopyTreeInstaller
    from spv3_installer.orchestrator import InstallOrchestrator
    from spv3_installer.process import ElevatedCommandRunner
    from spv3_installer.provisioning import (
        ExecutableAddonInstaller,
        ProvisioningStep,
        SystemShortcutFactory,
    )
    from spv3_installer.registry import RegistrationStore
    from spv3_installer.validation import PathValidator

    config_store = ConfigStore(config_dir)
    config = config or config_store.load()

    filesystem = RealFileSystem()
    runner = ElevatedCommandRunner()
    orchestrator = InstallOrchestrator(
        config=config,
        validator=PathValidator.create(filesystem, config.required_free_bytes),
        detector=PrerequisiteDetector.create(filesystem=filesystem),
        activation=ActivationStep(
            RegistrationStore(config.store_dir),
            runner,
            variant=config.registration_variant,
            version=config.registration_version,
        ),
        provisioning=ProvisioningStep(
            SystemShortcutFactory(),
            ExecutableAddonInstaller(runner),
            filesystem=filesystem,
        ),
        engine=CopyTreeInstaller(),
        filesystem=filesystem,
        runner=runner,
        exit_process=sys.exit,
    )

    return AppContext(
        config=config,
        config_store=config_store,
        orchestrator=orchestrator,
        filesystem=filesystem,
        runner=runner,
    )
