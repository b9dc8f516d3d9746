# tagdeploy/models/errors.py
from __future__ import annotations


class DeployError(RuntimeError):
    """Base class for every failure the deploy workflow reports."""


class ConfigError(DeployError):
    """Raised when the deploy config cannot be read or is malformed."""


class PreconditionError(DeployError):
    """A check that must pass before anything is built or published failed."""


class DirtyTreeError(PreconditionError):
    pass


class AlreadyDeployedError(PreconditionError):
    pass


class RepositoryError(DeployError):
    """Raised when the git repository cannot be opened or inspected."""


class BuildError(DeployError):
    pass


class PackageError(DeployError):
    pass


class PublishError(DeployError):
    """Lambda rejected the upload or answered without a name/version."""


class LedgerError(DeployError):
    """Writing a deployment tag failed."""


class PartialFailure(DeployError):
    """
    The function was published but the ledger tag could not be written.

    Re-running the deploy would publish a duplicate version, so this needs
    an operator to create the tag by hand.
    """

    def __init__(self, function_name: str, version: str, cause: Exception):
        self.function_name = function_name
        self.version = version
        self.cause = cause
        super().__init__(
            f"{function_name} was published as version {version} but the "
            f"deployment tag could not be written: {cause}. "
            f"Create it manually with: git tag {function_name}@{version}"
        )


__all__ = [
    "DeployError",
    "ConfigError",
    "PreconditionError",
    "DirtyTreeError",
    "AlreadyDeployedError",
    "RepositoryError",
    "BuildError",
    "PackageError",
    "PublishError",
    "LedgerError",
    "PartialFailure",
]
