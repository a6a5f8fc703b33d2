"""
Error types raised by the deployer.
"""


class DeployerError(Exception):
    """Base class for every failure the CLI reports."""


class NotFound(DeployerError):
    """An expected resource, stack output or license is absent."""


class InvariantViolation(DeployerError):
    """An internal contract was broken, e.g. no stack id where one is required."""


class ProviderOperationFailed(DeployerError):
    """A provider operation finished in a non-success state."""

    def __init__(self, message: str, detail: str = ""):
        self.detail = detail
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PreconditionDeclined(DeployerError):
    """The operator answered "no" at a confirmation gate."""


class ConfigurationError(DeployerError):
    """The caller omitted or duplicated a required input."""
