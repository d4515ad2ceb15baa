"""Domain errors for stackpilot."""


class StackError(RuntimeError):
    """Raised when a stack operation cannot continue safely."""


class PreconditionError(StackError):
    """Raised before any side effect when a required input is missing."""


class MutationError(StackError):
    """Raised when changing the deployment descriptor fails midway."""


class ReadinessTimeoutError(StackError):
    """Raised when the container runtime never reports ready."""
