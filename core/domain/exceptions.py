"""
Domain exceptions.

Error taxonomy for the resilience layer and the orchestration engine.
"""


class OrchestrationError(Exception):
    """Base class for orchestration errors."""


class ProviderUnavailableError(OrchestrationError):
    """Circuit is open for the provider and no failover candidate exists."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(
            f"All providers are unavailable (circuit open for '{provider}')"
        )


class UnknownProviderError(OrchestrationError):
    """Provider name was never registered with the resilience manager."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown provider '{provider}'")


class MaxRetriesExceededError(OrchestrationError):
    """All attempts of an operation failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation failed after {attempts} attempts: {last_error}"
        )


class WorkflowNotFoundError(OrchestrationError):
    """No workflow is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Workflow '{name}' not found")


class StepExecutionError(OrchestrationError):
    """
    A single workflow step failed.

    Only ever used to describe a failed StepResult; it is never raised
    past the step that produced it.
    """

    def __init__(self, step_name: str, cause: BaseException):
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"Step '{step_name}' failed: {cause}")
