"""Exception hierarchy shared across abuild.

Module-specific errors are defined next to the code that raises them and
derive from the classes here.
"""


class AbuildError(Exception):
    """Base class for all errors raised by abuild."""

    pass


class ConfigurationError(AbuildError):
    """Raised when a build description is invalid.

    Covers a missing module name, registration on a builder whose block has
    already completed, a second default task, and malformed overrides. These
    are unrecoverable and abort the run.
    """

    pass


class BuildStepError(AbuildError):
    """Raised by an execution context's error handler when a handler escalates a failure."""

    pass
