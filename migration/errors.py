"""
Migration error taxonomy

Every failure is fatal for the invoking step. The CLI maps each kind to a
distinct message and a non-zero exit code.
"""


class MigrationError(Exception):
    """Base class for migration failures"""

    kind = "MigrationError"
    exit_code = 1
    hint = None

    def __init__(self, message: str, hint: str = None):
        super().__init__(message)
        self.message = message
        if hint is not None:
            self.hint = hint


class PrereqMissing(MigrationError):
    """Required tooling or credentials are absent"""

    kind = "PrereqMissing"
    exit_code = 2


class NotFound(MigrationError):
    """The named bucket does not exist or is not reachable"""

    kind = "NotFound"
    exit_code = 3


class ReconciliationError(MigrationError):
    """The stack engine failed to converge a stack"""

    kind = "ReconciliationError"
    exit_code = 4


class SynthesisError(MigrationError):
    """The declaration could not be rendered"""

    kind = "SynthesisError"
    exit_code = 5


class ImportFailed(MigrationError):
    """The engine rejected the import mapping or identifier"""

    kind = "ImportFailed"
    exit_code = 6
    hint = ("Check that the resource mapping names the exact bucket and that the "
            "target declaration matches the live bucket's properties")


class VerificationFailed(MigrationError):
    """A postcondition did not hold after a step"""

    kind = "VerificationFailed"
    exit_code = 7
