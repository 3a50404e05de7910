"""
Bucket migration between Pulumi stacks
Step orchestration, engine and inspector adapters, teardown
"""

from .errors import (
    MigrationError,
    PrereqMissing,
    NotFound,
    ReconciliationError,
    SynthesisError,
    ImportFailed,
    VerificationFailed,
)
from .orchestrator import MigrationOrchestrator, MigrationState, StepOutcome

__all__ = [
    "MigrationError",
    "PrereqMissing",
    "NotFound",
    "ReconciliationError",
    "SynthesisError",
    "ImportFailed",
    "VerificationFailed",
    "MigrationOrchestrator",
    "MigrationState",
    "StepOutcome",
]
