"""
Migration Orchestrator

Moves ownership of a retained bucket from a source stack to a target stack:

    validate -> detach-source -> prepare-target -> import -> verify

Nothing is persisted between invocations. Every step reads the live state
first, treats "already done" as success and checks its own postcondition, so
any step can be re-run after an interruption. The steps do not enforce their
order; the caller does.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from stacks.variants import EXCLUDE_RESOURCE, INCLUDE_FOR_IMPORT

from . import console
from .errors import ImportFailed, NotFound, VerificationFailed
from .mapping import validate_mapping

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 10


class MigrationState(Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    DETACHED_FROM_SOURCE = "detached-from-source"
    PREPARED_ON_TARGET = "prepared-on-target"
    ATTACHED_TO_TARGET = "attached-to-target"
    VERIFIED = "verified"


# Command to run next from each observed state
NEXT_STEP = {
    MigrationState.UNVALIDATED: "validate",
    MigrationState.VALIDATED: "detach-source",
    MigrationState.DETACHED_FROM_SOURCE: "prepare-target",
    MigrationState.PREPARED_ON_TARGET: "import",
    MigrationState.ATTACHED_TO_TARGET: "verify",
    MigrationState.VERIFIED: None,
}


@dataclass
class StepOutcome:
    """Successful result of one step"""

    step: str
    state: MigrationState
    changed: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class MigrationOrchestrator:
    """
    Drive the ownership handoff against a stack engine and an inspector

    Args:
        engine: Stack engine (reconcile, synthesize, import_existing)
        inspector: Resource inspector (existence, contents, ownership)
        reporter: Progress sink with info/success/warning/error/detail
    """

    def __init__(self, engine, inspector, reporter=console):
        self.engine = engine
        self.inspector = inspector
        self.reporter = reporter

    # ── Steps ───────────────────────────────────────────────────

    def validate(self, resource_name: str, source_stack: str) -> StepOutcome:
        """Check the bucket is reachable and report who owns it (read-only)"""
        self.reporter.info(f"Validating bucket: {resource_name}")

        if not self.inspector.resource_exists(resource_name):
            raise NotFound(f"Bucket {resource_name} does not exist or is not accessible")
        self.reporter.success("Bucket exists and is accessible")

        self.reporter.info("Checking current stack ownership...")
        owned = self.inspector.owns(source_stack, resource_name)
        if owned:
            self.reporter.info(f"Bucket is currently managed by {source_stack}")
        else:
            self.reporter.warning(f"Bucket is not currently managed by {source_stack}")

        keys = self.inspector.list_contents(resource_name)
        self.reporter.info(f"Bucket contains {len(keys)} objects")
        if keys:
            self.reporter.info("Bucket contents preview:")
            for key in keys[:PREVIEW_LIMIT]:
                self.reporter.detail(key)

        return StepOutcome(
            step="validate",
            state=MigrationState.VALIDATED,
            changed=False,
            message=f"Bucket {resource_name} validated",
            details={"owned_by_source": owned, "item_count": len(keys)},
        )

    def detach_from_source(self, resource_name: str, source_stack: str) -> StepOutcome:
        """Redeploy the source without the bucket, relying on retention"""
        self.reporter.info(f"Removing bucket from {source_stack} management...")

        if not self.inspector.owns(source_stack, resource_name):
            self.reporter.warning(f"Bucket is not managed by {source_stack}, skipping removal")
            return StepOutcome(
                step="detach-source",
                state=MigrationState.DETACHED_FROM_SOURCE,
                changed=False,
                message=f"{source_stack} already does not manage {resource_name}",
            )

        self.reporter.info(f"Deploying {source_stack} without bucket...")
        self.engine.reconcile(source_stack, EXCLUDE_RESOURCE)

        if self.inspector.owns(source_stack, resource_name):
            raise VerificationFailed(f"Failed to remove bucket from {source_stack}")
        if not self.inspector.resource_exists(resource_name):
            raise VerificationFailed(
                f"Bucket {resource_name} is gone after detaching from {source_stack}; "
                "it was not retained"
            )

        self.reporter.success(f"Bucket successfully removed from {source_stack} management")
        return StepOutcome(
            step="detach-source",
            state=MigrationState.DETACHED_FROM_SOURCE,
            changed=True,
            message=f"{resource_name} detached from {source_stack}",
        )

    def prepare_target(self, target_stack: str) -> StepOutcome:
        """Render the target declaration for import without deploying it"""
        self.reporter.info(f"Preparing {target_stack} for import...")
        self.reporter.info(f"Synthesizing {target_stack}...")
        rendered = self.engine.synthesize(target_stack, INCLUDE_FOR_IMPORT)
        self.reporter.success(f"{target_stack} ready for import")
        return StepOutcome(
            step="prepare-target",
            state=MigrationState.PREPARED_ON_TARGET,
            changed=False,
            message=f"{target_stack} rendered",
            details={"rendered": rendered},
        )

    def import_resource(self, resource_name: str, target_stack: str,
                        resource_mapping: Dict[str, str]) -> StepOutcome:
        """Adopt the detached bucket into the target stack"""
        self.reporter.info(f"Importing bucket into {target_stack}...")

        if self.inspector.owns(target_stack, resource_name):
            self.reporter.warning(f"Bucket is already managed by {target_stack}, skipping import")
            return StepOutcome(
                step="import",
                state=MigrationState.ATTACHED_TO_TARGET,
                changed=False,
                message=f"{target_stack} already manages {resource_name}",
            )

        mapping = validate_mapping(resource_mapping)
        if resource_name not in mapping:
            raise ImportFailed(f"Resource mapping does not name bucket {resource_name}")

        if not self.inspector.resource_exists(resource_name):
            raise NotFound(f"Bucket {resource_name} does not exist or is not accessible")

        others = [owner for owner in self.inspector.resource_owners(resource_name)
                  if owner != target_stack]
        if others:
            raise ImportFailed(
                f"Bucket {resource_name} is still managed by {', '.join(others)}",
                hint="Run detach-source first; a bucket may be owned by one stack only",
            )

        self.reporter.info("Starting import with resource mapping...")
        self.engine.import_existing(target_stack, mapping)

        if not self.inspector.owns(target_stack, resource_name):
            raise VerificationFailed("Import verification failed")

        self.reporter.success(f"Bucket successfully imported into {target_stack}")
        return StepOutcome(
            step="import",
            state=MigrationState.ATTACHED_TO_TARGET,
            changed=True,
            message=f"{resource_name} imported into {target_stack}",
            details={"logical_name": mapping[resource_name]},
        )

    def verify(self, resource_name: str, source_stack: str, target_stack: str,
               expected_count: Optional[int] = None) -> StepOutcome:
        """Check the handoff: target owns, source does not, bucket intact"""
        self.reporter.info("Verifying migration...")

        if not self.inspector.owns(target_stack, resource_name):
            raise VerificationFailed(f"Bucket is not managed by {target_stack}")
        self.reporter.success(f"Bucket is managed by {target_stack}")

        if self.inspector.owns(source_stack, resource_name):
            raise VerificationFailed(f"Bucket is still managed by {source_stack}")
        self.reporter.success(f"Bucket is no longer managed by {source_stack}")

        if not self.inspector.resource_exists(resource_name):
            raise VerificationFailed("Bucket is not accessible")
        self.reporter.success("Bucket is still accessible")

        self.reporter.info("Verifying bucket contents...")
        count = len(self.inspector.list_contents(resource_name))
        self.reporter.info(f"Bucket contains {count} objects")
        if expected_count is not None and count != expected_count:
            raise VerificationFailed(
                f"Bucket contains {count} objects, expected {expected_count}"
            )

        self.reporter.success("Migration verification completed successfully!")
        return StepOutcome(
            step="verify",
            state=MigrationState.VERIFIED,
            changed=False,
            message=f"{resource_name} is owned by {target_stack} only",
            details={"item_count": count},
        )

    # ── Observation ─────────────────────────────────────────────

    def observe_state(self, resource_name: str, source_stack: str,
                      target_stack: str) -> MigrationState:
        """Reconstruct where the migration stands from live state"""
        if not self.inspector.resource_exists(resource_name):
            return MigrationState.UNVALIDATED

        source_owns = self.inspector.owns(source_stack, resource_name)
        target_owns = self.inspector.owns(target_stack, resource_name)
        if source_owns and target_owns:
            raise VerificationFailed(
                f"Bucket {resource_name} is managed by both {source_stack} and {target_stack}"
            )
        if source_owns:
            return MigrationState.VALIDATED
        if target_owns:
            return MigrationState.ATTACHED_TO_TARGET
        return MigrationState.DETACHED_FROM_SOURCE

    def run_all(self, resource_name: str, source_stack: str, target_stack: str,
                resource_mapping: Dict[str, str]) -> List[StepOutcome]:
        """Run every step in order, stopping at the first failure"""
        outcomes = [self.validate(resource_name, source_stack)]
        expected_count = outcomes[0].details["item_count"]
        outcomes.append(self.detach_from_source(resource_name, source_stack))
        outcomes.append(self.prepare_target(target_stack))
        outcomes.append(self.import_resource(resource_name, target_stack, resource_mapping))
        outcomes.append(self.verify(resource_name, source_stack, target_stack,
                                    expected_count=expected_count))
        logger.info("Migration of %s from %s to %s complete", resource_name, source_stack, target_stack)
        return outcomes
