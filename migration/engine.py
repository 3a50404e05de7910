"""
Stack Engine backed by the Pulumi Automation API

Each stack declaration runs as an inline program, so the declaration variant
and resource mapping are passed explicitly instead of read from stack config.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pulumi import automation as auto

from config import Config, get_config
from stacks import BUCKET_TYPES, DeclarationVariant, declarations_for
from stacks.variants import DEFAULT, INCLUDE_FOR_IMPORT

from .errors import ImportFailed, ReconciliationError, SynthesisError
from .mapping import default_mapping

logger = logging.getLogger(__name__)


def _log_output(line: str) -> None:
    logger.info(line.rstrip())


def _noop_program() -> None:
    """Program used for read-only stack operations"""


class PulumiStackEngine:
    """Reconcile, preview, import and inspect the migration stacks"""

    def __init__(self,
                 bucket_name: str,
                 config: Optional[Config] = None,
                 declarations: Optional[Dict[str, Callable]] = None,
                 resource_mapping: Optional[Dict[str, str]] = None,
                 on_output: Optional[Callable[[str], None]] = None):
        self.config = config or get_config()
        self.bucket_name = bucket_name
        self.declarations = declarations or declarations_for(
            self.config.source_stack, self.config.target_stack
        )
        self.resource_mapping = resource_mapping or default_mapping(bucket_name)
        self.on_output = on_output or _log_output
        self._local_workspace = None

    # ── Workspace ───────────────────────────────────────────────

    def _project_settings(self) -> auto.ProjectSettings:
        backend = auto.ProjectBackend(url=self.config.backend_url) if self.config.backend_url else None
        return auto.ProjectSettings(
            name=self.config.project_name,
            runtime="python",
            backend=backend,
        )

    def _workspace(self) -> auto.LocalWorkspace:
        """One workspace per engine, created on first use"""
        if self._local_workspace is None:
            # No work_dir: the workspace writes its own Pulumi.yaml to a temp dir
            self._local_workspace = auto.LocalWorkspace(
                project_settings=self._project_settings(),
                program=_noop_program,
            )
        return self._local_workspace

    def _declaration(self, stack_id: str) -> Callable:
        try:
            return self.declarations[stack_id]
        except KeyError:
            raise ReconciliationError(
                f"No declaration registered for stack {stack_id} "
                f"(known: {', '.join(sorted(self.declarations))})"
            ) from None

    def _program(self, stack_id: str, variant: DeclarationVariant,
                 mapping: Dict[str, str], adopt: bool) -> Callable[[], None]:
        define = self._declaration(stack_id)
        tags = self.config.common_tags
        bucket_name = self.bucket_name

        def program() -> None:
            define(bucket_name, variant, resource_mapping=mapping, adopt=adopt, tags=tags)

        return program

    def _stack(self, stack_id: str, program: Callable[[], None]) -> auto.Stack:
        workspace = self._workspace()
        workspace.program = program
        stack = auto.Stack.create_or_select(stack_id, workspace)
        stack.set_config("aws:region", auto.ConfigValue(value=self.config.aws_region))
        return stack

    def _select(self, stack_id: str) -> Optional[auto.Stack]:
        try:
            return auto.Stack.select(stack_id, self._workspace())
        except auto.StackNotFoundError:
            return None

    def _should_adopt(self, stack_id: str, variant: DeclarationVariant,
                      mapping: Dict[str, str]) -> bool:
        if not variant.include_for_import or variant.exclude_resource:
            return False
        held = set(self.owned_bucket_ids(stack_id))
        return any(physical not in held for physical in mapping)

    def _ensure_exclusive(self, stack_id: str, mapping: Dict[str, str]) -> None:
        """
        Refuse to adopt a bucket another stack still holds

        Raises:
            ImportFailed: if any mapped bucket is owned by a different stack
        """
        for other in self.list_stacks():
            if other == stack_id:
                continue
            held = set(self.owned_bucket_ids(other))
            clashes = sorted(physical for physical in mapping if physical in held)
            if clashes:
                raise ImportFailed(
                    f"Bucket {', '.join(clashes)} is still managed by {other}",
                    hint=f"Deploy {other} with --exclude-bucket first; "
                         "a bucket may be owned by one stack only",
                )

    # ── Inspection ──────────────────────────────────────────────

    def list_stacks(self) -> List[str]:
        """Names of every stack in the project"""
        return [summary.name for summary in self._workspace().list_stacks()]

    def stack_exists(self, stack_id: str) -> bool:
        return self._select(stack_id) is not None

    def stack_resources(self, stack_id: str) -> List[Dict[str, Any]]:
        """Resources recorded in a stack's state (empty if the stack is missing)"""
        stack = self._select(stack_id)
        if stack is None:
            return []
        exported = stack.export_stack()
        deployment = exported.deployment or {}
        return list(deployment.get("resources") or [])

    def owned_bucket_ids(self, stack_id: str) -> List[str]:
        """Physical ids of the buckets a stack currently owns"""
        return [
            resource["id"]
            for resource in self.stack_resources(stack_id)
            if resource.get("type") in BUCKET_TYPES
            and resource.get("id")
            and not resource.get("delete")
        ]

    # ── Mutations ───────────────────────────────────────────────

    def reconcile(self, stack_id: str, variant: DeclarationVariant = DEFAULT) -> Dict[str, Any]:
        """
        Deploy a stack declaration with the given variant

        Raises:
            ReconciliationError: if the update fails
            ImportFailed: if the variant adopts a bucket another stack owns
        """
        mapping = self.resource_mapping
        if variant.include_for_import and not variant.exclude_resource:
            self._ensure_exclusive(stack_id, mapping)
        adopt = self._should_adopt(stack_id, variant, mapping)
        logger.info("Reconciling %s (%s, adopt=%s)", stack_id, variant.describe(), adopt)
        try:
            stack = self._stack(stack_id, self._program(stack_id, variant, mapping, adopt))
            result = stack.up(on_output=self.on_output)
        except auto.CommandError as e:
            raise ReconciliationError(f"Deployment of {stack_id} failed: {e}") from e
        return {
            "stack": stack_id,
            "resource_changes": dict(result.summary.resource_changes or {}),
            "outputs": {key: value.value for key, value in result.outputs.items()},
        }

    def synthesize(self, stack_id: str, variant: DeclarationVariant = INCLUDE_FOR_IMPORT) -> str:
        """
        Render a stack declaration without deploying it

        Returns:
            Rendered preview text

        Raises:
            SynthesisError: if the declaration cannot be rendered
        """
        mapping = self.resource_mapping
        adopt = self._should_adopt(stack_id, variant, mapping)
        logger.info("Previewing %s (%s, adopt=%s)", stack_id, variant.describe(), adopt)
        try:
            stack = self._stack(stack_id, self._program(stack_id, variant, mapping, adopt))
            result = stack.preview(on_output=self.on_output)
        except (auto.CommandError, ReconciliationError) as e:
            raise SynthesisError(f"Could not render {stack_id}: {e}") from e
        return result.stdout

    def import_existing(self, stack_id: str, resource_mapping: Dict[str, str]) -> Dict[str, Any]:
        """
        Adopt existing buckets into a stack without recreating them

        Raises:
            ImportFailed: if the engine rejects the mapping or identifier
        """
        self._ensure_exclusive(stack_id, resource_mapping)
        logger.info("Importing %s into %s", resource_mapping, stack_id)
        try:
            stack = self._stack(
                stack_id, self._program(stack_id, INCLUDE_FOR_IMPORT, resource_mapping, adopt=True)
            )
            result = stack.up(on_output=self.on_output)
        except (auto.CommandError, ReconciliationError) as e:
            raise ImportFailed(f"Import into {stack_id} failed: {e}") from e
        self.resource_mapping = dict(resource_mapping)
        return {
            "stack": stack_id,
            "resource_changes": dict(result.summary.resource_changes or {}),
        }

    def destroy(self, stack_id: str, variant: DeclarationVariant = DEFAULT) -> bool:
        """
        Destroy a stack and remove it from the backend

        Retained buckets are dropped from state but stay in AWS.

        Returns:
            False if the stack did not exist
        """
        if not self.stack_exists(stack_id):
            return False
        try:
            stack = self._stack(
                stack_id, self._program(stack_id, variant, self.resource_mapping, adopt=False)
            )
            stack.destroy(on_output=self.on_output)
            stack.workspace.remove_stack(stack_id)
        except auto.CommandError as e:
            raise ReconciliationError(f"Destroy of {stack_id} failed: {e}") from e
        return True
