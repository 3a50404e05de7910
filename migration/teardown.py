"""
Teardown of everything the demo created

Destructive and separately gated: every irreversible action asks for
confirmation unless the caller passes a confirm function that always agrees.
"""

import logging
import os
from typing import Callable, List

from stacks.variants import DEFAULT, INCLUDE_FOR_IMPORT

from . import console

logger = logging.getLogger(__name__)

GENERATED_FILES = ("stackb-template.json",)


class TeardownCancelled(Exception):
    """The operator declined a confirmation"""


def preview_file_name(stack_id: str) -> str:
    """File prepare-target writes the rendered preview to"""
    return f"{stack_id}-preview.txt"


class Teardown:
    """
    Empty the bucket, destroy both stacks, then delete the bucket

    Args:
        engine: Stack engine (destroy)
        inspector: Resource inspector (exists, contents, empty, delete)
        confirm: Callable taking a message, returning True to proceed
        reporter: Progress sink
    """

    def __init__(self, engine, inspector, confirm: Callable[[str], bool], reporter=console):
        self.engine = engine
        self.inspector = inspector
        self.confirm = confirm
        self.reporter = reporter

    def _confirm(self, message: str) -> None:
        if not self.confirm(message):
            raise TeardownCancelled(message)

    def empty_bucket(self, bucket_name: str) -> int:
        self.reporter.info(f"Checking if bucket exists: {bucket_name}")
        if not self.inspector.resource_exists(bucket_name):
            self.reporter.warning("Bucket does not exist or is not accessible")
            return 0

        self.reporter.info("Bucket exists. Checking contents...")
        versions = self.inspector.list_versions(bucket_name)
        if not versions:
            self.reporter.info("Bucket is already empty")
            return 0

        object_count = len(self.inspector.list_contents(bucket_name))
        self.reporter.warning(
            f"Bucket contains {object_count} objects ({len(versions)} versions and delete markers)"
        )
        self._confirm("This will permanently delete all objects in the bucket!")

        self.reporter.info(f"Emptying bucket: {bucket_name}")
        removed = self.inspector.empty_bucket(bucket_name)
        self.reporter.success("Bucket emptied successfully")
        return removed

    def delete_stacks(self, source_stack: str, target_stack: str) -> List[str]:
        """Destroy the target first, it is the one managing the bucket"""
        self.reporter.info("Deleting stacks...")
        destroyed = []
        for stack_id, variant in ((target_stack, INCLUDE_FOR_IMPORT), (source_stack, DEFAULT)):
            self.reporter.info(f"Deleting {stack_id}...")
            if self.engine.destroy(stack_id, variant):
                self.reporter.success(f"{stack_id} deleted")
                destroyed.append(stack_id)
            else:
                self.reporter.info(f"{stack_id} does not exist")
        return destroyed

    def force_delete_bucket(self, bucket_name: str) -> bool:
        self.reporter.info(f"Attempting to force delete bucket: {bucket_name}")
        if not self.inspector.resource_exists(bucket_name):
            self.reporter.success("Bucket has been successfully removed")
            return False

        self.reporter.warning("Bucket still exists after stack deletion")
        self._confirm("Force delete the bucket completely?")
        # Versions written since the first pass would block the delete
        self.inspector.empty_bucket(bucket_name)
        self.inspector.delete_bucket(bucket_name)
        self.reporter.success("Bucket deleted successfully")
        return True

    def cleanup_generated_files(self, work_dir: str, target_stack: str) -> List[str]:
        self.reporter.info("Cleaning up generated files...")
        removed = []
        for name in GENERATED_FILES + (preview_file_name(target_stack),):
            path = os.path.join(work_dir, name)
            if os.path.isfile(path):
                os.remove(path)
                self.reporter.info(f"Removed {name}")
                removed.append(name)
        self.reporter.success("Generated files cleaned up")
        return removed

    def run(self, bucket_name: str, source_stack: str, target_stack: str, work_dir: str) -> None:
        self.reporter.warning("This will completely remove all resources created by the demo:")
        self.reporter.warning("  - All objects in the S3 bucket")
        self.reporter.warning("  - The S3 bucket itself")
        self.reporter.warning(f"  - Both stacks ({source_stack} and {target_stack})")
        self.reporter.warning("  - Generated files")
        self._confirm("This action cannot be undone!")

        self.reporter.info(f"Target bucket: {bucket_name}")
        self.empty_bucket(bucket_name)
        self.delete_stacks(source_stack, target_stack)
        self.force_delete_bucket(bucket_name)
        self.cleanup_generated_files(work_dir, target_stack)
        logger.info("Teardown of %s complete", bucket_name)
