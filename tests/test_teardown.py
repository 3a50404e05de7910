"""
Unit tests for the demo teardown
"""

import os
import sys
import tempfile
import unittest
from unittest.mock import Mock

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migration.teardown import Teardown, TeardownCancelled
from stacks.variants import DEFAULT, INCLUDE_FOR_IMPORT


class TeardownTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = Mock()
        self.engine.destroy.return_value = True
        self.inspector = Mock()
        self.inspector.resource_exists.return_value = True
        self.inspector.list_versions.return_value = [{"Key": "a.txt", "VersionId": "v1"}]
        self.inspector.list_contents.return_value = ["a.txt"]
        self.inspector.empty_bucket.return_value = 1
        self.confirm = Mock(return_value=True)
        self.reporter = Mock()
        self.teardown = Teardown(self.engine, self.inspector, self.confirm, reporter=self.reporter)


class TestEmptyBucket(TeardownTestCase):

    def test_empties_after_confirmation(self):
        self.assertEqual(self.teardown.empty_bucket("demo-bucket"), 1)
        self.confirm.assert_called_once()
        self.inspector.empty_bucket.assert_called_once_with("demo-bucket")

    def test_missing_bucket_is_skipped(self):
        self.inspector.resource_exists.return_value = False
        self.assertEqual(self.teardown.empty_bucket("demo-bucket"), 0)
        self.confirm.assert_not_called()

    def test_already_empty(self):
        self.inspector.list_versions.return_value = []
        self.assertEqual(self.teardown.empty_bucket("demo-bucket"), 0)
        self.inspector.empty_bucket.assert_not_called()

    def test_declined(self):
        self.confirm.return_value = False
        with self.assertRaises(TeardownCancelled):
            self.teardown.empty_bucket("demo-bucket")
        self.inspector.empty_bucket.assert_not_called()


class TestDeleteStacks(TeardownTestCase):

    def test_target_destroyed_before_source(self):
        destroyed = self.teardown.delete_stacks("StackA", "StackB")

        self.assertEqual(destroyed, ["StackB", "StackA"])
        self.assertEqual(self.engine.destroy.call_args_list[0][0], ("StackB", INCLUDE_FOR_IMPORT))
        self.assertEqual(self.engine.destroy.call_args_list[1][0], ("StackA", DEFAULT))

    def test_missing_stacks_are_skipped(self):
        self.engine.destroy.side_effect = lambda stack_id, variant: stack_id == "StackA"
        self.assertEqual(self.teardown.delete_stacks("StackA", "StackB"), ["StackA"])


class TestForceDelete(TeardownTestCase):

    def test_bucket_already_gone(self):
        self.inspector.resource_exists.return_value = False
        self.assertFalse(self.teardown.force_delete_bucket("demo-bucket"))
        self.inspector.delete_bucket.assert_not_called()

    def test_retained_bucket_is_emptied_then_deleted(self):
        self.assertTrue(self.teardown.force_delete_bucket("demo-bucket"))
        self.inspector.empty_bucket.assert_called_once_with("demo-bucket")
        self.inspector.delete_bucket.assert_called_once_with("demo-bucket")


class TestGeneratedFiles(TeardownTestCase):

    def test_removes_only_generated_files(self):
        with tempfile.TemporaryDirectory() as work_dir:
            for name in ("stackb-template.json", "StackB-preview.txt", "resource-mapping.json"):
                with open(os.path.join(work_dir, name), "w") as f:
                    f.write("{}")

            removed = self.teardown.cleanup_generated_files(work_dir, "StackB")

            self.assertEqual(sorted(removed), ["StackB-preview.txt", "stackb-template.json"])
            self.assertTrue(os.path.exists(os.path.join(work_dir, "resource-mapping.json")))


class TestRun(TeardownTestCase):

    def test_full_sequence(self):
        with tempfile.TemporaryDirectory() as work_dir:
            self.teardown.run("demo-bucket", "StackA", "StackB", work_dir)

        self.assertEqual(self.engine.destroy.call_count, 2)
        self.inspector.delete_bucket.assert_called_once_with("demo-bucket")

    def test_cancelled_before_anything_runs(self):
        self.confirm.return_value = False
        with self.assertRaises(TeardownCancelled):
            self.teardown.run("demo-bucket", "StackA", "StackB", "/nonexistent")

        self.inspector.empty_bucket.assert_not_called()
        self.engine.destroy.assert_not_called()


if __name__ == '__main__':
    unittest.main()
