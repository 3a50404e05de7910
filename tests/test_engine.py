"""
Unit tests for the Pulumi Automation API stack engine
The automation module is mocked; no Pulumi CLI is needed
"""

import unittest
from unittest.mock import Mock, patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from migration.engine import PulumiStackEngine
from migration.errors import ImportFailed, ReconciliationError, SynthesisError
from stacks.variants import DEFAULT, EXCLUDE_RESOURCE, INCLUDE_FOR_IMPORT


class FakeCommandError(Exception):
    pass


class FakeStackNotFoundError(FakeCommandError):
    pass


def bucket_resource(name, delete=False, type_="aws:s3/bucket:Bucket"):
    resource = {"urn": f"urn:pulumi:StackA::musical-buckets::{type_}::{name}", "type": type_, "id": name}
    if delete:
        resource["delete"] = True
    return resource


class EngineTestCase(unittest.TestCase):

    def setUp(self):
        patcher = patch('migration.engine.auto')
        self.mock_auto = patcher.start()
        self.addCleanup(patcher.stop)
        self.mock_auto.CommandError = FakeCommandError
        self.mock_auto.StackNotFoundError = FakeStackNotFoundError

        self.stack = Mock()
        self.stack.up.return_value = Mock(
            summary=Mock(resource_changes={"update": 1}),
            outputs={"StackBStatus": Mock(value="Stack B now fully manages the bucket")},
        )
        self.stack.preview.return_value = Mock(stdout="Previewing update (StackB)")
        self.mock_auto.Stack.create_or_select.return_value = self.stack

        self.state = {}
        self.mock_auto.Stack.select.side_effect = self._select_stack
        self.workspace = self.mock_auto.LocalWorkspace.return_value
        self.workspace.list_stacks.side_effect = self._list_stacks

        self.define_a = Mock()
        self.define_b = Mock()
        self.config = Config(environ={"AWS_REGION": "eu-west-1"})
        self.engine = PulumiStackEngine(
            "demo-bucket",
            config=self.config,
            declarations={"StackA": self.define_a, "StackB": self.define_b},
            resource_mapping={"demo-bucket": "ImportedResource"},
        )

    def _select_stack(self, stack_name, workspace):
        if stack_name not in self.state:
            raise FakeStackNotFoundError(stack_name)
        selected = Mock()
        selected.export_stack.return_value = Mock(deployment={"resources": self.state[stack_name]})
        return selected

    def _list_stacks(self):
        summaries = []
        for name in self.state:
            summary = Mock()
            summary.name = name
            summaries.append(summary)
        return summaries

    def run_program(self):
        self.workspace.program()


class TestInspection(EngineTestCase):

    def test_owned_bucket_ids_filters_types_and_pending_deletes(self):
        self.state["StackA"] = [
            {"urn": "urn:pulumi:StackA::musical-buckets::pulumi:pulumi:Stack::musical-buckets-StackA",
             "type": "pulumi:pulumi:Stack"},
            bucket_resource("demo-bucket"),
            bucket_resource("old-bucket", delete=True),
            bucket_resource("v2-bucket", type_="aws:s3/bucketV2:BucketV2"),
            {"type": "aws:s3/bucketVersioning:BucketVersioning", "id": "demo-bucket"},
        ]

        self.assertEqual(self.engine.owned_bucket_ids("StackA"), ["demo-bucket", "v2-bucket"])

    def test_missing_stack_owns_nothing(self):
        self.assertEqual(self.engine.owned_bucket_ids("StackB"), [])
        self.assertFalse(self.engine.stack_exists("StackB"))

    def test_empty_deployment(self):
        self.mock_auto.Stack.select.side_effect = None
        self.mock_auto.Stack.select.return_value.export_stack.return_value = Mock(deployment=None)
        self.assertEqual(self.engine.stack_resources("StackB"), [])

    def test_list_stacks(self):
        self.state["StackA"] = []
        self.state["StackB"] = []

        self.assertEqual(self.engine.list_stacks(), ["StackA", "StackB"])

    def test_workspace_is_shared(self):
        self.state["StackA"] = [bucket_resource("demo-bucket")]

        self.engine.owned_bucket_ids("StackA")
        self.engine.stack_exists("StackB")
        self.engine.list_stacks()
        self.engine.reconcile("StackA", DEFAULT)

        self.mock_auto.LocalWorkspace.assert_called_once()
        self.assertEqual(self.mock_auto.ProjectSettings.call_args[1]["name"], "musical-buckets")


class TestReconcile(EngineTestCase):

    def test_reconcile_runs_up_with_region(self):
        result = self.engine.reconcile("StackA", EXCLUDE_RESOURCE)

        self.assertEqual(self.mock_auto.Stack.create_or_select.call_args[0], ("StackA", self.workspace))
        self.mock_auto.ConfigValue.assert_called_with(value="eu-west-1")
        self.stack.set_config.assert_called_once()
        self.stack.up.assert_called_once()
        self.assertEqual(result["resource_changes"], {"update": 1})
        self.assertEqual(result["outputs"]["StackBStatus"], "Stack B now fully manages the bucket")

    def test_program_receives_explicit_variant(self):
        self.engine.reconcile("StackA", EXCLUDE_RESOURCE)
        self.run_program()

        args, kwargs = self.define_a.call_args
        self.assertEqual(args, ("demo-bucket", EXCLUDE_RESOURCE))
        self.assertFalse(kwargs["adopt"])
        self.assertEqual(kwargs["tags"], self.config.common_tags)

    def test_include_for_import_adopts_unheld_bucket(self):
        self.engine.reconcile("StackA", INCLUDE_FOR_IMPORT)
        self.run_program()
        self.assertTrue(self.define_a.call_args[1]["adopt"])

    def test_include_for_import_does_not_adopt_held_bucket(self):
        self.state["StackB"] = [bucket_resource("demo-bucket")]
        self.engine.reconcile("StackB", INCLUDE_FOR_IMPORT)
        self.run_program()
        self.assertFalse(self.define_b.call_args[1]["adopt"])

    def test_import_variant_refuses_bucket_owned_elsewhere(self):
        self.state["StackA"] = [bucket_resource("demo-bucket")]
        self.state["StackB"] = []

        with self.assertRaises(ImportFailed) as ctx:
            self.engine.reconcile("StackB", INCLUDE_FOR_IMPORT)

        self.assertIn("StackA", str(ctx.exception))
        self.assertIn("--exclude-bucket", ctx.exception.hint)
        self.stack.up.assert_not_called()

    def test_default_variant_skips_exclusivity_check(self):
        self.state["StackA"] = [bucket_resource("demo-bucket")]

        self.engine.reconcile("StackA", DEFAULT)

        self.workspace.list_stacks.assert_not_called()
        self.stack.up.assert_called_once()

    def test_reconcile_failure(self):
        self.stack.up.side_effect = FakeCommandError("error: the stack is currently locked")
        with self.assertRaises(ReconciliationError) as ctx:
            self.engine.reconcile("StackA", DEFAULT)
        self.assertIn("locked", str(ctx.exception))

    def test_unknown_stack(self):
        with self.assertRaises(ReconciliationError):
            self.engine.reconcile("StackC", DEFAULT)
        self.mock_auto.Stack.create_or_select.assert_not_called()


class TestSynthesize(EngineTestCase):

    def test_synthesize_previews_without_up(self):
        rendered = self.engine.synthesize("StackB", INCLUDE_FOR_IMPORT)

        self.assertEqual(rendered, "Previewing update (StackB)")
        self.stack.preview.assert_called_once()
        self.stack.up.assert_not_called()

    def test_synthesize_failure(self):
        self.stack.preview.side_effect = FakeCommandError("error: invalid program")
        with self.assertRaises(SynthesisError):
            self.engine.synthesize("StackB", INCLUDE_FOR_IMPORT)

    def test_synthesize_unknown_stack(self):
        with self.assertRaises(SynthesisError):
            self.engine.synthesize("StackC", INCLUDE_FOR_IMPORT)


class TestImportExisting(EngineTestCase):

    def test_import_adopts_with_mapping(self):
        mapping = {"demo-bucket": "Renamed"}

        self.engine.import_existing("StackB", mapping)
        self.run_program()

        args, kwargs = self.define_b.call_args
        self.assertEqual(args, ("demo-bucket", INCLUDE_FOR_IMPORT))
        self.assertEqual(kwargs["resource_mapping"], mapping)
        self.assertTrue(kwargs["adopt"])
        self.assertEqual(self.engine.resource_mapping, mapping)

    def test_import_failure(self):
        self.stack.up.side_effect = FakeCommandError("inputs to import do not match the existing resource")
        with self.assertRaises(ImportFailed):
            self.engine.import_existing("StackB", {"demo-bucket": "ImportedResource"})

    def test_import_refuses_bucket_owned_elsewhere(self):
        self.state["StackA"] = [bucket_resource("demo-bucket")]

        with self.assertRaises(ImportFailed):
            self.engine.import_existing("StackB", {"demo-bucket": "ImportedResource"})

        self.stack.up.assert_not_called()


class TestDestroy(EngineTestCase):

    def test_destroy_missing_stack(self):
        self.assertFalse(self.engine.destroy("StackB"))
        self.stack.destroy.assert_not_called()

    def test_destroy_removes_stack(self):
        self.state["StackB"] = [bucket_resource("demo-bucket")]

        self.assertTrue(self.engine.destroy("StackB", INCLUDE_FOR_IMPORT))

        self.stack.destroy.assert_called_once()
        self.stack.workspace.remove_stack.assert_called_once_with("StackB")


if __name__ == '__main__':
    unittest.main()
