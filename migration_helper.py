#!/usr/bin/env python3
"""
Bucket Migration Helper
Moves an S3 bucket between Pulumi stacks, one verifiable step at a time.

Usage:
    python migration_helper.py validate       <bucket> [source] [target]
    python migration_helper.py detach-source  <bucket> [source] [target]
    python migration_helper.py prepare-target <bucket> [source] [target]
    python migration_helper.py import         <bucket> [source] [target]
    python migration_helper.py verify         <bucket> [source] [target]

Run the steps in that order. Each step is safe to re-run.
"""

import functools
import json
import os
import sys
from typing import Optional

import click
from botocore.exceptions import BotoCoreError, ClientError

from config import get_config
from migration import console
from migration.engine import PulumiStackEngine
from migration.errors import MigrationError
from migration.inspector import BucketInspector
from migration.logging_config import setup_logging
from migration.mapping import load_mapping, resolve_mapping, write_mapping
from migration.orchestrator import MigrationOrchestrator, NEXT_STEP
from migration.prereqs import check_prerequisites, resolve_bucket_name
from migration.teardown import Teardown, TeardownCancelled, preview_file_name
from stacks import DeclarationVariant


def _fail(error: MigrationError) -> None:
    console.error(f"[{error.kind}] {error.message}")
    if error.hint:
        click.secho(f"   💡 {error.hint}", fg="yellow", err=True)
    sys.exit(error.exit_code)


def handle_errors(func):
    """Turn migration errors into a tagged message and a non-zero exit"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MigrationError as e:
            _fail(e)
        except (BotoCoreError, ClientError) as e:
            _fail(MigrationError(
                f"AWS request failed: {e}",
                hint="Check AWS credentials, region and permissions for the bucket",
            ))
    return wrapper


class Session:
    """Collaborators for one invocation, built after the prerequisite checks"""

    def __init__(self, config, bucket_name: Optional[str], mapping_path: Optional[str] = None):
        account_id = check_prerequisites()
        self.config = config
        self.bucket_name = resolve_bucket_name(config, bucket_name, account_id)
        if mapping_path:
            self.mapping = load_mapping(mapping_path)
        else:
            self.mapping = resolve_mapping(self.bucket_name, config.resource_mapping_path)
        self.engine = PulumiStackEngine(self.bucket_name, config=config, resource_mapping=self.mapping)
        self.inspector = BucketInspector(self.engine, region=config.aws_region)
        self.orchestrator = MigrationOrchestrator(self.engine, self.inspector)


def _stacks(config, source_stack: Optional[str], target_stack: Optional[str]):
    return source_stack or config.source_stack, target_stack or config.target_stack


def step_arguments(func):
    """Positional <bucket> [source] [target] shared by the migration steps"""
    func = click.argument("target_stack", required=False)(func)
    func = click.argument("source_stack", required=False)(func)
    func = click.argument("bucket_name", required=False)(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show engine output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option("--project", default=None, help="Pulumi project name.")
@click.option("--region", default=None, help="AWS region.")
@click.option("--backend-url", default=None, help="Pulumi backend URL.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, project: Optional[str],
        region: Optional[str], backend_url: Optional[str]) -> None:
    """S3 bucket migration between Pulumi stacks."""
    config = get_config()
    if project:
        config.project_name = project
    if region:
        config.aws_region = region
    if backend_url:
        config.backend_url = backend_url

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = config.log_level
    setup_logging(level=level, log_file=config.log_file, quiet_third_party=not debug)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── Migration steps ─────────────────────────────────────────────


@cli.command("validate")
@step_arguments
@click.pass_context
@handle_errors
def validate(ctx, bucket_name, source_stack, target_stack):
    """Validate bucket exists and check current ownership."""
    config = ctx.obj["config"]
    source, _ = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name)
    session.orchestrator.validate(session.bucket_name, source)


@cli.command("detach-source")
@step_arguments
@click.pass_context
@handle_errors
def detach_source(ctx, bucket_name, source_stack, target_stack):
    """Remove bucket from source stack management."""
    config = ctx.obj["config"]
    source, _ = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name)
    session.orchestrator.detach_from_source(session.bucket_name, source)


@cli.command("prepare-target")
@step_arguments
@click.option("--output", "output_path", default=None, type=click.Path(dir_okay=False),
              help="Write the rendered preview to this file.")
@click.option("--save", is_flag=True, help="Write the rendered preview to <target>-preview.txt.")
@click.pass_context
@handle_errors
def prepare_target(ctx, bucket_name, source_stack, target_stack, output_path, save):
    """Prepare target stack for import (preview only)."""
    config = ctx.obj["config"]
    _, target = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name)
    outcome = session.orchestrator.prepare_target(target)
    if save and output_path is None:
        output_path = os.path.join(config.work_dir, preview_file_name(target))
    if output_path is None:
        return
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(outcome.details["rendered"] or "")
    console.info(f"Preview written to {output_path}")


@cli.command("import")
@step_arguments
@click.option("--mapping", "mapping_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Resource mapping JSON (physical bucket name -> logical name).")
@click.option("--write-mapping", "save_mapping", is_flag=True, help="Save the mapping used for later runs.")
@click.pass_context
@handle_errors
def import_bucket(ctx, bucket_name, source_stack, target_stack, mapping_path, save_mapping):
    """Import bucket into target stack."""
    config = ctx.obj["config"]
    _, target = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name, mapping_path)
    session.orchestrator.import_resource(session.bucket_name, target, session.mapping)
    if save_mapping:
        write_mapping(config.resource_mapping_path, session.mapping)
        console.info(f"Resource mapping saved to {config.resource_mapping_path}")


@cli.command("verify")
@step_arguments
@click.option("--expected-count", type=int, default=None,
              help="Fail unless the bucket holds exactly this many objects.")
@click.pass_context
@handle_errors
def verify(ctx, bucket_name, source_stack, target_stack, expected_count):
    """Verify migration completed successfully."""
    config = ctx.obj["config"]
    source, target = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name)
    session.orchestrator.verify(session.bucket_name, source, target, expected_count=expected_count)


@cli.command("rollback")
@step_arguments
@click.pass_context
def rollback(ctx, bucket_name, source_stack, target_stack):
    """Rollback migration (emergency use, manual procedure)."""
    config = ctx.obj["config"]
    source, target = _stacks(config, source_stack, target_stack)
    bucket = bucket_name or "<bucket>"
    console.warning("Rollback is not automated. Run these steps by hand, checking each one:")
    console.detail(f"1. {sys.argv[0]} deploy {target} {bucket} --exclude-bucket")
    console.detail(f"2. {sys.argv[0]} deploy {source} {bucket} --import-bucket")
    console.detail(f"3. {sys.argv[0]} verify {bucket} {target} {source}")
    sys.exit(1)


# ── Extras ──────────────────────────────────────────────────────


@cli.command("status")
@step_arguments
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_errors
def status(ctx, bucket_name, source_stack, target_stack, as_json):
    """Show where the migration stands and the next step."""
    config = ctx.obj["config"]
    source, target = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name)
    state = session.orchestrator.observe_state(session.bucket_name, source, target)
    next_step = NEXT_STEP[state]

    if as_json:
        click.echo(json.dumps({
            "bucket": session.bucket_name,
            "source": source,
            "target": target,
            "state": state.value,
            "next_step": next_step,
        }, indent=2))
        return

    console.info(f"Bucket {session.bucket_name}: {state.value}")
    if next_step:
        console.info(f"Next step: {next_step}")


@cli.command("run-all")
@step_arguments
@click.option("--mapping", "mapping_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Resource mapping JSON (physical bucket name -> logical name).")
@click.pass_context
@handle_errors
def run_all(ctx, bucket_name, source_stack, target_stack, mapping_path):
    """Run every step in order, stopping at the first failure."""
    config = ctx.obj["config"]
    source, target = _stacks(config, source_stack, target_stack)
    session = Session(config, bucket_name, mapping_path)
    console.banner(f"🚚 Migrating {session.bucket_name}: {source} -> {target}")
    session.orchestrator.run_all(session.bucket_name, source, target, session.mapping)


@cli.command("deploy")
@click.argument("stack_id")
@click.argument("bucket_name", required=False)
@click.option("--exclude-bucket", is_flag=True, help="Leave the bucket out of the declaration.")
@click.option("--import-bucket", is_flag=True, help="Declare the bucket, adopting it if it exists.")
@click.pass_context
@handle_errors
def deploy(ctx, stack_id, bucket_name, exclude_bucket, import_bucket):
    """Deploy one stack with an explicit declaration variant."""
    config = ctx.obj["config"]
    session = Session(config, bucket_name)
    variant = DeclarationVariant(exclude_resource=exclude_bucket, include_for_import=import_bucket)
    console.info(f"Deploying {stack_id} ({variant.describe()})...")
    result = session.engine.reconcile(stack_id, variant)
    console.success(f"{stack_id} deployed: {result['resource_changes']}")


@cli.command("cleanup")
@click.argument("bucket_name", required=False)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@handle_errors
def cleanup(ctx, bucket_name, yes):
    """Delete the bucket, its contents and both stacks."""
    config = ctx.obj["config"]
    session = Session(config, bucket_name)

    def confirm(message: str) -> bool:
        console.warning(message)
        return yes or click.confirm("Are you sure you want to continue?", default=False)

    console.banner("🧹 Musical Buckets Cleanup")
    try:
        Teardown(session.engine, session.inspector, confirm).run(
            session.bucket_name, config.source_stack, config.target_stack, config.work_dir
        )
    except TeardownCancelled:
        click.echo("Operation cancelled.")
        return
    console.success("🎉 Cleanup completed successfully!")


if __name__ == "__main__":
    cli()
