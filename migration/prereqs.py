"""
Prerequisite checks: Pulumi CLI and AWS credentials
"""

import logging
import shutil
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import PrereqMissing

logger = logging.getLogger(__name__)


def check_pulumi_cli() -> str:
    """Return the path of the pulumi CLI the Automation API shells out to"""
    path = shutil.which("pulumi")
    if not path:
        raise PrereqMissing(
            "Pulumi CLI is not installed",
            hint="Install it from https://www.pulumi.com/docs/install/",
        )
    return path


def caller_account_id(sts_client=None) -> str:
    """AWS account id for the configured credentials"""
    sts_client = sts_client or boto3.client("sts")
    try:
        identity = sts_client.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        raise PrereqMissing(
            f"AWS credentials not configured: {e}",
            hint="Configure credentials with 'aws configure' or AWS_PROFILE",
        ) from e
    return identity["Account"]


def check_prerequisites(sts_client=None) -> str:
    """
    Verify tooling and credentials before any step runs

    Returns:
        AWS account id
    """
    pulumi_path = check_pulumi_cli()
    account_id = caller_account_id(sts_client)
    logger.info("Using pulumi at %s, AWS account %s", pulumi_path, account_id)
    return account_id


def resolve_bucket_name(config, bucket_name: Optional[str], account_id: str) -> str:
    """Bucket name from the command line, or the demo default"""
    return bucket_name or config.default_bucket_name(account_id)
