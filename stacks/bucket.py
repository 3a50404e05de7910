"""
Retained Bucket Functions
Declares a versioned S3 bucket that survives removal from its stack
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict, Optional

# Pulumi type tokens for S3 buckets across pulumi_aws major versions
BUCKET_TYPES = (
    "aws:s3/bucket:Bucket",
    "aws:s3/bucketV2:BucketV2",
)


def retained_options(import_id: Optional[str] = None) -> pulumi.ResourceOptions:
    """
    Resource options for a bucket that must never be deleted by Pulumi

    Args:
        import_id: Physical id to adopt into the stack instead of creating

    Returns:
        Pulumi resource options
    """
    if import_id:
        return pulumi.ResourceOptions(retain_on_delete=True, import_=import_id)
    return pulumi.ResourceOptions(retain_on_delete=True)


def create_retained_bucket(logical_name: str,
                           bucket_name: str,
                           tags: Dict[str, str] = None,
                           import_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create (or adopt) a versioned, retained S3 bucket

    Inputs must match the live bucket when adopting, otherwise the import
    is rejected by the engine. Both stacks therefore declare the same tags.

    Args:
        logical_name: Logical resource name inside the stack
        bucket_name: Physical S3 bucket name
        tags: Tags to apply to the bucket
        import_id: Physical id to adopt, if the bucket already exists

    Returns:
        Dict with bucket resources and outputs
    """
    tags = tags or {}

    bucket = aws.s3.Bucket(
        logical_name,
        bucket=bucket_name,
        tags=tags,
        opts=retained_options(import_id)
    )

    # Deleting a versioning resource suspends versioning, so retain it too
    versioning = aws.s3.BucketVersioning(
        f"{logical_name}-versioning",
        bucket=bucket.id,
        versioning_configuration=aws.s3.BucketVersioningVersioningConfigurationArgs(
            status="Enabled"
        ),
        opts=pulumi.ResourceOptions(retain_on_delete=True, depends_on=[bucket])
    )

    return {
        "bucket": bucket,
        "bucket_id": bucket.id,
        "bucket_name": bucket_name,
        "versioning": versioning
    }
