"""
Stack A - original owner of the bucket
Declares the bucket unless the variant excludes it
"""

import pulumi
from typing import Any, Dict, Optional

from .bucket import create_retained_bucket
from .variants import DeclarationVariant, DEFAULT

SOURCE_BUCKET_LOGICAL_NAME = "StackABucket"


def define_stack_a(bucket_name: str,
                   variant: DeclarationVariant = DEFAULT,
                   resource_mapping: Optional[Dict[str, str]] = None,
                   adopt: bool = False,
                   tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Declare Stack A resources

    Args:
        bucket_name: Physical S3 bucket name
        variant: Declaration variant
        resource_mapping: Unused, Stack A always uses its own logical name
        adopt: Adopt the existing bucket instead of creating it
        tags: Tags for the bucket

    Returns:
        Dict with declared resources (empty when the bucket is excluded)
    """
    if variant.exclude_resource:
        pulumi.log.info(f"Stack A: bucket {bucket_name} excluded from declaration (retained)")
        pulumi.export("bucket_managed", False)
        return {}

    resources = create_retained_bucket(
        SOURCE_BUCKET_LOGICAL_NAME,
        bucket_name,
        tags=tags,
        import_id=bucket_name if adopt else None
    )

    pulumi.export("bucket_managed", True)
    pulumi.export("StackABucketName", resources["bucket_id"])
    return resources
