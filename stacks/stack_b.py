"""
Stack B - new owner of the bucket
Empty until the variant asks for the bucket to be imported
"""

import pulumi
from typing import Any, Dict, Optional

from .bucket import create_retained_bucket
from .variants import DeclarationVariant, DEFAULT

IMPORTED_BUCKET_LOGICAL_NAME = "ImportedStackABucket"


def define_stack_b(bucket_name: str,
                   variant: DeclarationVariant = DEFAULT,
                   resource_mapping: Optional[Dict[str, str]] = None,
                   adopt: bool = False,
                   tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Declare Stack B resources

    Args:
        bucket_name: Physical S3 bucket name
        variant: Declaration variant
        resource_mapping: Physical bucket name -> logical resource name
        adopt: Import the existing buckets instead of creating them
        tags: Tags for the buckets, must match the live bucket when adopting

    Returns:
        Dict of declared resources keyed by physical bucket name
    """
    if not variant.include_for_import or variant.exclude_resource:
        pulumi.export("StackBStatus", "Stack B does not manage any bucket")
        return {}

    mapping = resource_mapping or {bucket_name: IMPORTED_BUCKET_LOGICAL_NAME}

    declared = {}
    for physical_name, logical_name in mapping.items():
        declared[physical_name] = create_retained_bucket(
            logical_name,
            physical_name,
            tags=tags,
            import_id=physical_name if adopt else None
        )

    if bucket_name in declared:
        pulumi.export("BucketName", declared[bucket_name]["bucket_id"])
    pulumi.export("StackBStatus", "Stack B now fully manages the bucket")
    return declared
