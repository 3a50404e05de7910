"""
Pulumi stack declarations for the bucket migration
Stack A owns the bucket first, Stack B adopts it
"""

from .bucket import create_retained_bucket, BUCKET_TYPES
from .stack_a import define_stack_a, SOURCE_BUCKET_LOGICAL_NAME
from .stack_b import define_stack_b, IMPORTED_BUCKET_LOGICAL_NAME
from .variants import DeclarationVariant


def declarations_for(source_stack: str = "StackA", target_stack: str = "StackB"):
    """Map stack names to the program declaring them"""
    return {
        source_stack: define_stack_a,
        target_stack: define_stack_b,
    }


__all__ = [
    "create_retained_bucket",
    "declarations_for",
    "define_stack_a",
    "define_stack_b",
    "DeclarationVariant",
    "BUCKET_TYPES",
    "SOURCE_BUCKET_LOGICAL_NAME",
    "IMPORTED_BUCKET_LOGICAL_NAME",
]
