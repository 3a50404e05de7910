"""
Musical Buckets - Pulumi CLI entry point
Declares Stack A or Stack B depending on the selected stack.

    pulumi up -s StackA
    pulumi config set excludeBucket true -s StackA && pulumi up -s StackA
    pulumi config set importBucket true -s StackB && pulumi up -s StackB
"""
import pulumi
import pulumi_aws as aws
from config import get_config
from stacks import DeclarationVariant, declarations_for

# Configuration
settings = get_config()
settings.project_name = pulumi.get_project()

config = pulumi.Config()
source_stack = config.get("sourceStack") or settings.source_stack
target_stack = config.get("targetStack") or settings.target_stack
variant = DeclarationVariant.from_pulumi_config(config)

current = aws.get_caller_identity()
settings.aws_region = aws.get_region().name
bucket_name = config.get("bucketName") or settings.default_bucket_name(current.account_id)

# Resource mapping for the import, physical bucket name -> logical name
resource_mapping = config.get_object("resourceMapping")

declarations = declarations_for(source_stack, target_stack)
stack_name = pulumi.get_stack()
if stack_name not in declarations:
    raise ValueError(f"Unknown stack {stack_name}, expected {source_stack} or {target_stack}")

# Same tags as the automation engine, so an import matches the live bucket
declarations[stack_name](
    bucket_name,
    variant,
    resource_mapping=resource_mapping,
    adopt=variant.include_for_import,
    tags=settings.common_tags
)
