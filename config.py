"""
Configuration management for the Musical Buckets migration tooling
"""

import os
from typing import Dict, Optional


class Config:
    """Centralized configuration for the bucket migration"""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        env = os.environ if environ is None else environ

        # Pulumi Configuration
        self.project_name = env.get("MIGRATION_PROJECT_NAME") or "musical-buckets"
        self.backend_url = env.get("PULUMI_BACKEND_URL") or None
        self.work_dir = env.get("MIGRATION_WORK_DIR") or os.getcwd()

        # AWS Configuration
        self.aws_region = env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or "us-east-1"

        # Stacks taking part in the migration
        self.source_stack = env.get("MIGRATION_SOURCE_STACK") or "StackA"
        self.target_stack = env.get("MIGRATION_TARGET_STACK") or "StackB"

        # Import mapping file (physical bucket name -> logical name)
        self.resource_mapping_file = env.get("MIGRATION_RESOURCE_MAPPING") or "resource-mapping.json"

        # Logging Configuration
        self.log_level = env.get("MIGRATION_LOG_LEVEL") or "WARNING"
        self.log_file = env.get("MIGRATION_LOG_FILE") or None

        # Additional tags, "Key=Value,Key2=Value2"
        self.additional_tags = _parse_tags(env.get("MIGRATION_TAGS") or "")

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all resources"""
        base_tags = {
            "Environment": "development",
            "Project": self.project_name,
            "ManagedBy": "pulumi",
            "Purpose": "bucket-migration-demo"
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def resource_mapping_path(self) -> str:
        """Mapping file path, resolved against the work directory"""
        if os.path.isabs(self.resource_mapping_file):
            return self.resource_mapping_file
        return os.path.join(self.work_dir, self.resource_mapping_file)

    def default_bucket_name(self, account_id: str) -> str:
        """Bucket name used by the demo when none is given"""
        return f"stack-a-bucket-{account_id}-{self.aws_region}"


def _parse_tags(raw: str) -> Dict[str, str]:
    tags = {}
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        if key.strip():
            tags[key.strip()] = value.strip()
    return tags


def get_config(environ: Optional[Dict[str, str]] = None) -> Config:
    """Get the configuration instance"""
    return Config(environ)
