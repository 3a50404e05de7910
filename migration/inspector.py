"""
Resource Inspector
Read-only view of the bucket (boto3) and of which stack owns it (Pulumi state)
"""

import logging
from typing import Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import MigrationError, NotFound

logger = logging.getLogger(__name__)

# head_bucket answers these when the bucket is missing or not ours to reach
_UNREACHABLE_CODES = {"404", "403", "NoSuchBucket", "NotFound", "Forbidden", "AccessDenied"}

# delete_objects accepts at most 1000 keys per call
_DELETE_BATCH = 1000


class BucketInspector:
    """Query bucket existence, contents and ownership"""

    def __init__(self, engine, region: Optional[str] = None, s3_client=None):
        self.engine = engine
        if s3_client is None:
            kwargs = {"region_name": region} if region else {}
            s3_client = boto3.client("s3", **kwargs)
        self._s3 = s3_client

    # ── Physical bucket ─────────────────────────────────────────

    def resource_exists(self, name: str) -> bool:
        """
        True if the bucket exists and is reachable

        Any head_bucket failure counts as unreachable, including a bucket in
        another region (301) or a bad request (400).

        Raises:
            NotFound: if S3 could not be reached at all (credentials, network)
        """
        try:
            self._s3.head_bucket(Bucket=name)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _UNREACHABLE_CODES:
                logger.debug("head_bucket %s -> %s", name, code)
            else:
                logger.warning("head_bucket %s -> %s, treating bucket as unreachable", name, code)
            return False
        except BotoCoreError as e:
            raise NotFound(
                f"Could not check bucket {name}: {e}",
                hint="Check AWS credentials, region and network access",
            ) from e

    def list_contents(self, name: str) -> List[str]:
        """Keys of every current object in the bucket"""
        keys = []
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=name):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])
        return keys

    def list_versions(self, name: str) -> List[Dict[str, str]]:
        """Every object version and delete marker, as delete_objects identifiers"""
        identifiers = []
        paginator = self._s3.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=name):
            for entry in page.get("Versions", []) + page.get("DeleteMarkers", []):
                identifiers.append({"Key": entry["Key"], "VersionId": entry["VersionId"]})
        return identifiers

    def empty_bucket(self, name: str) -> int:
        """
        Permanently delete every object version and delete marker

        Returns:
            Number of versions removed
        """
        identifiers = self.list_versions(name)
        for start in range(0, len(identifiers), _DELETE_BATCH):
            batch = identifiers[start:start + _DELETE_BATCH]
            response = self._s3.delete_objects(
                Bucket=name,
                Delete={"Objects": batch, "Quiet": True},
            )
            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                raise MigrationError(
                    f"Could not delete {len(errors)} object versions from {name}: "
                    f"{first.get('Key')}: {first.get('Message')}"
                )
        logger.info("Removed %d object versions from %s", len(identifiers), name)
        return len(identifiers)

    def delete_bucket(self, name: str) -> None:
        try:
            self._s3.delete_bucket(Bucket=name)
        except ClientError as e:
            raise MigrationError(
                f"Could not delete bucket {name}: {e}",
                hint="It may have remaining objects or be managed by another stack",
            ) from e

    # ── Ownership ───────────────────────────────────────────────

    def owns(self, stack_id: str, name: str) -> bool:
        """True if the stack's state declares the bucket"""
        return name in self.engine.owned_bucket_ids(stack_id)

    def resource_owners(self, name: str, stack_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Every stack that declares the bucket (more than one is a violation)"""
        candidates = list(stack_ids) if stack_ids is not None else self.engine.list_stacks()
        return [stack_id for stack_id in candidates if self.owns(stack_id, name)]

    def resource_owner(self, name: str, stack_ids: Optional[Iterable[str]] = None) -> Optional[str]:
        owners = self.resource_owners(name, stack_ids)
        return owners[0] if owners else None
