"""
Resource mapping for unattended imports

Maps a physical bucket name to the logical resource name it takes inside the
target stack, e.g. ``{"demo-bucket": "ImportedResource"}``.
"""

import json
import logging
import os
from typing import Dict, Optional

from stacks import IMPORTED_BUCKET_LOGICAL_NAME

from .errors import ImportFailed

logger = logging.getLogger(__name__)


def default_mapping(bucket_name: str) -> Dict[str, str]:
    """Mapping used when no mapping file is supplied"""
    return {bucket_name: IMPORTED_BUCKET_LOGICAL_NAME}


def validate_mapping(mapping) -> Dict[str, str]:
    """
    Check a mapping is a non-empty object of non-empty strings

    Raises:
        ImportFailed: if the mapping is malformed
    """
    if not isinstance(mapping, dict) or not mapping:
        raise ImportFailed("Resource mapping must be a non-empty JSON object")
    for physical, logical in mapping.items():
        if not isinstance(physical, str) or not physical.strip():
            raise ImportFailed(f"Invalid physical id in resource mapping: {physical!r}")
        if not isinstance(logical, str) or not logical.strip():
            raise ImportFailed(f"Invalid logical name for {physical} in resource mapping: {logical!r}")
    return dict(mapping)


def load_mapping(path: str) -> Dict[str, str]:
    """
    Load a resource mapping file

    Args:
        path: JSON file path

    Returns:
        Validated mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ImportFailed(f"Could not read resource mapping {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ImportFailed(f"Resource mapping {path} is not valid JSON: {e}") from e
    logger.debug("Loaded resource mapping from %s: %s", path, data)
    return validate_mapping(data)


def resolve_mapping(bucket_name: str, path: Optional[str] = None) -> Dict[str, str]:
    """Load the mapping file if it exists, otherwise fall back to the default"""
    if path and os.path.exists(path):
        return load_mapping(path)
    return default_mapping(bucket_name)


def write_mapping(path: str, mapping: Dict[str, str]) -> None:
    """Write a mapping file for later unattended runs"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(validate_mapping(mapping), f, indent=2)
        f.write("\n")
