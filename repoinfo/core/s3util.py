"""Utility functions for S3 interactions (optional)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

try:
    import boto3  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    boto3 = None

_LOG = logging.getLogger(__name__)


def upload_json(bucket: str, key: str, payload: Dict[str, Any], client: Optional[Any] = None) -> bool:
    """Store ``payload`` as JSON at ``s3://bucket/key``; return whether it was sent."""

    serialized = json.dumps(payload, indent=2, sort_keys=True).encode("utf-8")
    client = client or _client()
    if not client:
        _LOG.warning("boto3 not available; skipping upload for s3://%s/%s", bucket, key)
        return False
    client.put_object(Bucket=bucket, Key=key, Body=serialized, ContentType="application/json")
    _LOG.debug("uploaded repository info to s3://%s/%s", bucket, key)
    return True


def _client() -> Any:
    if boto3 is None:
        return None
    return boto3.client("s3")
