"""Secrets Manager access for stagetrim."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stagetrim.errors import CollectionError, ConfigurationError, MutationError

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class VersionEntry:
    version_id: str
    created_date: Optional[datetime]
    stages: tuple[str, ...] = ()


@dataclass(frozen=True)
class VersionPage:
    versions: list[VersionEntry]
    next_token: Optional[str] = None


class SecretVersionsClient(Protocol):
    """The two remote operations a trim run needs."""

    def list_versions(
        self,
        secret_id: str,
        *,
        include_deprecated: bool = True,
        next_token: Optional[str] = None,
        max_results: int = MAX_PAGE_SIZE,
    ) -> VersionPage:
        ...

    def remove_stage(self, secret_id: str, stage: str, version_id: str) -> None:
        ...


def _parse_version(raw: Dict[str, Any]) -> VersionEntry:
    version_id = raw.get("VersionId")
    if not version_id:
        raise CollectionError(f"Malformed version entry without VersionId: {raw!r}")
    return VersionEntry(
        version_id=str(version_id),
        created_date=raw.get("CreatedDate"),
        stages=tuple(raw.get("VersionStages") or ()),
    )


def parse_page(response: Dict[str, Any]) -> VersionPage:
    """Convert a ListSecretVersionIds response into a VersionPage."""
    versions = [_parse_version(raw) for raw in response.get("Versions") or []]
    return VersionPage(versions=versions, next_token=response.get("NextToken") or None)


class SecretsManagerVersions:
    """SecretVersionsClient backed by a boto3 ``secretsmanager`` client."""

    def __init__(
        self,
        client: Any = None,
        *,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> None:
        if client is None:
            try:
                client = boto3.client(
                    "secretsmanager", region_name=region, endpoint_url=endpoint_url
                )
            except (ValueError, BotoCoreError) as exc:
                raise ConfigurationError(f"Cannot create Secrets Manager client: {exc}") from exc
        self._client = client

    def list_versions(
        self,
        secret_id: str,
        *,
        include_deprecated: bool = True,
        next_token: Optional[str] = None,
        max_results: int = MAX_PAGE_SIZE,
    ) -> VersionPage:
        params: Dict[str, Any] = {
            "SecretId": secret_id,
            "IncludeDeprecated": include_deprecated,
            "MaxResults": max_results,
        }
        if next_token:
            params["NextToken"] = next_token
        try:
            response = self._client.list_secret_version_ids(**params)
        except (BotoCoreError, ClientError) as exc:
            raise CollectionError(f"Failed to list versions of {secret_id}: {exc}") from exc
        return parse_page(response)

    def remove_stage(self, secret_id: str, stage: str, version_id: str) -> None:
        logger.debug("Removing stage %s from %s version %s", stage, secret_id, version_id)
        try:
            self._client.update_secret_version_stage(
                SecretId=secret_id,
                VersionStage=stage,
                RemoveFromVersionId=version_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise MutationError(
                f"Failed to remove stage {stage!r} from version {version_id}: {exc}"
            ) from exc
