"""Stage trimming for stagetrim."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from stagetrim.client import SecretsManagerVersions, SecretVersionsClient
from stagetrim.config import TrimConfig
from stagetrim.stages import (
    DEFAULT_EXCLUDE_STAGES,
    DEFAULT_THRESHOLD,
    collect_labels,
    pick_oldest_stage_to_deprecate,
    unique_stages,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovedStage:
    stage: str
    version_id: str


@dataclass(frozen=True)
class RunResult:
    trimmed: bool
    removed: Optional[RemovedStage]
    total_label_count: int
    manageable_count: int
    dry_run: bool = False

    def to_outputs(self) -> Dict[str, str]:
        """Render the result as action outputs."""
        outputs = {"trimmed": "true" if self.trimmed else "false"}
        if self.removed is not None:
            outputs["removed-stage"] = self.removed.stage
            outputs["removed-version-id"] = self.removed.version_id
        return outputs


def trim_stages(
    client: SecretVersionsClient,
    secret_id: str,
    *,
    threshold: int = DEFAULT_THRESHOLD,
    exclude_stages: Iterable[str] = DEFAULT_EXCLUDE_STAGES,
    dry_run: bool = False,
) -> RunResult:
    """Remove the oldest manageable stage of a secret if over the threshold.

    Every version is listed before anything is decided, and at most one
    stage is removed. In dry-run mode the would-be removal is reported
    but not sent.
    """
    excluded = frozenset(exclude_stages)
    labels = collect_labels(client, secret_id)
    stages = list(unique_stages(labels, excluded).values())
    logger.info(
        "Found %s manageable staging labels (excluding: %s)",
        len(stages),
        ", ".join(sorted(excluded)) or "none",
    )

    oldest = pick_oldest_stage_to_deprecate(stages, threshold)
    if oldest is None:
        logger.info("At or under threshold (%s). Nothing to deprecate.", threshold)
        return RunResult(
            trimmed=False,
            removed=None,
            total_label_count=len(labels),
            manageable_count=len(stages),
            dry_run=dry_run,
        )

    logger.info(
        'Threshold exceeded (%s > %s). Will deprecate stage "%s" from version %s (created %s).',
        len(stages),
        threshold,
        oldest.stage,
        oldest.version_id,
        oldest.created_date.isoformat(),
    )
    removed = RemovedStage(stage=oldest.stage, version_id=oldest.version_id)

    if dry_run:
        logger.info("DRY RUN: Skipping update.")
    else:
        client.remove_stage(secret_id, oldest.stage, oldest.version_id)
        logger.info('Deprecated (removed) stage "%s" from version %s.', oldest.stage, oldest.version_id)

    return RunResult(
        trimmed=not dry_run,
        removed=removed,
        total_label_count=len(labels),
        manageable_count=len(stages),
        dry_run=dry_run,
    )


def run_trim(config: TrimConfig, client: SecretVersionsClient | None = None) -> RunResult:
    """Trim the configured secret, building a boto3 client when none is given."""
    if client is None:
        client = SecretsManagerVersions(region=config.region, endpoint_url=config.endpoint_url)
    return trim_stages(
        client,
        config.secret_id,
        threshold=config.threshold,
        exclude_stages=config.exclude_stages,
        dry_run=config.dry_run,
    )
