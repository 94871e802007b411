"""Stage label collection and selection for stagetrim."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Sequence

from stagetrim.client import MAX_PAGE_SIZE, SecretVersionsClient
from stagetrim.errors import CollectionError

logger = logging.getLogger(__name__)

RESERVED_STAGES = ("AWSCURRENT", "AWSPREVIOUS", "AWSPENDING")
DEFAULT_EXCLUDE_STAGES = frozenset(RESERVED_STAGES)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MAX_PAGES = 10_000
DEFAULT_THRESHOLD = 18


@dataclass(frozen=True)
class LabelRecord:
    stage: str
    version_id: str
    created_date: datetime


def collect_labels(
    client: SecretVersionsClient,
    secret_id: str,
    *,
    page_size: int = MAX_PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> list[LabelRecord]:
    """List every version of a secret and flatten its stage labels.

    Deprecated versions are included. Versions without stages contribute
    nothing; a version without a creation date is dated at the epoch.
    Naive creation dates are taken as UTC.
    """
    records: list[LabelRecord] = []
    next_token: Optional[str] = None
    pages = 0
    while True:
        if pages >= max_pages:
            raise CollectionError(
                f"Pagination for {secret_id} did not finish after {max_pages} pages"
            )
        page = client.list_versions(
            secret_id,
            include_deprecated=True,
            next_token=next_token,
            max_results=page_size,
        )
        pages += 1
        for version in page.versions:
            if not version.stages:
                continue
            created = version.created_date or EPOCH
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            for stage in version.stages:
                records.append(
                    LabelRecord(stage=stage, version_id=version.version_id, created_date=created)
                )
        next_token = page.next_token
        if not next_token:
            break
    logger.debug("Collected %s labels from %s page(s) of %s", len(records), pages, secret_id)
    return records


def unique_stages(
    records: Iterable[LabelRecord], exclude_stages: Iterable[str] = DEFAULT_EXCLUDE_STAGES
) -> Dict[str, LabelRecord]:
    """Drop excluded stages and keep the newest record per stage name.

    The mapping preserves first-seen order of each stage.
    """
    excluded = frozenset(exclude_stages)
    latest: Dict[str, LabelRecord] = {}
    for record in records:
        if record.stage in excluded:
            continue
        previous = latest.get(record.stage)
        if previous is None or record.created_date > previous.created_date:
            latest[record.stage] = record
    return latest


def pick_oldest_stage_to_deprecate(
    stages: Sequence[LabelRecord], threshold: int
) -> Optional[LabelRecord]:
    """Return the oldest stage when there are more than ``threshold`` of them.

    Ties on creation date go to the record that comes first.
    """
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    if len(stages) <= threshold:
        return None
    oldest = stages[0]
    for record in stages[1:]:
        if record.created_date < oldest.created_date:
            oldest = record
    return oldest
