from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest

from stagetrim.client import VersionEntry, VersionPage


class FakeSecretsClient:
    """In-memory SecretVersionsClient serving canned pages."""

    def __init__(
        self,
        pages: list[VersionPage],
        *,
        list_error: Optional[Exception] = None,
        remove_error: Optional[Exception] = None,
    ) -> None:
        self._pages = pages
        self._list_error = list_error
        self._remove_error = remove_error
        self.list_calls: list[dict] = []
        self.remove_calls: list[dict] = []

    def list_versions(self, secret_id, *, include_deprecated=True, next_token=None, max_results=100):
        self.list_calls.append(
            {
                "secret_id": secret_id,
                "include_deprecated": include_deprecated,
                "next_token": next_token,
                "max_results": max_results,
            }
        )
        if self._list_error is not None:
            raise self._list_error
        if not self._pages:
            return VersionPage(versions=[])
        index = min(len(self.list_calls) - 1, len(self._pages) - 1)
        return self._pages[index]

    def remove_stage(self, secret_id, stage, version_id):
        self.remove_calls.append({"secret_id": secret_id, "stage": stage, "version_id": version_id})
        if self._remove_error is not None:
            raise self._remove_error


def version(version_id: str, created: Optional[str], *stages: str) -> VersionEntry:
    created_date = None
    if created is not None:
        created_date = datetime.fromisoformat(created).replace(tzinfo=timezone.utc)
    return VersionEntry(version_id=version_id, created_date=created_date, stages=stages)


@pytest.fixture
def make_client():
    return FakeSecretsClient


@pytest.fixture
def make_version():
    return version
