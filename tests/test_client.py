from __future__ import annotations

from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import Stubber

from stagetrim.client import SecretsManagerVersions, VersionEntry, parse_page
from stagetrim.errors import CollectionError, ConfigurationError, MutationError

V1 = "a" * 32
V2 = "b" * 32


@pytest.fixture
def boto_client():
    return boto3.client(
        "secretsmanager",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_list_versions_maps_response(boto_client) -> None:
    created = datetime(2024, 1, 2, tzinfo=timezone.utc)
    stubber = Stubber(boto_client)
    stubber.add_response(
        "list_secret_version_ids",
        {
            "Versions": [
                {"VersionId": V1, "VersionStages": ["AWSCURRENT", "blue"], "CreatedDate": created},
                {"VersionId": V2},
            ],
            "NextToken": "page-2",
        },
        {"SecretId": "my/secret", "IncludeDeprecated": True, "MaxResults": 100},
    )

    with stubber:
        page = SecretsManagerVersions(boto_client).list_versions("my/secret")

    assert page.next_token == "page-2"
    assert page.versions == [
        VersionEntry(version_id=V1, created_date=created, stages=("AWSCURRENT", "blue")),
        VersionEntry(version_id=V2, created_date=None, stages=()),
    ]
    stubber.assert_no_pending_responses()


def test_list_versions_passes_token(boto_client) -> None:
    stubber = Stubber(boto_client)
    stubber.add_response(
        "list_secret_version_ids",
        {"Versions": []},
        {"SecretId": "my/secret", "IncludeDeprecated": True, "MaxResults": 100, "NextToken": "page-2"},
    )

    with stubber:
        page = SecretsManagerVersions(boto_client).list_versions("my/secret", next_token="page-2")

    assert page.versions == []
    assert page.next_token is None


def test_list_versions_wraps_client_errors(boto_client) -> None:
    stubber = Stubber(boto_client)
    stubber.add_client_error(
        "list_secret_version_ids",
        service_error_code="ResourceNotFoundException",
        service_message="Secrets Manager can't find the specified secret.",
        http_status_code=400,
    )

    with stubber, pytest.raises(CollectionError, match="my/secret") as excinfo:
        SecretsManagerVersions(boto_client).list_versions("my/secret")
    assert excinfo.value.__cause__ is not None


def test_remove_stage_sends_update(boto_client) -> None:
    stubber = Stubber(boto_client)
    stubber.add_response(
        "update_secret_version_stage",
        {"Name": "my/secret"},
        {"SecretId": "my/secret", "VersionStage": "blue", "RemoveFromVersionId": V1},
    )

    with stubber:
        SecretsManagerVersions(boto_client).remove_stage("my/secret", "blue", V1)

    stubber.assert_no_pending_responses()


def test_remove_stage_wraps_client_errors(boto_client) -> None:
    stubber = Stubber(boto_client)
    stubber.add_client_error(
        "update_secret_version_stage",
        service_error_code="InvalidParameterException",
        http_status_code=400,
    )

    with stubber, pytest.raises(MutationError, match="blue"):
        SecretsManagerVersions(boto_client).remove_stage("my/secret", "blue", V1)


def test_parse_page_rejects_version_without_id() -> None:
    with pytest.raises(CollectionError):
        parse_page({"Versions": [{"VersionStages": ["blue"]}]})


def test_parse_page_treats_empty_token_as_last_page() -> None:
    page = parse_page({"Versions": [], "NextToken": ""})
    assert page.next_token is None


def test_invalid_endpoint_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="not a url"):
        SecretsManagerVersions(region="us-east-1", endpoint_url="not a url")
