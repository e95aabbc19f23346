"""Tests for AWS credential injection."""

from __future__ import annotations

import pytest
from integration_test_dispatch.configuration import CredentialSettings
from integration_test_dispatch.credential_injection import (
    AwsCredentials,
    CredentialError,
    build_credential_environment,
    read_credentials,
)

_SECRETS = {
    "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
    "AWS_SECRET_ACCESS_KEY": "very-secret",
    "AWS_REGION": "us-west-2",
}


def test_read_credentials_returns_the_triple() -> None:
    credentials = read_credentials(CredentialSettings(), _SECRETS)

    assert credentials == AwsCredentials("AKIAEXAMPLE", "very-secret", "us-west-2")


def test_credentials_repr_hides_the_secret_key() -> None:
    credentials = read_credentials(CredentialSettings(), _SECRETS)

    assert "very-secret" not in repr(credentials)


def test_read_credentials_uses_configured_secret_names() -> None:
    settings = CredentialSettings(
        access_key_id_secret="CI_KEY",
        secret_access_key_secret="CI_SECRET",
        region_secret="CI_REGION",
    )

    credentials = read_credentials(
        settings, {"CI_KEY": "key", "CI_SECRET": "secret", "CI_REGION": "eu-west-1"}
    )

    assert credentials.region == "eu-west-1"


@pytest.mark.parametrize(
    ("store", "missing"),
    [
        ({}, "AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_REGION"),
        ({**_SECRETS, "AWS_REGION": ""}, "AWS_REGION"),
        ({**_SECRETS, "AWS_SECRET_ACCESS_KEY": "   "}, "AWS_SECRET_ACCESS_KEY"),
    ],
)
def test_missing_or_empty_secrets_raise_authentication_error(
    store: dict[str, str], missing: str
) -> None:
    with pytest.raises(CredentialError, match="AWS authentication unavailable") as exc_info:
        read_credentials(CredentialSettings(), store)

    assert missing in str(exc_info.value)
    assert "very-secret" not in str(exc_info.value)


def test_credential_environment_replaces_ambient_identity() -> None:
    base_env = {
        "PATH": "/usr/bin",
        "AWS_PROFILE": "personal",
        "AWS_SESSION_TOKEN": "stale",
        "AWS_ACCESS_KEY_ID": "other",
    }

    environment = build_credential_environment(
        AwsCredentials("AKIAEXAMPLE", "very-secret", "us-west-2"), base_env
    )

    assert environment == {
        "PATH": "/usr/bin",
        "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
        "AWS_SECRET_ACCESS_KEY": "very-secret",
        "AWS_REGION": "us-west-2",
        "AWS_DEFAULT_REGION": "us-west-2",
    }
    assert base_env["AWS_PROFILE"] == "personal"
