"""AWS credential lookup and child-process environment construction."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from integration_test_dispatch.configuration.runtime_settings import CredentialSettings

logger = logging.getLogger(__name__)

# Variables that would let the AWS SDK resolve a different identity.
_AMBIENT_IDENTITY_VARIABLES = ("AWS_SESSION_TOKEN", "AWS_SECURITY_TOKEN", "AWS_PROFILE")


class CredentialError(Exception):
    """Raised when the AWS credential triple is missing or incomplete."""


@dataclass(frozen=True)
class AwsCredentials:
    """Static AWS credentials scoped to one run."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str


def read_credentials(
    settings: CredentialSettings, secret_store: Mapping[str, str]
) -> AwsCredentials:
    """Read the configured secrets, failing if any of them is unset or blank.

    The error names the missing secrets, never their values.
    """
    names = (
        settings.access_key_id_secret,
        settings.secret_access_key_secret,
        settings.region_secret,
    )
    values = {name: (secret_store.get(name) or "").strip() for name in names}
    missing = [name for name in names if not values[name]]
    if missing:
        raise CredentialError(
            "AWS authentication unavailable, missing or empty secrets: " + ", ".join(missing)
        )
    credentials = AwsCredentials(
        access_key_id=values[settings.access_key_id_secret],
        secret_access_key=values[settings.secret_access_key_secret],
        region=values[settings.region_secret],
    )
    logger.info("AWS credentials configured for region %s", credentials.region)
    return credentials


def build_credential_environment(
    credentials: AwsCredentials, base_env: Mapping[str, str]
) -> dict[str, str]:
    """Return a copy of `base_env` carrying only the given static credentials."""
    environment = {
        key: value for key, value in base_env.items() if key not in _AMBIENT_IDENTITY_VARIABLES
    }
    environment.update(
        {
            "AWS_ACCESS_KEY_ID": credentials.access_key_id,
            "AWS_SECRET_ACCESS_KEY": credentials.secret_access_key,
            "AWS_REGION": credentials.region,
            "AWS_DEFAULT_REGION": credentials.region,
        }
    )
    return environment
