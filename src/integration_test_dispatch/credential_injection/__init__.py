"""Credential injection domain exports."""

from .aws_credentials import (
    AwsCredentials,
    CredentialError,
    build_credential_environment,
    read_credentials,
)

__all__ = [
    "AwsCredentials",
    "CredentialError",
    "build_credential_environment",
    "read_credentials",
]
