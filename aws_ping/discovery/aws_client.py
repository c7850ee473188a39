"""boto3 EC2 client construction from configuration."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError

from ..config import AWSConfig
from ..exceptions import ConfigurationError


def build_ec2_client(aws_config: AWSConfig) -> Any:
    """Create an EC2 client honouring explicit keys, profile and endpoint override.

    With neither keys nor a profile configured the default boto3 credential
    chain (environment, instance role, ...) is used. An unknown profile raises
    ConfigurationError.
    """
    session_kwargs: dict[str, Any] = {"region_name": aws_config.region}
    if aws_config.access_key:
        session_kwargs["aws_access_key_id"] = aws_config.access_key
        session_kwargs["aws_secret_access_key"] = aws_config.secret_key
    elif aws_config.credential_profile:
        session_kwargs["profile_name"] = aws_config.credential_profile

    client_kwargs: dict[str, Any] = {}
    if aws_config.endpoint:
        client_kwargs["endpoint_url"] = aws_config.endpoint

    try:
        session = boto3.Session(**session_kwargs)
        return session.client("ec2", **client_kwargs)
    except BotoCoreError as exc:
        raise ConfigurationError(f"Could not create EC2 client: {exc}") from exc
