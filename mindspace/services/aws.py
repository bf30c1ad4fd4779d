"""Shared AWS helpers for service clients."""

from __future__ import annotations

from typing import Any

import boto3

from mindspace.config.settings import AwsConfig, settings


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    config: AwsConfig | None = None,
) -> boto3.client:
    """Instantiate a boto3 client using configured credentials if available."""

    aws = config or settings.aws
    client_kwargs: dict[str, Any] = {"region_name": region_name or aws.region}
    if aws.access_key_id and aws.secret_access_key:
        client_kwargs["aws_access_key_id"] = aws.access_key_id
        client_kwargs["aws_secret_access_key"] = aws.secret_access_key.get_secret_value()
        if aws.session_token:
            client_kwargs["aws_session_token"] = aws.session_token.get_secret_value()
    if aws.endpoint_url:
        client_kwargs["endpoint_url"] = aws.endpoint_url
    return boto3.client(service_name, **client_kwargs)


__all__ = ["create_boto3_client"]
