"""S3 client factory for the uploader.

Creates boto3 S3 clients bound to a single service endpoint. A fresh client
is built for every logical operation and closed when it finishes, so no
client outlives the call that needed it.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import boto3
from botocore.client import Config

from spaces_uploader.credentials import KeyManager


def build_s3_client(
    credentials: KeyManager,
    endpoint_url: str,
    region_name: Optional[str] = None,
):
    """Build a boto3 S3 client for the given endpoint.

    Args:
        credentials: Key holder; plaintext is revealed only for this call.
        endpoint_url: Service endpoint, e.g. https://nyc3.digitaloceanspaces.com
        region_name: Optional region name passed through to boto3.

    Returns:
        A boto3 S3 client configured for the endpoint.

    Note:
        The signature version is set to 's3v4' so presigned download URLs
        work against S3-compatible providers.
    """
    boto_config = Config(signature_version="s3v4")

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=credentials.reveal_access_key(),
        aws_secret_access_key=credentials.reveal_secret_key(),
        region_name=region_name,
        config=boto_config,
    )


@contextmanager
def s3_client_scope(
    credentials: KeyManager,
    endpoint_url: str,
    region_name: Optional[str] = None,
) -> Iterator[Any]:
    """Yield a new S3 client and close it on exit, success or failure."""
    client = build_s3_client(credentials, endpoint_url, region_name)
    try:
        yield client
    finally:
        client.close()
