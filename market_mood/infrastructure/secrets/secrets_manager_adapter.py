"""
Infrastructure adapter: AWS Secrets Manager -> ISecretStore.

load_into_env() runs once at startup, before Settings.from_env() and before any
SDK that reads LANGFUSE_* env vars is imported, so vendor API keys
(FMP_API_KEY, ALPHAVANTAGE_API_KEY, LANGFUSE_*) are available process-wide.
"""

import json
import logging
import os
from typing import Any, Optional

import boto3

from market_mood.domain.ports.secret_store_port import ISecretStore

logger = logging.getLogger(__name__)


class SecretsManagerAdapter(ISecretStore):
    """Fetches and deserializes secrets from AWS Secrets Manager."""

    def __init__(self, region: Optional[str] = None, client: Any = None) -> None:
        self._client = client or boto3.client(
            "secretsmanager",
            region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
        )

    def get_secret(self, secret_arn: str) -> dict:
        """Fetch and deserialize a JSON secret by ARN."""
        response = self._client.get_secret_value(SecretId=secret_arn)
        return json.loads(response["SecretString"])

    def load_into_env(self, secret_arn: str, overwrite: bool = False) -> list[str]:
        """Inject the key-value pairs of a JSON secret into os.environ.

        Values already present in the environment win unless *overwrite* is set.
        Returns the keys that were written.
        """
        written = []
        for key, value in self.get_secret(secret_arn).items():
            if not overwrite and key in os.environ:
                continue
            os.environ[key] = str(value)
            written.append(key)
        logger.info("Loaded %d secret value(s) into the environment", len(written))
        return written
