#!/usr/bin/env python3
"""AWS Secrets Manager store for production mode."""

import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import SecretStore
from ..errors import PlatformError


class SecretsManagerStore(SecretStore):
    """Secrets Manager backend. Secrets must already exist; each write adds a version."""

    def __init__(self, config):
        self.region = config.get('region', 'us-east-1')
        self.endpoint_url = config.get('endpoint_url')
        self._client = None

    def _get_client(self):
        """Lazy initialization of boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                'secretsmanager',
                endpoint_url=self.endpoint_url,
                aws_access_key_id=os.environ.get('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.environ.get('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=os.environ.get('AWS_SESSION_TOKEN'),
                region_name=self.region
            )
        return self._client

    def put_secret_value(self, name, value):
        try:
            self._get_client().put_secret_value(SecretId=name, SecretString=value)
        except ClientError as e:
            error = e.response.get('Error', {})
            raise PlatformError("Secrets Manager put-secret-value",
                                f"{error.get('Code', 'Error')}: {error.get('Message', e)}") from e
        except BotoCoreError as e:
            raise PlatformError("Secrets Manager put-secret-value", str(e)) from e

    def get_secret_value(self, name):
        try:
            response = self._get_client().get_secret_value(SecretId=name)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                return None
            raise PlatformError("Secrets Manager get-secret-value", str(e)) from e
        return response.get('SecretString')
