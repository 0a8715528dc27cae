"""
Secret store abstraction package.

This package provides abstraction for the stores deployment secrets are
pushed to (local YAML file, AWS Secrets Manager).
"""

from .base import SecretStore
from .local import LocalSecretStore
from .secretsmanager import SecretsManagerStore
from ..deployment.utils import get_backend
from ..errors import ConfigurationError


def get_secret_store(config, environment):
    """Factory function to get appropriate secret store."""
    backend = get_backend(config, environment, 'secrets_backend')

    if backend == 'local':
        return LocalSecretStore(config.get('platform', {}))
    elif backend == 'secretsmanager':
        return SecretsManagerStore(config.get('aws', {}))
    else:
        raise ConfigurationError(f"Unknown secrets backend: {backend}")


__all__ = ['SecretStore', 'LocalSecretStore', 'SecretsManagerStore', 'get_secret_store']
