#!/usr/bin/env python3
"""
Executor factory and package exports.
"""

from .base import BasePlatform
from .ecs import EcsPlatform
from .local import LocalPlatform
from ..deployment.utils import get_backend
from ..errors import ConfigurationError


def get_executor(config, environment):
    """
    Factory function to create the platform executor for an environment.

    Args:
        config: Deployment configuration dict
        environment: Environment the deployment targets

    Returns:
        EcsPlatform or LocalPlatform instance
    """
    backend = get_backend(config, environment, 'platform_backend')

    if backend == 'ecs':
        return EcsPlatform(config.get('aws', {}))
    elif backend == 'local':
        return LocalPlatform.from_config(config, environment)
    else:
        raise ConfigurationError(f"Unknown platform backend: {backend}")


# Package exports
__all__ = ['BasePlatform', 'EcsPlatform', 'LocalPlatform', 'get_executor']
