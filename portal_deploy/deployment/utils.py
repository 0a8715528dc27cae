#!/usr/bin/env python3
"""
Deployment utilities - shared helper functions.
"""

import os
from pathlib import Path

import yaml

from ..config.validation import validate_config
from ..errors import ConfigurationError
from ..models import (
    Environment, ServiceDescriptor, build_image_uri, cluster_name_for
)


def load_yaml(file_path):
    with open(file_path, 'r') as f:
        return yaml.safe_load(f)


def deep_merge(base, override):
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(config_path=None):
    """
    Load configuration with optional local overrides.
    - Default: config/deployment-config.yaml (or DEPLOYMENT_CONFIG if set)
    - DEPLOYMENT_ENV=local: merges deployment-config.local.yaml from the same directory
    """
    if config_path is None:
        config_path = os.environ.get('DEPLOYMENT_CONFIG', '').strip() or None
    if config_path is None:
        root = Path(__file__).parent.parent.parent
        config_path = root / "config" / "deployment-config.yaml"
    base_path = Path(config_path)

    if not base_path.exists():
        raise ConfigurationError(f"Deployment config not found: {base_path}")

    try:
        config = load_yaml(base_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML syntax error in {base_path}: {e}")

    env = os.environ.get('DEPLOYMENT_ENV', '').strip()
    if env == 'local':
        override_path = base_path.parent / "deployment-config.local.yaml"
        if override_path.exists():
            config = deep_merge(config, load_yaml(override_path))

    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ConfigurationError("Invalid deployment config: " + "; ".join(errors))

    return config


def save_deployment_metadata(metadata, output_path):
    Path(output_path).parent.mkdir(exist_ok=True, parents=True)
    with open(output_path, 'w') as f:
        yaml.dump(metadata, f, default_flow_style=False)
    print(f"Saved deployment record: {output_path}")


def get_environment_config(config, environment):
    environment = Environment(environment)
    envs = config.get('environments', {})
    if environment.value not in envs:
        raise ConfigurationError(f"No configuration for environment '{environment.value}'")
    return envs[environment.value]


def get_backend(config, environment, kind):
    """Resolve 'platform_backend' or 'secrets_backend', environment setting first."""
    env_config = get_environment_config(config, environment)
    platform = config.get('platform', {})
    if kind == 'platform_backend':
        return env_config.get('platform_backend', platform.get('backend', 'ecs'))
    return env_config.get('secrets_backend', platform.get('secrets_backend', 'secretsmanager'))


def get_registry(config, environ=None, environment=None):
    """Registry host for image URIs; derived from the AWS account when not configured."""
    if environment is not None and get_environment_config(config, environment).get('registry'):
        return get_environment_config(config, environment)['registry']
    if config.get('registry'):
        return config['registry']

    if environ is None:
        environ = os.environ
    aws = config.get('aws', {})
    account_env = aws.get('account_id_env', 'AWS_ACCOUNT_ID')
    account_id = environ.get(account_env)
    if not account_id:
        raise ConfigurationError(f"Required environment variable {account_env} is not set (needed for the image registry)")
    return f"{account_id}.dkr.ecr.{aws['region']}.amazonaws.com"


def service_names(config):
    return [s['name'] for s in config['services']]


def build_service_descriptor(config, request, service_name, registry):
    project = config['project_name']
    return ServiceDescriptor(
        name=service_name,
        cluster_name=cluster_name_for(project, request.environment),
        image_uri=build_image_uri(registry, project, service_name, request.build_identifier),
    )


def build_service_descriptors(config, request, environ=None):
    """Ordered descriptors, one per managed service."""
    registry = get_registry(config, environ, request.environment)
    return [build_service_descriptor(config, request, name, registry) for name in service_names(config)]


def get_secret_pairs(config, environ=None):
    """Ordered (secret key, value) pairs read from the environment."""
    if environ is None:
        environ = os.environ
    return [(s['key'], environ.get(s['env_var'], '')) for s in config.get('secrets', [])]


def get_health_url(config, environment):
    return get_environment_config(config, environment)['base_url'].rstrip('/')


def get_service_url(config, environment, service_name):
    """Per-service URL used by the standalone health check."""
    ports = {s['name']: s['port'] for s in config['services']}
    if service_name not in ports:
        raise ConfigurationError(
            f"Unknown service: {service_name} (available: {', '.join(service_names(config))})"
        )
    if Environment(environment) == Environment.LOCAL:
        return f"http://localhost:{ports[service_name]}"
    return f"{get_health_url(config, environment)}:{ports[service_name]}"


def build_rollback_descriptors(config, environment, names=None):
    """Descriptors for services to roll back outside a deployment attempt (no image)."""
    cluster = cluster_name_for(config['project_name'], environment)
    known = service_names(config)
    for name in names or []:
        if name not in known:
            raise ConfigurationError(f"Unknown service: {name} (available: {', '.join(known)})")
    return [ServiceDescriptor(name=name, cluster_name=cluster, image_uri=None) for name in (names or known)]
