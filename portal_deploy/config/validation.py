#!/usr/bin/env python3
"""
Configuration Validation
Checks the deployment config against its JSON schema and verifies that every
required credential and secret value is present before anything is mutated.
"""

import json
import os
from pathlib import Path

import jsonschema

from ..errors import ConfigurationError
from ..models import Environment

SCHEMA_FILE = Path(__file__).parent.parent / 'schemas' / 'deployment-config.json'


def load_schema(schema_file=SCHEMA_FILE):
    with open(schema_file, 'r') as f:
        return json.load(f)


def validate_against_schema(config):
    """
    Validate deployment config against the JSON schema.
    Returns (is_valid, errors_list)
    """
    try:
        schema = load_schema()
    except Exception as e:
        return False, [f"Error loading schema file: {e}"]

    try:
        jsonschema.validate(instance=config, schema=schema)
        return True, []
    except jsonschema.ValidationError as e:
        error_path = ' -> '.join(str(p) for p in e.path) if e.path else 'root'
        return False, [f"Schema validation failed at '{error_path}': {e.message}"]
    except jsonschema.SchemaError as e:
        return False, [f"Schema file is invalid: {e.message}"]


def check_rules(config):
    """Cross-field checks the schema cannot express. Returns list of errors."""
    errors = []
    service_names = [s['name'] for s in config.get('services', [])]

    duplicates = sorted({name for name in service_names if service_names.count(name) > 1})
    if duplicates:
        errors.append(f"Duplicate service names: {', '.join(duplicates)}")

    primary = config.get('primary_service')
    if primary not in service_names:
        errors.append(f"primary_service '{primary}' is not one of the managed services ({', '.join(service_names)})")

    secret_keys = [s['key'] for s in config.get('secrets', [])]
    if len(secret_keys) != len(set(secret_keys)):
        errors.append("Secret keys must be unique")

    return errors


def validate_config(config):
    """
    Validate a loaded deployment config.
    Uses JSON schema validation + cross-field rules.
    """
    if not config:
        return False, ["Deployment config is empty"]

    is_valid, schema_errors = validate_against_schema(config)
    if not is_valid:
        return False, schema_errors

    errors = check_rules(config)
    return len(errors) == 0, errors


def parse_environment(value):
    try:
        return Environment(value)
    except ValueError:
        choices = ', '.join(e.value for e in Environment)
        raise ConfigurationError(f"Unknown environment: {value} (must be one of {choices})")


def validate_environment(required_vars, environ=None):
    """
    Fail on the first required value that is missing or empty.
    Pure check: reads the mapping, touches nothing else.
    """
    if environ is None:
        environ = os.environ

    for var in required_vars:
        value = environ.get(var)
        if not value:
            raise ConfigurationError(f"Required environment variable {var} is not set")
    return True
