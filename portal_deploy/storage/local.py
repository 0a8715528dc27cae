#!/usr/bin/env python3
"""
Local secret store for mock/development mode.
"""

from pathlib import Path

import yaml

from .base import SecretStore
from ..errors import PlatformError


class LocalSecretStore(SecretStore):
    """Secrets kept in a YAML file (or only in memory when no file is configured)."""

    def __init__(self, config):
        secrets_file = config.get('secrets_file')
        self.secrets_file = Path(secrets_file) if secrets_file else None
        self.secrets = {}
        if self.secrets_file and self.secrets_file.exists():
            with open(self.secrets_file, 'r') as f:
                self.secrets = yaml.safe_load(f) or {}

    def _save(self):
        if self.secrets_file is None:
            return
        self.secrets_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.secrets_file, 'w') as f:
            yaml.dump(self.secrets, f, default_flow_style=False)

    def put_secret_value(self, name, value):
        self.secrets[name] = value
        try:
            self._save()
        except (OSError, yaml.YAMLError) as e:
            raise PlatformError("Local secret store write", f"{self.secrets_file}: {e}") from e

    def get_secret_value(self, name):
        return self.secrets.get(name)
