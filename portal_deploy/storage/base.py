#!/usr/bin/env python3
"""
Base secret store interface for deployment secrets.
"""


class SecretStore:
    """Base interface for secret stores."""

    def put_secret_value(self, name, value):
        """Write or update the value stored under name."""
        raise NotImplementedError

    def get_secret_value(self, name):
        """Current value stored under name, or None."""
        raise NotImplementedError
