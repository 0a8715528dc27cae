#!/usr/bin/env python3
"""
Secret synchronization.
Pushes the current secret values into the secret store before any service changes.
"""

from ..errors import PlatformError, SecretSyncError
from ..models import Environment, SecretEntry


def scoped_secret_name(project_name, environment, key):
    return f"{project_name}-{Environment(environment).value}-{key}"


def build_secret_entries(project_name, request, pairs):
    """Entries for every pair with a non-empty value, in input order."""
    entries = []
    for key, value in pairs:
        if not value:
            continue
        entries.append((key, SecretEntry(scoped_secret_name(project_name, request.environment, key), value)))
    return entries


class SecretsSynchronizer:

    def __init__(self, store, project_name):
        self.store = store
        self.project_name = project_name

    def sync(self, pairs, request):
        """
        Write each non-empty (key, value) pair under its scoped name.
        Empty values are skipped, never cleared. Stops at the first failed
        write; earlier writes stay in place.

        Returns:
            List of secret names written
        """
        print("Updating secrets in secret store")
        written = []
        for key, entry in build_secret_entries(self.project_name, request, pairs):
            try:
                self.store.put_secret_value(entry.name, entry.value)
            except PlatformError as e:
                raise SecretSyncError(key, e.reason) from e
            print(f"[OK] Updated secret: {entry.name}")
            written.append(entry.name)

        skipped = len(pairs) - len(written)
        if skipped:
            print(f"Skipped {skipped} secret(s) with no value set")
        return written
