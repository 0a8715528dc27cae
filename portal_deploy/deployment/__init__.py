"""
Deployment and orchestration package.

This package contains the steps of a deployment attempt (secret sync, service
updates, migration, stabilization, health checks), the rollback path and the
orchestrator that drives them.
"""

__all__ = ['orchestrator', 'rollback', 'utils', 'secrets_sync', 'updater', 'migration', 'waiter', 'health']
