#!/usr/bin/env python3
"""
Deployment error taxonomy.
Every step raises one of these; the orchestrator decides what happens next.
"""

from .models import DeploymentStatus


class DeploymentError(Exception):
    """Base class. `step` names the phase that failed for the summary."""
    status = DeploymentStatus.ROLLED_BACK
    step = 'deployment'
    triggers_rollback = True


class ConfigurationError(DeploymentError):
    status = DeploymentStatus.VALIDATION_FAILED
    step = 'validate'
    triggers_rollback = False


class SecretSyncError(DeploymentError):
    status = DeploymentStatus.SECRET_SYNC_FAILED
    step = 'sync-secrets'
    # Only rolls back when a service was already updated in this attempt
    triggers_rollback = False

    def __init__(self, key, reason=None):
        self.key = key
        self.reason = reason
        message = f"Failed to write secret '{key}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class UpdateError(DeploymentError):
    status = DeploymentStatus.UPDATE_FAILED
    step = 'update'

    def __init__(self, service, reason, previous_revision_id=None):
        self.service = service
        self.reason = reason
        self.previous_revision_id = previous_revision_id
        super().__init__(f"Update of service '{service}' failed: {reason}")


class MigrationError(DeploymentError):
    status = DeploymentStatus.MIGRATION_FAILED
    step = 'migrate'

    def __init__(self, exit_code, reason=None):
        self.exit_code = exit_code
        message = f"Database migration failed with exit code: {exit_code}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class StabilizationTimeout(DeploymentError):
    status = DeploymentStatus.STABILIZATION_TIMED_OUT
    step = 'stabilize'

    def __init__(self, service, attempts, running=None, desired=None):
        self.service = service
        self.attempts = attempts
        self.running = running
        self.desired = desired
        super().__init__(
            f"Service '{service}' did not stabilize after {attempts} attempts "
            f"(running={running}, desired={desired})"
        )


class HealthCheckFailed(DeploymentError):
    status = DeploymentStatus.HEALTH_CHECK_FAILED
    step = 'health-check'

    def __init__(self, url, attempts):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Health check failed for {url} after {attempts} attempts")


class RollbackError(DeploymentError):
    """Per-service rollback failure. Recorded, never escalated."""
    step = 'rollback'
    triggers_rollback = False

    def __init__(self, service, reason):
        self.service = service
        self.reason = reason
        super().__init__(f"Rollback of service '{service}' failed: {reason}")


class PlatformError(Exception):
    """Raised by platform executors and secret stores when a call is rejected."""

    def __init__(self, operation, reason):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")
