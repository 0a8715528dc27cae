#!/usr/bin/env python3
"""
Base platform interface for container orchestration operations.
"""


class BasePlatform:
    """Interface for platform executors (local mock or ECS)."""

    # True when wait_service_stable uses the platform's own stable semantics
    supports_native_wait = False

    def describe_service(self, cluster, service):
        """
        Describe a service.

        Returns:
            Dict with 'taskDefinition', 'runningCount', 'desiredCount', 'status'
            and 'deployments' (newest first, each with a 'taskDefinition')
        """
        raise NotImplementedError("Subclasses must implement describe_service()")

    def describe_task_definition(self, revision_id):
        """Full task definition for a revision id."""
        raise NotImplementedError("Subclasses must implement describe_task_definition()")

    def register_task_definition(self, definition):
        """Register a task definition and return the new revision id."""
        raise NotImplementedError("Subclasses must implement register_task_definition()")

    def update_service(self, cluster, service, revision_id):
        raise NotImplementedError("Subclasses must implement update_service()")

    def run_task(self, cluster, revision_id, container, command, **options):
        """Start a one-shot task with a command override and return its task id."""
        raise NotImplementedError("Subclasses must implement run_task()")

    def wait_task_stopped(self, cluster, task_id):
        raise NotImplementedError("Subclasses must implement wait_task_stopped()")

    def describe_task(self, cluster, task_id):
        """Returns dict with 'lastStatus', 'stoppedReason' and 'containers' (name, exitCode)."""
        raise NotImplementedError("Subclasses must implement describe_task()")

    def wait_service_stable(self, cluster, service, delay, max_attempts):
        raise NotImplementedError("Platform has no native stable waiter")
