#!/usr/bin/env python3
"""
Database migration task.
Runs the migration command once on the primary service's image and checks its exit code.
"""

from ..errors import MigrationError, PlatformError


def read_exit_code(task, container_name):
    containers = task.get('containers') or []
    for container in containers:
        if container.get('name') == container_name:
            return container.get('exitCode')
    return containers[0].get('exitCode') if containers else None


class MigrationRunner:
    """One runner per deployment attempt; refuses to run twice."""

    def __init__(self, platform, container, command, launch_type=None, network_configuration=None):
        self.platform = platform
        self.container = container
        self.command = list(command)
        self.launch_type = launch_type
        self.network_configuration = network_configuration
        self.runs = 0

    @classmethod
    def from_config(cls, platform, config):
        migration = config['migration']
        return cls(
            platform,
            container=migration.get('container', config['primary_service']),
            command=migration['command'],
            launch_type=migration.get('launch_type'),
            network_configuration=migration.get('network_configuration'),
        )

    def run(self, cluster, revision_id):
        if self.runs:
            raise RuntimeError("Migration already ran for this deployment attempt")
        self.runs += 1

        print(f"Running database migrations: {' '.join(self.command)}")
        try:
            task_id = self.platform.run_task(
                cluster, revision_id, self.container, self.command,
                launch_type=self.launch_type,
                network_configuration=self.network_configuration,
            )
            print(f"Migration task started: {task_id}")
            self.platform.wait_task_stopped(cluster, task_id)
            task = self.platform.describe_task(cluster, task_id)
        except PlatformError as e:
            raise MigrationError(None, str(e)) from e

        exit_code = read_exit_code(task, self.container)
        if exit_code != 0:
            raise MigrationError(exit_code, task.get('stoppedReason'))

        print("[OK] Database migrations completed successfully")
        return exit_code
