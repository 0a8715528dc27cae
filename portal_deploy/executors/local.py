#!/usr/bin/env python3
"""
Local platform executor (mock mode).
Keeps services, task definitions and tasks in memory so a full deployment
can run without a cluster.
"""

import copy
import itertools

from .base import BasePlatform
from ..deployment.utils import get_registry, service_names
from ..errors import PlatformError
from ..models import Environment


class LocalPlatform(BasePlatform):
    """In-memory container platform for local runs and testing."""

    def __init__(self, config=None):
        config = config or {}
        self.migration_exit_code = config.get('migration_exit_code', 0)
        self.task_definitions = {}
        self.services = {}
        self.tasks = {}
        self._task_ids = itertools.count(1)

    @classmethod
    def from_config(cls, config, environment, initial_tag='initial'):
        """Seed one running service per managed service, like a fresh cluster."""
        platform = cls(config.get('platform', {}))
        project = config['project_name']
        env = Environment(environment).value
        registry = get_registry(config, environment=env)
        for name in service_names(config):
            platform.seed_service(
                cluster=f"{project}-{env}",
                service=name,
                family=f"{project}-{name}-{env}",
                image=f"{registry}/{project}-{name}:{initial_tag}",
            )
        return platform

    def seed_service(self, cluster, service, family, image, desired_count=1):
        arn = self.register_task_definition({
            'family': family,
            'containerDefinitions': [{'name': service, 'image': image, 'essential': True}],
        })
        self.services[(cluster, service)] = {
            'serviceName': service,
            'status': 'ACTIVE',
            'taskDefinition': arn,
            'desiredCount': desired_count,
            'runningCount': desired_count,
            'deployments': [{'taskDefinition': arn, 'status': 'PRIMARY'}],
        }
        return arn

    def _service(self, cluster, service):
        try:
            return self.services[(cluster, service)]
        except KeyError:
            raise PlatformError("describe-service", f"service {service} not found in {cluster}")

    def describe_service(self, cluster, service):
        return copy.deepcopy(self._service(cluster, service))

    def describe_task_definition(self, revision_id):
        if revision_id not in self.task_definitions:
            raise PlatformError("describe-task-definition", f"unknown revision {revision_id}")
        return copy.deepcopy(self.task_definitions[revision_id])

    def register_task_definition(self, definition):
        family = definition.get('family')
        if not family:
            raise PlatformError("register-task-definition", "family is required")
        revision = 1 + sum(1 for d in self.task_definitions.values() if d['family'] == family)
        arn = f"arn:local:ecs:task-definition/{family}:{revision}"
        stored = copy.deepcopy(definition)
        stored.update({
            'taskDefinitionArn': arn,
            'revision': revision,
            'status': 'ACTIVE',
            'compatibilities': ['EC2'],
            'requiresAttributes': [],
        })
        self.task_definitions[arn] = stored
        return arn

    def update_service(self, cluster, service, revision_id):
        svc = self._service(cluster, service)
        if revision_id not in self.task_definitions:
            raise PlatformError("update-service", f"unknown revision {revision_id}")
        for deployment in svc['deployments']:
            deployment['status'] = 'ACTIVE'
        svc['deployments'].insert(0, {'taskDefinition': revision_id, 'status': 'PRIMARY'})
        svc['taskDefinition'] = revision_id
        # Local tasks converge immediately
        svc['runningCount'] = svc['desiredCount']

    def run_task(self, cluster, revision_id, container, command, **options):
        if revision_id not in self.task_definitions and not any(
                d['family'] == revision_id for d in self.task_definitions.values()):
            raise PlatformError("run-task", f"unknown task definition {revision_id}")
        task_id = f"arn:local:ecs:task/{cluster}/{next(self._task_ids)}"
        self.tasks[task_id] = {
            'taskArn': task_id,
            'taskDefinitionArn': revision_id,
            'lastStatus': 'STOPPED',
            'stoppedReason': 'Essential container in task exited',
            'containers': [{'name': container, 'exitCode': self.migration_exit_code}],
            'command': list(command),
        }
        return task_id

    def wait_task_stopped(self, cluster, task_id):
        if task_id not in self.tasks:
            raise PlatformError("wait tasks-stopped", f"unknown task {task_id}")

    def describe_task(self, cluster, task_id):
        if task_id not in self.tasks:
            raise PlatformError("describe-tasks", f"task {task_id} not found")
        return copy.deepcopy(self.tasks[task_id])
