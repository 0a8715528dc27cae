#!/usr/bin/env python3
"""ECS platform executor for production mode."""

import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import BasePlatform
from ..errors import PlatformError


class EcsPlatform(BasePlatform):
    """Amazon ECS executor (boto3)."""

    supports_native_wait = True

    def __init__(self, config):
        self.region = config.get('region', 'us-east-1')
        self.endpoint_url = config.get('endpoint_url')
        self._client = None

    def _get_client(self):
        """Lazy initialization of boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                'ecs',
                endpoint_url=self.endpoint_url,
                aws_access_key_id=os.environ.get('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.environ.get('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=os.environ.get('AWS_SESSION_TOKEN'),
                region_name=self.region
            )
        return self._client

    def _handle_error(self, operation, error):
        """Unified error handling."""
        if isinstance(error, ClientError):
            reason = error.response.get('Error', {}).get('Message', str(error))
        else:
            reason = str(error)
        raise PlatformError(operation, reason) from error

    def describe_service(self, cluster, service):
        try:
            response = self._get_client().describe_services(cluster=cluster, services=[service])
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS describe-services", e)

        services = response.get('services', [])
        if not services:
            failures = response.get('failures', [])
            reason = failures[0].get('reason', 'MISSING') if failures else 'MISSING'
            raise PlatformError("ECS describe-services", f"service {service} in {cluster}: {reason}")
        return services[0]

    def describe_task_definition(self, revision_id):
        try:
            response = self._get_client().describe_task_definition(taskDefinition=revision_id)
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS describe-task-definition", e)
        return response['taskDefinition']

    def register_task_definition(self, definition):
        try:
            response = self._get_client().register_task_definition(**definition)
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS register-task-definition", e)
        return response['taskDefinition']['taskDefinitionArn']

    def update_service(self, cluster, service, revision_id):
        try:
            self._get_client().update_service(cluster=cluster, service=service, taskDefinition=revision_id)
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS update-service", e)

    def run_task(self, cluster, revision_id, container, command, **options):
        params = {
            'cluster': cluster,
            'taskDefinition': revision_id,
            'overrides': {'containerOverrides': [{'name': container, 'command': list(command)}]},
        }
        if options.get('launch_type'):
            params['launchType'] = options['launch_type']
        if options.get('network_configuration'):
            params['networkConfiguration'] = options['network_configuration']

        try:
            response = self._get_client().run_task(**params)
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS run-task", e)

        tasks = response.get('tasks', [])
        if not tasks:
            failures = response.get('failures', [])
            reason = failures[0].get('reason', 'no task started') if failures else 'no task started'
            raise PlatformError("ECS run-task", reason)
        return tasks[0]['taskArn']

    def wait_task_stopped(self, cluster, task_id):
        # Bounded by the waiter's own defaults
        try:
            self._get_client().get_waiter('tasks_stopped').wait(cluster=cluster, tasks=[task_id])
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS wait tasks-stopped", e)

    def describe_task(self, cluster, task_id):
        try:
            response = self._get_client().describe_tasks(cluster=cluster, tasks=[task_id])
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS describe-tasks", e)

        tasks = response.get('tasks', [])
        if not tasks:
            raise PlatformError("ECS describe-tasks", f"task {task_id} not found")
        return tasks[0]

    def wait_service_stable(self, cluster, service, delay, max_attempts):
        try:
            self._get_client().get_waiter('services_stable').wait(
                cluster=cluster,
                services=[service],
                WaiterConfig={'Delay': delay, 'MaxAttempts': max_attempts}
            )
        except (ClientError, BotoCoreError) as e:
            self._handle_error("ECS wait services-stable", e)
