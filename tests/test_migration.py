from unittest.mock import MagicMock

import pytest

from portal_deploy.deployment.migration import MigrationRunner, read_exit_code
from portal_deploy.errors import MigrationError, PlatformError

CLUSTER = 'python-learning-portal-staging'


def api_revision(platform):
    return platform.services[(CLUSTER, 'api')]['taskDefinition']


class TestReadExitCode:

    def test_named_container(self):
        task = {'containers': [{'name': 'log-router', 'exitCode': 0}, {'name': 'api', 'exitCode': 3}]}
        assert read_exit_code(task, 'api') == 3

    def test_falls_back_to_first_container(self):
        assert read_exit_code({'containers': [{'name': 'app', 'exitCode': 0}]}, 'api') == 0

    def test_missing_exit_code(self):
        assert read_exit_code({'containers': [{'name': 'api'}]}, 'api') is None
        assert read_exit_code({}, 'api') is None


class TestMigrationRunner:

    def test_success(self, config, platform):
        runner = MigrationRunner.from_config(platform, config)

        assert runner.run(CLUSTER, api_revision(platform)) == 0
        assert runner.runs == 1
        task = list(platform.tasks.values())[0]
        assert task['containers'][0]['name'] == 'api'
        assert task['command'] == ['npm', 'run', 'migrate']

    def test_custom_command(self, config, platform):
        config['migration']['command'] = ['python', 'manage.py', 'migrate']

        MigrationRunner.from_config(platform, config).run(CLUSTER, api_revision(platform))

        assert list(platform.tasks.values())[0]['command'] == ['python', 'manage.py', 'migrate']

    def test_non_zero_exit_code(self, config, platform):
        platform.migration_exit_code = 1

        with pytest.raises(MigrationError) as exc_info:
            MigrationRunner.from_config(platform, config).run(CLUSTER, api_revision(platform))

        assert exc_info.value.exit_code == 1
        assert 'Database migration failed with exit code: 1' in str(exc_info.value)

    def test_unreadable_exit_code_is_failure(self, config, platform):
        platform.migration_exit_code = None

        with pytest.raises(MigrationError) as exc_info:
            MigrationRunner.from_config(platform, config).run(CLUSTER, api_revision(platform))

        assert exc_info.value.exit_code is None

    def test_runs_at_most_once(self, config, platform):
        runner = MigrationRunner.from_config(platform, config)
        runner.run(CLUSTER, api_revision(platform))

        with pytest.raises(RuntimeError):
            runner.run(CLUSTER, api_revision(platform))
        assert len(platform.tasks) == 1

    def test_platform_rejection(self):
        platform = MagicMock()
        platform.run_task.side_effect = PlatformError("ECS run-task", "RESOURCE:MEMORY")

        with pytest.raises(MigrationError) as exc_info:
            MigrationRunner(platform, 'api', ['npm', 'run', 'migrate']).run(CLUSTER, 'rev')

        assert 'RESOURCE:MEMORY' in str(exc_info.value)
        platform.wait_task_stopped.assert_not_called()

    def test_launch_options_passed_through(self):
        platform = MagicMock()
        platform.run_task.return_value = 'task-1'
        platform.describe_task.return_value = {'containers': [{'name': 'api', 'exitCode': 0}]}
        network = {'awsvpcConfiguration': {'subnets': ['subnet-1']}}

        MigrationRunner(platform, 'api', ['npm', 'run', 'migrate'], 'FARGATE', network).run(CLUSTER, 'rev')

        platform.run_task.assert_called_once_with(
            CLUSTER, 'rev', 'api', ['npm', 'run', 'migrate'],
            launch_type='FARGATE', network_configuration=network,
        )
        platform.wait_task_stopped.assert_called_once_with(CLUSTER, 'task-1')
