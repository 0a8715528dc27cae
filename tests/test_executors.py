from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, WaiterError

from portal_deploy.errors import ConfigurationError, PlatformError
from portal_deploy.executors import EcsPlatform, LocalPlatform, get_executor
from portal_deploy.models import Environment

CLUSTER = 'python-learning-portal-prod'


@pytest.fixture
def ecs():
    platform = EcsPlatform({'region': 'us-east-1'})
    platform._client = MagicMock()
    return platform


class TestEcsPlatform:

    def test_describe_service(self, ecs):
        ecs._client.describe_services.return_value = {
            'services': [{'serviceName': 'api', 'taskDefinition': 'arn:td/api:7'}], 'failures': []
        }

        assert ecs.describe_service(CLUSTER, 'api')['taskDefinition'] == 'arn:td/api:7'
        ecs._client.describe_services.assert_called_once_with(cluster=CLUSTER, services=['api'])

    def test_missing_service(self, ecs):
        ecs._client.describe_services.return_value = {'services': [], 'failures': [{'reason': 'MISSING'}]}

        with pytest.raises(PlatformError) as exc_info:
            ecs.describe_service(CLUSTER, 'api')
        assert 'MISSING' in str(exc_info.value)

    def test_client_error_becomes_platform_error(self, ecs):
        ecs._client.update_service.side_effect = ClientError(
            {'Error': {'Code': 'InvalidParameterException', 'Message': 'TaskDefinition not found.'}},
            'UpdateService'
        )

        with pytest.raises(PlatformError) as exc_info:
            ecs.update_service(CLUSTER, 'api', 'arn:td/api:8')
        assert str(exc_info.value) == "ECS update-service failed: TaskDefinition not found."

    def test_register_returns_arn(self, ecs):
        ecs._client.register_task_definition.return_value = {'taskDefinition': {'taskDefinitionArn': 'arn:td/api:8'}}

        assert ecs.register_task_definition({'family': 'api', 'containerDefinitions': []}) == 'arn:td/api:8'
        ecs._client.register_task_definition.assert_called_once_with(family='api', containerDefinitions=[])

    def test_run_task_overrides(self, ecs):
        ecs._client.run_task.return_value = {'tasks': [{'taskArn': 'arn:task/1'}]}

        task_id = ecs.run_task(CLUSTER, 'arn:td/api:8', 'api', ['npm', 'run', 'migrate'], launch_type='FARGATE')

        assert task_id == 'arn:task/1'
        ecs._client.run_task.assert_called_once_with(
            cluster=CLUSTER,
            taskDefinition='arn:td/api:8',
            overrides={'containerOverrides': [{'name': 'api', 'command': ['npm', 'run', 'migrate']}]},
            launchType='FARGATE',
        )

    def test_run_task_failures(self, ecs):
        ecs._client.run_task.return_value = {'tasks': [], 'failures': [{'reason': 'RESOURCE:CPU'}]}

        with pytest.raises(PlatformError) as exc_info:
            ecs.run_task(CLUSTER, 'arn:td/api:8', 'api', ['npm', 'run', 'migrate'])
        assert 'RESOURCE:CPU' in str(exc_info.value)

    def test_services_stable_waiter(self, ecs):
        ecs.wait_service_stable(CLUSTER, 'api', 15, 40)

        ecs._client.get_waiter.assert_called_once_with('services_stable')
        ecs._client.get_waiter.return_value.wait.assert_called_once_with(
            cluster=CLUSTER, services=['api'], WaiterConfig={'Delay': 15, 'MaxAttempts': 40}
        )

    def test_waiter_error(self, ecs):
        ecs._client.get_waiter.return_value.wait.side_effect = WaiterError(
            name='ServicesStable', reason='Max attempts exceeded', last_response={}
        )

        with pytest.raises(PlatformError):
            ecs.wait_service_stable(CLUSTER, 'api', 15, 40)


class TestGetExecutor:

    def test_environment_backend_wins(self, config):
        config['platform']['backend'] = 'ecs'
        config['environments']['local']['platform_backend'] = 'local'

        assert isinstance(get_executor(config, Environment.PROD), EcsPlatform)
        assert isinstance(get_executor(config, Environment.LOCAL), LocalPlatform)

    def test_local_platform_is_seeded(self, config):
        platform = get_executor(config, Environment.DEV)

        service = platform.describe_service('python-learning-portal-dev', 'auth')
        definition = platform.describe_task_definition(service['taskDefinition'])
        assert definition['family'] == 'python-learning-portal-auth-dev'
        assert definition['containerDefinitions'][0]['image'] == \
            'registry.example.com/python-learning-portal-auth:initial'

    def test_unknown_backend(self, config):
        config['platform']['backend'] = 'nomad'

        with pytest.raises(ConfigurationError):
            get_executor(config, Environment.DEV)


class TestEcsClient:

    def test_temporary_credentials_are_passed(self, monkeypatch):
        monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'ASIAEXAMPLE')
        monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'secret')
        monkeypatch.setenv('AWS_SESSION_TOKEN', 'session-token')

        with patch('portal_deploy.executors.ecs.boto3.client') as client:
            EcsPlatform({'region': 'eu-west-1'})._get_client()

        client.assert_called_once_with(
            'ecs',
            endpoint_url=None,
            aws_access_key_id='ASIAEXAMPLE',
            aws_secret_access_key='secret',
            aws_session_token='session-token',
            region_name='eu-west-1'
        )

    def test_client_is_created_once(self):
        with patch('portal_deploy.executors.ecs.boto3.client') as client:
            platform = EcsPlatform({})
            assert platform._get_client() is platform._get_client()

        client.assert_called_once()
