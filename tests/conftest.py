import copy

import pytest

from portal_deploy.executors.local import LocalPlatform
from portal_deploy.models import DeploymentRequest, Environment
from portal_deploy.storage.local import LocalSecretStore

SERVICES = ['frontend', 'api', 'auth', 'executor']

BASE_CONFIG = {
    'project_name': 'python-learning-portal',
    'aws': {'region': 'us-east-1', 'account_id_env': 'AWS_ACCOUNT_ID'},
    'registry': 'registry.example.com',
    'platform': {'backend': 'local', 'secrets_backend': 'local'},
    'services': [
        {'name': 'frontend', 'port': 3000},
        {'name': 'api', 'port': 8080},
        {'name': 'auth', 'port': 8081},
        {'name': 'executor', 'port': 5000},
    ],
    'primary_service': 'api',
    'migration': {'container': 'api', 'command': ['npm', 'run', 'migrate']},
    'stabilization': {'max_attempts': 3, 'delay_seconds': 0},
    'health_check': {'path': '/health', 'max_attempts': 30, 'delay_seconds': 10, 'timeout_seconds': 5},
    'environments': {
        'dev': {'base_url': 'https://dev-api.python-learning-portal.com'},
        'staging': {'base_url': 'https://staging-api.python-learning-portal.com'},
        'prod': {'base_url': 'https://api.python-learning-portal.com'},
        'local': {'base_url': 'http://localhost'},
    },
    'required_env_vars': [
        'AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'SUPABASE_URL',
        'STRIPE_SECRET_KEY', 'JWT_SECRET', 'DATABASE_PASSWORD',
    ],
    'secrets': [
        {'key': 'database-password', 'env_var': 'DATABASE_PASSWORD'},
        {'key': 'supabase-url', 'env_var': 'SUPABASE_URL'},
        {'key': 'supabase-service-key', 'env_var': 'SUPABASE_SERVICE_KEY'},
        {'key': 'stripe-secret-key', 'env_var': 'STRIPE_SECRET_KEY'},
        {'key': 'jwt-secret', 'env_var': 'JWT_SECRET'},
    ],
}

ENVIRON = {
    'AWS_ACCESS_KEY_ID': 'AKIAEXAMPLE',
    'AWS_SECRET_ACCESS_KEY': 'aws-secret',
    'SUPABASE_URL': 'https://project.supabase.co',
    'SUPABASE_SERVICE_KEY': '',
    'STRIPE_SECRET_KEY': 'sk_test_123',
    'JWT_SECRET': 'jwt-signing-key',
    'DATABASE_PASSWORD': 'db-password',
}


class FakeProbe:
    """Health probe returning scripted results; the last result repeats."""

    def __init__(self, *results):
        self.results = list(results) or [True]
        self.calls = []

    def __call__(self, base_url):
        self.calls.append(base_url)
        index = min(len(self.calls), len(self.results)) - 1
        return self.results[index]


@pytest.fixture
def config():
    return copy.deepcopy(BASE_CONFIG)


@pytest.fixture
def environ():
    return dict(ENVIRON)


@pytest.fixture
def request_staging():
    return DeploymentRequest(Environment.STAGING, '42')


@pytest.fixture
def platform(config):
    return LocalPlatform.from_config(config, 'staging')


@pytest.fixture
def store():
    return LocalSecretStore({})


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def original_revisions(platform):
    return {name: platform.services[('python-learning-portal-staging', name)]['taskDefinition']
            for name in SERVICES}


def active_revision(platform, service, cluster='python-learning-portal-staging'):
    return platform.services[(cluster, service)]['taskDefinition']
