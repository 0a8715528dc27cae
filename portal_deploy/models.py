#!/usr/bin/env python3
"""
Deployment data model.
Requests, service descriptors, task specifications and the outcome accumulator.
"""

from dataclasses import dataclass, field
from enum import Enum


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"
    LOCAL = "local"


class DeploymentStatus(str, Enum):
    SUCCESS = "success"
    VALIDATION_FAILED = "validation_failed"
    SECRET_SYNC_FAILED = "secret_sync_failed"
    UPDATE_FAILED = "update_failed"
    MIGRATION_FAILED = "migration_failed"
    STABILIZATION_TIMED_OUT = "stabilization_timed_out"
    HEALTH_CHECK_FAILED = "health_check_failed"
    ROLLED_BACK = "rolled_back"


class DeploymentState(str, Enum):
    VALIDATING = "validating"
    SYNCING_SECRETS = "syncing_secrets"
    UPDATING_SERVICES = "updating_services"
    RUNNING_MIGRATION = "running_migration"
    STABILIZING = "stabilizing"
    HEALTH_CHECKING = "health_checking"
    ROLLING_BACK = "rolling_back"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class DeploymentRequest:
    environment: Environment
    build_identifier: str


@dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    cluster_name: str
    image_uri: str


@dataclass
class TaskSpecification:
    """A task definition revision as read back from the platform."""
    revision_id: str
    container_image: str
    definition: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SecretEntry:
    name: str
    value: str


@dataclass
class ServiceResult:
    previous_revision_id: str = None
    new_revision_id: str = None
    final_state: str = "pending"  # pending, updated, stable, healthy, rolled_back, rollback_failed, unchanged


@dataclass
class DeploymentOutcome:
    request: DeploymentRequest
    status: DeploymentStatus = None
    state: DeploymentState = DeploymentState.VALIDATING
    failed_step: str = None
    error: str = None
    per_service: dict = field(default_factory=dict)  # service name -> ServiceResult
    migration_runs: int = 0
    rolled_back: bool = False
    rollback_errors: list = field(default_factory=list)
    synced_secrets: list = field(default_factory=list)

    def result_for(self, service_name):
        if service_name not in self.per_service:
            self.per_service[service_name] = ServiceResult()
        return self.per_service[service_name]

    def any_updated(self):
        return any(r.new_revision_id for r in self.per_service.values())

    @property
    def succeeded(self):
        return self.status == DeploymentStatus.SUCCESS

    def to_dict(self):
        return {
            'environment': self.request.environment.value,
            'build_identifier': self.request.build_identifier,
            'status': self.status.value if self.status else None,
            'state': self.state.value,
            'failed_step': self.failed_step,
            'error': self.error,
            'migration_runs': self.migration_runs,
            'rolled_back': self.rolled_back,
            'rollback_errors': list(self.rollback_errors),
            'synced_secrets': list(self.synced_secrets),
            'services': {
                name: {
                    'previous_revision_id': r.previous_revision_id,
                    'new_revision_id': r.new_revision_id,
                    'final_state': r.final_state,
                }
                for name, r in self.per_service.items()
            },
        }


def cluster_name_for(project_name, environment):
    return f"{project_name}-{Environment(environment).value}"


def build_image_uri(registry, project_name, service_name, build_identifier):
    return f"{registry}/{project_name}-{service_name}:{build_identifier}"
