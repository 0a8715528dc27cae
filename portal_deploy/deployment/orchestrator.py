#!/usr/bin/env python3
"""
Portal Deployment Orchestrator
Rolls a new build out across every service, rolling all of them back on failure.
"""

import argparse
import os
import sys
import time

from .health import HealthVerifier, run_healthcheck
from .migration import MigrationRunner
from .rollback import RollbackCoordinator
from .secrets_sync import SecretsSynchronizer
from .updater import ServiceUpdater
from .utils import (
    load_config, save_deployment_metadata, build_service_descriptors,
    build_rollback_descriptors, get_secret_pairs, get_health_url,
    get_environment_config, get_registry
)
from .waiter import DeploymentWaiter
from ..config.validation import parse_environment, validate_environment
from ..errors import (
    ConfigurationError, DeploymentError, PlatformError, SecretSyncError, UpdateError
)
from ..executors import get_executor
from ..models import (
    DeploymentOutcome, DeploymentRequest, DeploymentState, DeploymentStatus, Environment
)
from ..storage import get_secret_store

PHASES = {
    DeploymentState.VALIDATING: (1, "VALIDATE"),
    DeploymentState.SYNCING_SECRETS: (2, "SYNC SECRETS"),
    DeploymentState.UPDATING_SERVICES: (3, "UPDATE SERVICES"),
    DeploymentState.RUNNING_MIGRATION: (4, "RUN MIGRATION"),
    DeploymentState.STABILIZING: (5, "STABILIZE"),
    DeploymentState.HEALTH_CHECKING: (6, "HEALTH CHECK"),
}


def _print_phase(phase_num, phase_name, environment=None):
    """Helper to print phase headers."""
    print(f"\n{'='*60}")
    if phase_num is not None and environment:
        print(f"PHASE {phase_num}: {phase_name} ({environment.upper()})")
    else:
        print(f"{phase_name}")
    print(f"{'='*60}")


class DeploymentOrchestrator:
    """
    Control loop for one deployment attempt.

    Validating -> SyncingSecrets -> UpdatingServices -> RunningMigration ->
    Stabilizing -> HealthChecking -> Succeeded, with every failure routed
    through RollingBack (when anything may have changed) to Failed.
    """

    def __init__(self, config, platform=None, secret_store=None, probe=None,
                 sleep=time.sleep, environ=None):
        self.config = config
        self.platform = platform
        self.secret_store = secret_store
        self.probe = probe
        self.sleep = sleep
        self.environ = os.environ if environ is None else environ

    def _transition(self, outcome, state):
        outcome.state = state
        if state in PHASES:
            phase_num, phase_name = PHASES[state]
            _print_phase(phase_num, phase_name, outcome.request.environment.value)

    def deploy(self, request):
        outcome = DeploymentOutcome(request=request)
        descriptors = []
        platform = None

        print(f"Starting deployment to {request.environment.value} environment")
        print(f"Build: {request.build_identifier}")

        try:
            self._transition(outcome, DeploymentState.VALIDATING)
            validate_environment(self.config['required_env_vars'], self.environ)
            descriptors = build_service_descriptors(self.config, request, self.environ)
            print("[OK] Environment variables validated")

            platform = self.platform if self.platform is not None else get_executor(self.config, request.environment)
            store = self.secret_store if self.secret_store is not None else get_secret_store(self.config, request.environment)

            self._transition(outcome, DeploymentState.SYNCING_SECRETS)
            synchronizer = SecretsSynchronizer(store, self.config['project_name'])
            outcome.synced_secrets = synchronizer.sync(get_secret_pairs(self.config, self.environ), request)

            self._transition(outcome, DeploymentState.UPDATING_SERVICES)
            self._update_services(platform, descriptors, outcome)

            self._transition(outcome, DeploymentState.RUNNING_MIGRATION)
            self._run_migration(platform, descriptors, outcome)

            self._transition(outcome, DeploymentState.STABILIZING)
            waiter = DeploymentWaiter.from_config(platform, self.config, sleep=self.sleep)
            for descriptor in descriptors:
                waiter.wait(descriptor)
                outcome.per_service[descriptor.name].final_state = 'stable'

            self._transition(outcome, DeploymentState.HEALTH_CHECKING)
            verifier = HealthVerifier.from_config(self.config, probe=self.probe, sleep=self.sleep)
            verifier.verify(get_health_url(self.config, request.environment))
            for descriptor in descriptors:
                outcome.per_service[descriptor.name].final_state = 'healthy'

        except (DeploymentError, PlatformError) as e:
            self._fail(outcome, e, platform, descriptors)
            return outcome
        except Exception as e:
            self._fail(outcome, e, platform, descriptors)
            raise

        outcome.status = DeploymentStatus.SUCCESS
        outcome.state = DeploymentState.SUCCEEDED
        return outcome

    def _update_services(self, platform, descriptors, outcome):
        updater = ServiceUpdater(platform)
        for descriptor in descriptors:
            try:
                outcome.per_service[descriptor.name] = updater.update(descriptor)
            except UpdateError as e:
                if e.previous_revision_id:
                    outcome.result_for(descriptor.name).previous_revision_id = e.previous_revision_id
                raise

    def _run_migration(self, platform, descriptors, outcome):
        primary = self.config['primary_service']
        descriptor = next(d for d in descriptors if d.name == primary)
        runner = MigrationRunner.from_config(platform, self.config)
        try:
            runner.run(descriptor.cluster_name, outcome.per_service[primary].new_revision_id)
        finally:
            outcome.migration_runs += runner.runs

    def _should_roll_back(self, error, outcome):
        if isinstance(error, SecretSyncError):
            return outcome.any_updated()
        if isinstance(error, DeploymentError):
            return error.triggers_rollback
        return outcome.any_updated()

    def _fail(self, outcome, error, platform, descriptors):
        outcome.status = getattr(error, 'status', DeploymentStatus.ROLLED_BACK)
        outcome.failed_step = getattr(error, 'step', outcome.state.value)
        outcome.error = str(error)
        print(f"ERROR: {error}")

        if platform is not None and descriptors and self._should_roll_back(error, outcome):
            outcome.state = DeploymentState.ROLLING_BACK
            _print_phase(None, "ROLLING BACK")
            RollbackCoordinator(platform).rollback(descriptors, outcome)

        outcome.state = DeploymentState.FAILED


def print_summary(outcome):
    _print_phase(None, "DEPLOYMENT SUMMARY")
    print(f"Environment: {outcome.request.environment.value}, Build: {outcome.request.build_identifier}")
    print(f"Status: {outcome.status.value.upper()}")
    if outcome.failed_step:
        print(f"Failed step: {outcome.failed_step}")
        print(f"Error: {outcome.error}")

    for name, result in outcome.per_service.items():
        print(f"  - {name}: {result.final_state} "
              f"(previous={result.previous_revision_id}, new={result.new_revision_id})")

    if outcome.rolled_back:
        rolled = [(n, r.previous_revision_id) for n, r in outcome.per_service.items()
                  if r.final_state == 'rolled_back']
        print(f"Rolled back {len(rolled)} service(s):")
        for name, revision in rolled:
            print(f"  - {name} -> {revision}")
        for error in outcome.rollback_errors:
            print(f"  ! {error}")
    print("=" * 60)


def deploy_command(args):
    config = load_config(args.config)
    request = DeploymentRequest(parse_environment(args.environment), args.build)
    outcome = DeploymentOrchestrator(config).deploy(request)
    print_summary(outcome)

    if args.record:
        save_deployment_metadata(outcome.to_dict(), args.record)

    if outcome.succeeded:
        print(f"Deployment to {request.environment.value} completed successfully!")
        return 0
    return 1


def healthcheck_command(args):
    config = load_config(args.config)
    environment = parse_environment(args.environment)
    _print_phase(None, f"HEALTH CHECK ({environment.value.upper()})")

    platform = None
    if environment != Environment.LOCAL:
        platform = get_executor(config, environment)

    failed = run_healthcheck(config, environment, args.service, platform=platform)

    print("Health check summary:")
    if failed:
        print(f"ERROR: Failed services: {' '.join(failed)}")
        return 1
    print("[OK] All checked services are healthy")
    return 0


def rollback_command(args):
    config = load_config(args.config)
    environment = parse_environment(args.environment)
    names = None if args.service == 'all' else [args.service]
    descriptors = build_rollback_descriptors(config, environment, names)

    _print_phase(None, f"ROLLBACK ({environment.value.upper()})")
    platform = get_executor(config, environment)
    coordinator = RollbackCoordinator(platform)

    failures = 0
    for descriptor in descriptors:
        try:
            coordinator.rollback_service(descriptor)
        except DeploymentError as e:
            print(f"ERROR: {e}")
            failures += 1

    print("\n=== ROLLBACK COMPLETE ===" if not failures else f"\n=== ROLLBACK INCOMPLETE ({failures} failed) ===")
    return 1 if failures else 0


def validate_command(args):
    """Check config and environment inputs are ready for a deployment. No platform calls."""
    _print_phase(None, "VALIDATING DEPLOYMENT PREREQUISITES")

    print("[1/3] Validating deployment config...")
    config = load_config(args.config)
    print("  ✓ Deployment config is valid")

    print("[2/3] Checking environment...")
    environment = parse_environment(args.environment)
    print(f"  ✓ Environment '{environment.value}' is supported")

    print("[3/3] Checking credentials, secrets and registry...")
    validate_environment(config['required_env_vars'])
    print(f"  ✓ {len(config['required_env_vars'])} required values set")
    get_environment_config(config, environment)
    print(f"  ✓ Images pulled from {get_registry(config, environment=environment)}")

    print()
    print("=" * 60)
    print("✓ ALL VALIDATION CHECKS PASSED")
    print("=" * 60)
    return 0


def build_parser():
    environments = [e.value for e in Environment]
    parser = argparse.ArgumentParser(
        prog='portal-deploy',
        description='Portal Deployment Orchestrator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  portal-deploy deploy staging 42
  portal-deploy healthcheck prod api
  portal-deploy healthcheck local
  portal-deploy rollback staging all
  portal-deploy validate dev
        """
    )
    parser.add_argument('--config', help='Deployment config file (default: config/deployment-config.yaml)')
    sub = parser.add_subparsers(dest='command', required=True)

    deploy = sub.add_parser('deploy', help='Deploy a build to every service')
    deploy.add_argument('environment', choices=environments)
    deploy.add_argument('build', help='Build identifier (image tag)')
    deploy.add_argument('--record', help='Write the deployment outcome to this YAML file')

    health = sub.add_parser('healthcheck', help='Check service health')
    health.add_argument('environment', choices=environments)
    health.add_argument('service', nargs='?', default='all', help='Service name or "all"')

    rollback = sub.add_parser('rollback', help='Roll services back to their previous deployment')
    rollback.add_argument('environment', choices=environments)
    rollback.add_argument('service', nargs='?', default='all', help='Service name or "all"')

    validate = sub.add_parser('validate', help='Validate config and environment inputs')
    validate.add_argument('environment', choices=environments)

    return parser


COMMANDS = {
    'deploy': deploy_command,
    'healthcheck': healthcheck_command,
    'rollback': rollback_command,
    'validate': validate_command,
}


def main(argv=None):
    """Main entry point - parse command line and run the command."""
    args = build_parser().parse_args(argv)
    try:
        exit_code = COMMANDS[args.command](args)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == '__main__':
    main()
