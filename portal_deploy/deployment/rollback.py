#!/usr/bin/env python3
"""
Rollback Module
Reverts every managed service to the revision it ran before the deployment attempt.
"""

from ..errors import PlatformError, RollbackError


def previous_revision_from_history(platform, descriptor):
    """
    Second-most-recent deployment's revision, from the platform's deployment history.
    Returns None when the service has no earlier deployment.
    """
    service = platform.describe_service(descriptor.cluster_name, descriptor.name)
    deployments = service.get('deployments') or []
    if len(deployments) < 2:
        return None
    return deployments[1].get('taskDefinition')


class RollbackCoordinator:

    def __init__(self, platform):
        self.platform = platform

    def _target_revision(self, descriptor, outcome):
        """(revision, source) to restore, or (None, reason) when there is nothing to do."""
        if outcome is not None:
            result = outcome.per_service.get(descriptor.name)
            if result is not None and result.previous_revision_id:
                return result.previous_revision_id, 'deployment record'
            # Not reached in this attempt, so never changed
            return None, 'not updated in this attempt'

        revision = previous_revision_from_history(self.platform, descriptor)
        if revision is None:
            return None, 'no previous deployment'
        return revision, 'deployment history'

    def rollback_service(self, descriptor, outcome=None):
        """Returns the revision restored, or None when the service was left as is."""
        print(f"WARNING: Rolling back service: {descriptor.name}")
        try:
            revision, source = self._target_revision(descriptor, outcome)
            if revision is None:
                print(f"Service {descriptor.name} left unchanged ({source})")
                return None
            self.platform.update_service(descriptor.cluster_name, descriptor.name, revision)
        except PlatformError as e:
            raise RollbackError(descriptor.name, str(e)) from e

        print(f"WARNING: Service {descriptor.name} rolled back to {revision} (from {source})")
        return revision

    def rollback(self, descriptors, outcome=None):
        """
        Attempt every service exactly once, in order.
        A failure on one service is recorded and the loop continues; nothing is retried.

        Returns:
            Dict of service name -> restored revision (None when left unchanged)
        """
        print("ERROR: Deployment failed. Initiating rollback...")
        restored = {}
        errors = []

        for descriptor in descriptors:
            result = outcome.result_for(descriptor.name) if outcome is not None else None
            try:
                revision = self.rollback_service(descriptor, outcome)
            except RollbackError as e:
                print(f"ERROR: {e}")
                errors.append(e)
                restored[descriptor.name] = None
                if result is not None:
                    result.final_state = 'rollback_failed'
                continue

            restored[descriptor.name] = revision
            if result is not None:
                result.final_state = 'rolled_back' if revision else 'unchanged'

        if outcome is not None:
            outcome.rolled_back = True
            outcome.rollback_errors.extend(str(e) for e in errors)

        if errors:
            print(f"ERROR: Rollback incomplete: {len(errors)} service(s) could not be rolled back")
        else:
            print("Rollback completed")
        return restored
