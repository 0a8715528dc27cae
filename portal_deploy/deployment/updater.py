#!/usr/bin/env python3
"""
Service updates.
Registers a copy of a service's active task definition with the new image and
points the service at it.
"""

import copy

from ..errors import PlatformError, UpdateError
from ..models import ServiceResult, TaskSpecification

# Fields assigned by the platform; register-task-definition rejects them
PLATFORM_ASSIGNED_FIELDS = (
    'taskDefinitionArn', 'revision', 'status', 'requiresAttributes',
    'compatibilities', 'registeredAt', 'registeredBy', 'deregisteredAt',
)


def find_container(definition, service_name):
    """Container named after the service, else the first one."""
    containers = definition.get('containerDefinitions') or []
    if not containers:
        return None
    for container in containers:
        if container.get('name') == service_name:
            return container
    return containers[0]


def to_task_specification(definition, service_name):
    container = find_container(definition, service_name)
    return TaskSpecification(
        revision_id=definition.get('taskDefinitionArn'),
        container_image=container.get('image') if container else None,
        definition=definition,
    )


def build_new_definition(definition, service_name, image_uri):
    """Copy of definition with the image replaced and platform-assigned fields removed."""
    new_definition = copy.deepcopy(definition)
    for key in PLATFORM_ASSIGNED_FIELDS:
        new_definition.pop(key, None)
    # Empty placement constraints are echoed back by describe but not accepted on register
    if not new_definition.get('placementConstraints'):
        new_definition.pop('placementConstraints', None)

    container = find_container(new_definition, service_name)
    if container is None:
        raise ValueError("task definition has no container definitions")
    container['image'] = image_uri
    return new_definition


class ServiceUpdater:

    def __init__(self, platform):
        self.platform = platform

    def current_specification(self, descriptor):
        """Active task specification of the service; UpdateError if it cannot be read."""
        try:
            service = self.platform.describe_service(descriptor.cluster_name, descriptor.name)
        except PlatformError as e:
            raise UpdateError(descriptor.name, f"cannot read current revision: {e}") from e

        revision_id = service.get('taskDefinition')
        if not revision_id:
            raise UpdateError(descriptor.name, "service has no active task definition")

        try:
            definition = self.platform.describe_task_definition(revision_id)
        except PlatformError as e:
            raise UpdateError(descriptor.name, f"cannot read task definition {revision_id}: {e}",
                              previous_revision_id=revision_id) from e

        spec = to_task_specification(definition, descriptor.name)
        spec.revision_id = revision_id
        return spec

    def update(self, descriptor):
        print(f"Updating service: {descriptor.name}")

        # Step 1-2: read the active revision (rollback target) and its contents
        current = self.current_specification(descriptor)
        previous_revision_id = current.revision_id

        # Step 3: same definition, new image
        try:
            new_definition = build_new_definition(current.definition, descriptor.name, descriptor.image_uri)
        except ValueError as e:
            raise UpdateError(descriptor.name, str(e), previous_revision_id=previous_revision_id) from e

        # Step 4-5: register, then adopt. Adoption is the only call that changes the service.
        try:
            new_revision_id = self.platform.register_task_definition(new_definition)
            print(f"New task definition registered: {new_revision_id}")
            self.platform.update_service(descriptor.cluster_name, descriptor.name, new_revision_id)
        except PlatformError as e:
            raise UpdateError(descriptor.name, str(e), previous_revision_id=previous_revision_id) from e

        print(f"[OK] Service {descriptor.name} updated ({previous_revision_id} -> {new_revision_id})")
        return ServiceResult(
            previous_revision_id=previous_revision_id,
            new_revision_id=new_revision_id,
            final_state='updated',
        )
