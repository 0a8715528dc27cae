#!/usr/bin/env python3
"""
Service stabilization.
Blocks until a service's running task count matches its desired count, within a bound.
"""

import time

from ..errors import PlatformError, StabilizationTimeout


class DeploymentWaiter:

    def __init__(self, platform, max_attempts=40, delay_seconds=15, sleep=time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.platform = platform
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    @classmethod
    def from_config(cls, platform, config, sleep=time.sleep):
        settings = config.get('stabilization', {})
        return cls(
            platform,
            max_attempts=settings.get('max_attempts', 40),
            delay_seconds=settings.get('delay_seconds', 15),
            sleep=sleep,
        )

    def wait(self, descriptor):
        """Returns the number of observations taken. Raises StabilizationTimeout."""
        print(f"Waiting for {descriptor.name} deployment to complete...")

        if self.platform.supports_native_wait:
            try:
                self.platform.wait_service_stable(
                    descriptor.cluster_name, descriptor.name, self.delay_seconds, self.max_attempts
                )
            except PlatformError as e:
                print(f"WARNING: {e}")
                running, desired = self._read_counts(descriptor)
                raise StabilizationTimeout(descriptor.name, self.max_attempts, running, desired) from e

            running, desired = self._read_counts(descriptor)
            if running is not None and running == desired:
                print(f"[OK] {descriptor.name} deployment completed successfully ({running}/{desired} tasks running)")
                return 1
            raise StabilizationTimeout(descriptor.name, self.max_attempts, running, desired)

        running = desired = None
        for attempt in range(1, self.max_attempts + 1):
            running, desired = self._read_counts(descriptor)
            if running is not None and running == desired:
                print(f"[OK] {descriptor.name} deployment completed successfully ({running}/{desired} tasks running)")
                return attempt
            if attempt < self.max_attempts:
                self.sleep(self.delay_seconds)

        raise StabilizationTimeout(descriptor.name, self.max_attempts, running, desired)

    def _read_counts(self, descriptor):
        try:
            service = self.platform.describe_service(descriptor.cluster_name, descriptor.name)
        except PlatformError as e:
            print(f"WARNING: Could not read task counts for {descriptor.name}: {e}")
            return None, None
        return service.get('runningCount'), service.get('desiredCount')
