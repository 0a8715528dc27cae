#!/usr/bin/env python3
"""
Health verification.
Probes service health endpoints during a deployment (bounded retries) and for
the standalone healthcheck command.
"""

import json
import time

import httpx

from .utils import get_service_url, service_names
from ..errors import HealthCheckFailed, PlatformError
from ..models import Environment


class HttpProbe:
    """GET <base_url><path>; healthy on HTTP 200."""

    def __init__(self, path='/health', timeout=10.0, client=None):
        self.path = path
        self.timeout = timeout
        self.client = client

    def get(self, url):
        if self.client is not None:
            return self.client.get(url, timeout=self.timeout)
        return httpx.get(url, timeout=self.timeout)

    def status_code(self, base_url, path=None):
        """HTTP status code, or None when the endpoint could not be reached."""
        url = base_url.rstrip('/') + (self.path if path is None else path)
        try:
            return self.get(url).status_code
        except httpx.HTTPError:
            return None

    def __call__(self, base_url):
        return self.status_code(base_url) == 200


class HealthVerifier:

    def __init__(self, probe, max_attempts=30, delay_seconds=10, sleep=time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.probe = probe
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    @classmethod
    def from_config(cls, config, probe=None, sleep=time.sleep):
        settings = config.get('health_check', {})
        if probe is None:
            probe = HttpProbe(settings.get('path', '/health'), settings.get('timeout_seconds', 10))
        return cls(
            probe,
            max_attempts=settings.get('max_attempts', 30),
            delay_seconds=settings.get('delay_seconds', 10),
            sleep=sleep,
        )

    def verify(self, base_url):
        """Returns the attempt that succeeded. Raises HealthCheckFailed when all attempts fail."""
        print(f"Performing health check on {base_url}")

        for attempt in range(1, self.max_attempts + 1):
            if self.probe(base_url):
                print(f"[OK] Health check passed on attempt {attempt}")
                return attempt

            print(f"WARNING: Health check failed on attempt {attempt}/{self.max_attempts}")
            if attempt < self.max_attempts:
                self.sleep(self.delay_seconds)

        raise HealthCheckFailed(base_url, self.max_attempts)


# Standalone health check

def check_service_health(probe, service_name, service_url):
    print(f"Checking health of {service_name} at {service_url}")
    code = probe.status_code(service_url)
    if code == 200:
        print(f"[OK] {service_name} is healthy (HTTP {code})")
        return True
    print(f"ERROR: {service_name} is unhealthy (HTTP {code if code is not None else '000'})")
    return False


def check_service_status(probe, service_name, service_url):
    """Print the JSON body of the service's health endpoint."""
    print(f"Getting detailed status for {service_name}")
    url = service_url.rstrip('/') + probe.path
    try:
        response = probe.get(url)
        body = response.json()
        print("Response: " + json.dumps(body, indent=2))
    except httpx.HTTPError:
        print("Response: " + json.dumps({'status': 'error', 'message': 'Unable to connect'}))
    except ValueError:
        print(f"Raw response: {response.text}")
    print()


def check_dependency(probe, name, url):
    """Database / redis connectivity as reported by the api service. Informational only."""
    print(f"Checking {name} connectivity")
    status = 'unknown'
    try:
        status = probe.get(url).json().get('status', 'unknown')
    except (httpx.HTTPError, ValueError, AttributeError):
        status = 'error'

    if status == 'ok':
        print(f"[OK] {name} is connected and healthy")
        return True
    print(f"ERROR: {name} connection failed (status: {status})")
    return False


def check_platform_service(platform, cluster, service_name):
    """Running/desired task counts for a service. Informational only."""
    print(f"Checking ECS service: {service_name}")
    try:
        info = platform.describe_service(cluster, service_name)
    except PlatformError as e:
        print(f"ERROR: ECS service {service_name} could not be described: {e}")
        return False

    running = info.get('runningCount', 0)
    desired = info.get('desiredCount', 0)
    status = info.get('status', 'UNKNOWN')
    if status == 'ACTIVE' and running == desired:
        print(f"[OK] ECS service {service_name} is healthy ({running}/{desired} tasks running)")
        return True
    print(f"ERROR: ECS service {service_name} is not healthy")
    print(f"Status: {status}, Running: {running}, Desired: {desired}")
    return False


def run_healthcheck(config, environment, service='all', probe=None, platform=None):
    """
    Check one service or all of them.
    Returns the list of services whose health endpoint failed.
    """
    environment = Environment(environment)
    if probe is None:
        settings = config.get('health_check', {})
        probe = HttpProbe(settings.get('path', '/health'), settings.get('timeout_seconds', 10))

    names = service_names(config) if service == 'all' else [service]
    cluster = f"{config['project_name']}-{environment.value}"
    failed = []

    for name in names:
        service_url = get_service_url(config, environment, name)
        if not check_service_health(probe, name, service_url):
            failed.append(name)
            check_service_status(probe, name, service_url)
        elif service != 'all':
            check_service_status(probe, name, service_url)

        if environment == Environment.LOCAL or platform is None:
            print(f"WARNING: Skipping ECS check for {name}")
        else:
            check_platform_service(platform, cluster, name)
        print()

    if service == 'all':
        api_url = get_service_url(config, environment, config['primary_service'])
        check_dependency(probe, 'Database', f"{api_url}/health/db")
        check_dependency(probe, 'Redis', f"{api_url}/health/redis")

    return failed
