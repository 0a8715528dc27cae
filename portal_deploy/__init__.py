"""
Container deployment orchestrator for the python-learning-portal services.

Run with `portal-deploy` or `python3 -m portal_deploy.deployment.orchestrator`.
"""

__version__ = '1.0.0'
