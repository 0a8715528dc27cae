"""
Configuration and validation package.

This package contains modules for validating the deployment configuration
and the environment inputs a deployment needs.
"""

__all__ = ['validation']
