"""
Preview Orchestrator

Turns fully resolved preview application services into the Kubernetes and
Traefik objects that run and expose them.
"""

__version__ = "0.1.0"
