"""
Orchestration Module

Runtime specific code for deploying preview applications.

Architecture:
- kubernetes: Manifest builders for Kubernetes and Traefik

Usage:
    from preview_orchestrator.services.orchestration.kubernetes import create_deployment_manifest
"""
