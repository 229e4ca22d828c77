"""
Kubernetes Orchestration Module

Manifest builders for preview applications running in Kubernetes:
- Namespace per application
- Deployment, Service and Secret per service
- Image pull secret per application
- Traefik IngressRoute and Middlewares per service

Applying the manifests to a cluster is up to the caller.
"""

from .payloads import (
    # Namespace
    create_namespace_manifest,
    # Deployment
    create_deployment_manifest,
    create_deployment_replicas_manifest,
    deployment_annotations,
    replicated_environment_variables_to_json,
    # Secrets
    create_secret_manifest,
    create_image_pull_secret_manifest,
    # Service and routing
    create_service_manifest,
    create_ingress_route_manifest,
    create_middleware_manifests,
)

__all__ = [
    # Namespace
    "create_namespace_manifest",
    # Deployment
    "create_deployment_manifest",
    "create_deployment_replicas_manifest",
    "deployment_annotations",
    "replicated_environment_variables_to_json",
    # Secrets
    "create_secret_manifest",
    "create_image_pull_secret_manifest",
    # Service and routing
    "create_service_manifest",
    "create_ingress_route_manifest",
    "create_middleware_manifests",
]
