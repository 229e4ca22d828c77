"""
Kubernetes Payloads for Preview Applications

This module builds every object a preview application needs in a cluster:
- Namespace: one per application
- Deployment + Service: one per service container
- Secret: the files of a service, mounted into its container
- Image pull secret: registry credentials, shared by the application
- Traefik IngressRoute + Middlewares: expose the service under its route

All functions are pure: they build fresh objects from their inputs and never
talk to the cluster. Core objects use the kubernetes client models, the
Traefik custom resources are plain dicts for CustomObjectsApi.

The Secret and the Deployment of a service must be built from the same file
set, otherwise volume items reference keys the secret does not contain.
"""

from kubernetes import client
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import base64
import copy
import json
import logging

from pydantic import SecretStr

from ....config import ContainerConfig
from ....models import (
    DeployableService,
    DeploymentStrategy,
    EnvironmentVariable,
    RedeployAlways,
    RedeployNever,
    RedeployOnImageUpdate,
    ServiceConfig,
)
from ....utils.resource_naming import (
    APP_NAME_LABEL,
    IMAGE_LABEL,
    REPLICATED_ENV_LABEL,
    TRAEFIK_ENTRYPOINTS_ANNOTATION,
    ResourceNameCollision,
    get_deployment_name,
    get_image_pull_secret_name,
    get_ingress_route_name,
    get_persistent_volume_mount_path,
    get_persistent_volume_name,
    get_secret_keys,
    get_secret_name,
    get_secret_volume_name,
    get_standard_labels,
)
from ...traefik import MiddlewareSpec

logger = logging.getLogger(__name__)

TRAEFIK_API_VERSION = "traefik.containo.us/v1alpha1"


# =============================================================================
# Namespace
# =============================================================================

def create_namespace_manifest(app_name: str) -> client.V1Namespace:
    """
    Create Namespace manifest for an application.

    Every application lives in its own namespace named after the application.
    """
    return client.V1Namespace(
        api_version="v1",
        kind="Namespace",
        metadata=client.V1ObjectMeta(name=app_name)
    )


# =============================================================================
# Deployment
# =============================================================================

def create_deployment_manifest(
    app_name: str,
    service: DeployableService,
    container_config: ContainerConfig,
    use_image_pull_secret: bool,
    persistent_volume_claims: Mapping[str, client.V1PersistentVolumeClaim]
) -> client.V1Deployment:
    """
    Create Deployment manifest for a service.

    The deployment runs exactly one container. Files of the service are
    mounted from the service's secret (one volume per directory), attached
    persistent volume claims are mounted below /data/{app_name}.

    Args:
        app_name: Application name (also the namespace)
        service: Service to deploy
        container_config: Container resource settings
        use_image_pull_secret: Whether to reference the application's image pull secret
        persistent_volume_claims: Already provisioned claims keyed by mount subpath

    Returns:
        V1Deployment manifest

    Raises:
        ResourceNameCollision: If two files share a secret key or two mounts a volume name
    """
    labels = get_standard_labels(app_name, service.service_name, service.container_type)

    annotations = {IMAGE_LABEL: service.image}
    replicated_env = replicated_environment_variables_to_json(service.env)
    if replicated_env is not None:
        annotations[REPLICATED_ENV_LABEL] = replicated_env

    env = None
    if service.env is not None:
        env = [
            client.V1EnvVar(name=variable.key, value=variable.value.get_secret_value())
            for variable in service.env
        ]

    volumes, volume_mounts = _create_volumes(app_name, service, persistent_volume_claims)

    resources = None
    if container_config.memory_limit is not None:
        resources = client.V1ResourceRequirements(
            limits={"memory": str(container_config.memory_limit)}
        )

    container = client.V1Container(
        name=service.service_name,
        image=service.image,
        image_pull_policy="Always",
        env=env,
        volume_mounts=volume_mounts,
        ports=[client.V1ContainerPort(container_port=service.port)],
        resources=resources
    )

    pod_spec = client.V1PodSpec(
        containers=[container],
        volumes=volumes
    )

    if use_image_pull_secret:
        pod_spec.image_pull_secrets = [
            client.V1LocalObjectReference(name=get_image_pull_secret_name(app_name))
        ]

    deployment_name = get_deployment_name(app_name, service.service_name)
    logger.debug(f"Created deployment manifest {deployment_name} in namespace {app_name}")

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=deployment_name,
            namespace=app_name,
            labels=labels,
            annotations=annotations
        ),
        spec=client.V1DeploymentSpec(
            replicas=1,
            selector=client.V1LabelSelector(match_labels=dict(labels)),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    labels=dict(labels),
                    annotations=deployment_annotations(service.strategy)
                ),
                spec=pod_spec
            )
        )
    )


def _create_volumes(
    app_name: str,
    service: DeployableService,
    persistent_volume_claims: Mapping[str, client.V1PersistentVolumeClaim]
) -> Tuple[List[client.V1Volume], List[client.V1VolumeMount]]:
    volumes = []
    volume_mounts = []

    for mount_subpath in sorted(persistent_volume_claims):
        claim = persistent_volume_claims[mount_subpath]
        volume_name = get_persistent_volume_name(mount_subpath)

        volumes.append(client.V1Volume(
            name=volume_name,
            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                claim_name=(claim.metadata.name if claim.metadata else None) or ""
            )
        ))
        volume_mounts.append(client.V1VolumeMount(
            name=volume_name,
            mount_path=get_persistent_volume_mount_path(app_name, mount_subpath)
        ))

    # Without any claims storage is disabled and nothing is expected to be mounted
    if persistent_volume_claims:
        for declared_volume in service.declared_volumes:
            if declared_volume not in persistent_volume_claims:
                logger.warning(
                    f"No persistent volume claim for volume {declared_volume} of service "
                    f"{service.service_name} in {app_name}, it will not be mounted"
                )

    if service.files:
        secret_name = get_secret_name(app_name, service.service_name)
        secret_keys = get_secret_keys(service.files)
        secret_volumes = []
        secret_mounts = []

        for directory, paths in _group_by_directory(service.files).items():
            volume_name = get_secret_volume_name(directory)

            secret_volumes.append(client.V1Volume(
                name=volume_name,
                secret=client.V1SecretVolumeSource(
                    secret_name=secret_name,
                    items=[
                        client.V1KeyToPath(key=secret_keys[path], path=path.name)
                        for path in paths
                    ]
                )
            ))
            secret_mounts.append(client.V1VolumeMount(
                name=volume_name,
                mount_path=str(directory)
            ))

        volumes = secret_volumes + volumes
        volume_mounts = secret_mounts + volume_mounts

    _check_unique_volume_names(volumes, volume_mounts)
    return volumes, volume_mounts


def _check_unique_volume_names(
    volumes: List[client.V1Volume],
    volume_mounts: List[client.V1VolumeMount]
) -> None:
    # A pod spec with two volumes of one name is rejected by the API server
    mount_paths: Dict[str, str] = {}
    for volume, mount in zip(volumes, volume_mounts):
        if volume.name in mount_paths:
            raise ResourceNameCollision(
                f"Mounts {mount_paths[volume.name]} and {mount.mount_path} "
                f"both map to volume name '{volume.name}'"
            )
        mount_paths[volume.name] = mount.mount_path


def _group_by_directory(files: Mapping[Any, SecretStr]) -> Dict[PurePosixPath, List[PurePosixPath]]:
    directories: Dict[PurePosixPath, List[PurePosixPath]] = {}
    for path in sorted(PurePosixPath(p) for p in files):
        if not path.name:
            continue
        directories.setdefault(path.parent, []).append(path)
    return dict(sorted(directories.items()))


def deployment_annotations(strategy: DeploymentStrategy) -> Dict[str, str]:
    """
    Create the pod template annotations for a deployment strategy.

    The cluster recreates pods whenever the pod template changes, so:
    - RedeployOnImageUpdate pins the image digest (restart on new image)
    - RedeployNever adds nothing (template stays stable)
    - RedeployAlways adds the current time (restart on every deployment)
    """
    if isinstance(strategy, RedeployOnImageUpdate):
        return {"imageHash": strategy.image_id}
    if isinstance(strategy, RedeployNever):
        return {}
    if isinstance(strategy, RedeployAlways):
        return {"date": _utc_now().isoformat()}
    raise TypeError(f"Unknown deployment strategy: {strategy!r}")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def replicated_environment_variables_to_json(
    env: Optional[Sequence[EnvironmentVariable]]
) -> Optional[str]:
    """
    Serialize the replicated subset of an environment.

    Returns:
        JSON object keyed by variable name, or None if no variable is replicated
    """
    replicated = {
        variable.key: {
            "value": variable.value.get_secret_value(),
            "templated": variable.templated,
            "replicate": variable.replicate,
        }
        for variable in env or ()
        if variable.replicate
    }
    if not replicated:
        return None
    return json.dumps(replicated)


def create_deployment_replicas_manifest(
    app_name: str,
    service: ServiceConfig,
    replicas: int
) -> Dict[str, Any]:
    """
    Create a patch body that only changes the replica count of a deployment.

    Args:
        app_name: Application name (also the namespace)
        service: Service whose deployment is scaled
        replicas: Desired replica count

    Returns:
        Partial Deployment for patch_namespaced_deployment
    """
    labels = get_standard_labels(app_name, service.service_name, service.container_type)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": get_deployment_name(app_name, service.service_name),
            "namespace": app_name,
            "labels": labels,
        },
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": dict(labels)},
        },
    }


# =============================================================================
# Secrets
# =============================================================================

def create_secret_manifest(
    app_name: str,
    service_config: ServiceConfig,
    files: Mapping[Any, SecretStr]
) -> client.V1Secret:
    """
    Create Secret manifest holding all files of a service.

    Args:
        app_name: Application name (also the namespace)
        service_config: Service the files belong to
        files: File path -> content

    Returns:
        Opaque V1Secret, one base64 data entry per file

    Raises:
        ResourceNameCollision: If two files map to the same data key
    """
    contents = {PurePosixPath(path): content for path, content in files.items()}
    data = {
        key: base64.b64encode(
            contents[path].get_secret_value().encode("utf-8")
        ).decode("ascii")
        for path, key in get_secret_keys(contents).items()
    }

    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=get_secret_name(app_name, service_config.service_name),
            namespace=app_name,
            labels=get_standard_labels(
                app_name, service_config.service_name, service_config.container_type
            )
        ),
        type="Opaque",
        data=data
    )


def create_image_pull_secret_manifest(
    app_name: str,
    registries_and_credentials: Mapping[str, Tuple[str, SecretStr]]
) -> client.V1Secret:
    """
    Create the image pull secret of an application.

    Args:
        app_name: Application name (also the namespace)
        registries_and_credentials: Registry host -> (username, password)

    Returns:
        Immutable V1Secret of type kubernetes.io/dockerconfigjson
    """
    docker_config = {
        "auths": {
            registry: {
                "username": username,
                "password": password.get_secret_value(),
            }
            for registry, (username, password) in sorted(registries_and_credentials.items())
        }
    }
    encoded = base64.b64encode(json.dumps(docker_config).encode("utf-8")).decode("ascii")

    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=get_image_pull_secret_name(app_name),
            namespace=app_name,
            labels={APP_NAME_LABEL: app_name}
        ),
        immutable=True,
        type="kubernetes.io/dockerconfigjson",
        data={".dockerconfigjson": encoded}
    )


# =============================================================================
# Service and Traefik routing
# =============================================================================

def create_service_manifest(app_name: str, service_config: ServiceConfig) -> client.V1Service:
    """
    Create Service manifest for a service container.

    The Service is named after the service itself so that other containers
    of the application reach it by its plain name.
    """
    labels = get_standard_labels(
        app_name, service_config.service_name, service_config.container_type
    )

    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=service_config.service_name,
            namespace=app_name,
            labels=labels
        ),
        spec=client.V1ServiceSpec(
            ports=[
                client.V1ServicePort(
                    name=service_config.service_name,
                    port=service_config.port,
                    target_port=service_config.port
                )
            ],
            selector=dict(labels)
        )
    )


def create_ingress_route_manifest(app_name: str, service: DeployableService) -> Dict[str, Any]:
    """
    Create Traefik IngressRoute for a service.

    Every route references all of its middlewares by name; inline
    middlewares are created separately by create_middleware_manifests.
    Entry points and the TLS cert resolver of the route are kept when set.

    See https://doc.traefik.io/traefik/routing/providers/kubernetes-crd/
    """
    routes = [
        {
            "kind": "Rule",
            "match": route.rule,
            "services": [
                {
                    "kind": "Service",
                    "name": service.service_name,
                    "port": service.port,
                }
            ],
            "middlewares": [{"name": middleware.name} for middleware in route.middlewares],
        }
        for route in service.ingress_route.routes
    ]

    spec: Dict[str, Any] = {"routes": routes}
    if service.ingress_route.entry_points:
        spec["entryPoints"] = list(service.ingress_route.entry_points)
    if service.ingress_route.cert_resolver:
        spec["tls"] = {"certResolver": service.ingress_route.cert_resolver}

    return {
        "apiVersion": TRAEFIK_API_VERSION,
        "kind": "IngressRoute",
        "metadata": {
            "name": get_ingress_route_name(app_name, service.service_name),
            "namespace": app_name,
            "labels": get_standard_labels(
                app_name, service.service_name, service.container_type
            ),
            "annotations": {
                TRAEFIK_ENTRYPOINTS_ANNOTATION: "web",
            },
        },
        "spec": spec,
    }


def create_middleware_manifests(app_name: str, service: DeployableService) -> List[Dict[str, Any]]:
    """
    Create Traefik Middlewares for the inline middlewares of a service.

    Middleware references are skipped, they must already exist.
    """
    return [
        {
            "apiVersion": TRAEFIK_API_VERSION,
            "kind": "Middleware",
            "metadata": {
                "name": middleware.name,
                "namespace": app_name,
            },
            "spec": copy.deepcopy(middleware.spec),
        }
        for route in service.ingress_route.routes
        for middleware in route.middlewares
        if isinstance(middleware, MiddlewareSpec)
    ]
