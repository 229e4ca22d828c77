"""
Resource naming utilities for applications and their services.

Centralized functions for generating consistent identifiers across:
- Kubernetes object names (deployments, secrets, ingress routes, middlewares)
- Labels used to find and correlate objects of one application
- Volume and volume mount names inside a pod spec

The names are used as cross-references between objects (a volume mount
must carry the same name as the volume it refers to, a deployment references
the secret of its service), so every function here is deterministic.
"""

from pathlib import PurePosixPath
from typing import Dict, Iterable, Union

LABEL_PREFIX = "com.aixigo.preview.servant"

APP_NAME_LABEL = f"{LABEL_PREFIX}.app-name"
SERVICE_NAME_LABEL = f"{LABEL_PREFIX}.service-name"
CONTAINER_TYPE_LABEL = f"{LABEL_PREFIX}.container-type"
IMAGE_LABEL = f"{LABEL_PREFIX}.image"
REPLICATED_ENV_LABEL = f"{LABEL_PREFIX}.replicated-env"

TRAEFIK_ENTRYPOINTS_ANNOTATION = "traefik.ingress.kubernetes.io/router.entrypoints"

PathLike = Union[str, PurePosixPath]


class ResourceNameCollision(ValueError):
    """Two different inputs derive the same name inside one object."""
    pass


def get_deployment_name(app_name: str, service_name: str) -> str:
    """
    Get the Deployment name of a service.

    Example:
        >>> get_deployment_name("master", "db")
        "master-db-deployment"
    """
    return f"{app_name}-{service_name}-deployment"


def get_secret_name(app_name: str, service_name: str) -> str:
    """Get the name of the Secret that holds the files of a service."""
    return f"{app_name}-{service_name}-secret"


def get_ingress_route_name(app_name: str, service_name: str) -> str:
    return f"{app_name}-{service_name}-ingress-route"


def get_middleware_name(app_name: str, service_name: str) -> str:
    return f"{app_name}-{service_name}-middleware"


def get_image_pull_secret_name(app_name: str) -> str:
    """
    Get the name of the image pull secret of an application.

    There is one image pull secret per application namespace, shared by
    all of its deployments.
    """
    return f"{app_name}-image-pull-secret"


def get_standard_labels(
    app_name: str,
    service_name: str,
    container_type: str
) -> Dict[str, str]:
    """
    Get standard labels for workload objects of a service.

    Args:
        app_name: Application name (also the namespace)
        service_name: Service name
        container_type: Container type (instance, replica, ...)

    Returns:
        Dict of labels
    """
    return {
        APP_NAME_LABEL: app_name,
        SERVICE_NAME_LABEL: service_name,
        CONTAINER_TYPE_LABEL: str(container_type),
    }


def get_secret_volume_name(path: PathLike) -> str:
    """
    Get the volume name for a secret-backed directory.

    Root, "." and ".." components are skipped, the remaining components are
    joined with "-" and dots are replaced by "-".

    Examples:
        >>> get_secret_volume_name("/etc/nginx/conf.d")
        "etc-nginx-conf-d"
    """
    components = [
        part.replace(".", "-")
        for part in PurePosixPath(path).parts
        if part not in ("/", ".", "..")
    ]
    return "-".join(components)


def get_secret_key(path: PathLike) -> str:
    """
    Get the data key of a single file inside a Secret.

    Examples:
        >>> get_secret_key("/etc/nginx/nginx.conf")
        "nginx-conf"
    """
    return PurePosixPath(path).name.replace(".", "-")


def get_secret_keys(paths: Iterable[PathLike]) -> Dict[PurePosixPath, str]:
    """
    Get the secret data key of every file of a service.

    Keys only depend on the file name, so "/etc/a/app.conf" and
    "/etc/b/app.conf" (or "app.conf" and "app-conf") would share one entry
    of the secret and one of the files would be lost.

    Raises:
        ResourceNameCollision: If two paths map to the same key
    """
    keys: Dict[PurePosixPath, str] = {}
    owners: Dict[str, PurePosixPath] = {}
    for path in sorted(PurePosixPath(p) for p in paths):
        key = get_secret_key(path)
        if key in owners:
            raise ResourceNameCollision(
                f"Files {owners[key]} and {path} both map to secret key '{key}'"
            )
        owners[key] = path
        keys[path] = key
    return keys


def get_persistent_volume_name(mount_subpath: str) -> str:
    """
    Get the volume name for an attached persistent volume claim.

    Examples:
        >>> get_persistent_volume_name("/var/lib/data")
        "data-volume"
        >>> get_persistent_volume_name("")
        "default-volume"
    """
    last_segment = mount_subpath.split("/")[-1]
    return f"{last_segment or 'default'}-volume"


def get_persistent_volume_mount_path(app_name: str, mount_subpath: str) -> str:
    """
    Get the mount path of an attached persistent volume claim.

    Examples:
        >>> get_persistent_volume_mount_path("master", "/db")
        "/data/master/db"
    """
    return f"/data/{app_name}{mount_subpath}"
