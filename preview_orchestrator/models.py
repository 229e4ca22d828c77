"""
Deployment Models

In-memory description of the services of a preview application, fully
resolved and ready to be turned into Kubernetes objects:

1. ServiceConfig - what the user configured (image, port, env, files)
2. DeploymentStrategy - whether and when pods must be recreated
3. DeployableService - a ServiceConfig bundled with its strategy and routing

All models are immutable; manifest builders never modify them.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple, Union

from pydantic import SecretStr

from .services.traefik import IngressRoute


class ContainerType(str, Enum):
    """Role of a service container inside an application"""
    INSTANCE = "instance"                       # Deployed from the app's own configuration
    REPLICA = "replica"                         # Copied over from another application
    APP_COMPANION = "app-companion"             # Deployed once per application
    SERVICE_COMPANION = "service-companion"     # Deployed next to every matching service

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EnvironmentVariable:
    """A single environment variable with a secret-masked value"""
    key: str
    value: SecretStr
    templated: bool = False  # Value is a template resolved by the deployment controller
    replicate: bool = False  # Value is copied to replicas of this service in other apps

    @classmethod
    def with_replicated(cls, key: str, value: Union[str, SecretStr]) -> "EnvironmentVariable":
        return cls(key=key, value=_secret(value), replicate=True)

    @classmethod
    def with_templated(cls, key: str, value: Union[str, SecretStr]) -> "EnvironmentVariable":
        return cls(key=key, value=_secret(value), templated=True)


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration of one service container"""
    service_name: str
    image: str
    port: int = 80
    env: Optional[Tuple[EnvironmentVariable, ...]] = None
    # Absolute file path inside the container -> file content
    files: Optional[Dict[PurePosixPath, SecretStr]] = None
    container_type: ContainerType = ContainerType.INSTANCE


@dataclass(frozen=True)
class RedeployAlways:
    """Recreate pods on every deployment"""
    pass


@dataclass(frozen=True)
class RedeployNever:
    """Never recreate pods of an existing deployment"""
    pass


@dataclass(frozen=True)
class RedeployOnImageUpdate:
    """Recreate pods only when the resolved image digest changed"""
    image_id: str


DeploymentStrategy = Union[RedeployAlways, RedeployNever, RedeployOnImageUpdate]


@dataclass(frozen=True)
class DeployableService:
    """
    A service that is ready to be deployed.

    Bundles the service configuration with the deployment strategy, the
    Traefik route that exposes it and the mount paths of the persistent
    volumes it declares.
    """
    config: ServiceConfig
    strategy: DeploymentStrategy
    ingress_route: IngressRoute
    declared_volumes: Tuple[str, ...] = field(default_factory=tuple)  # Expected claim keys

    @property
    def service_name(self) -> str:
        return self.config.service_name

    @property
    def image(self) -> str:
        return self.config.image

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def env(self) -> Optional[Tuple[EnvironmentVariable, ...]]:
        return self.config.env

    @property
    def files(self) -> Optional[Dict[PurePosixPath, SecretStr]]:
        return self.config.files

    @property
    def container_type(self) -> ContainerType:
        return self.config.container_type


def _secret(value: Union[str, SecretStr]) -> SecretStr:
    return value if isinstance(value, SecretStr) else SecretStr(value)
