from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Annotated, Dict, Literal, Optional, Tuple, Union

from .utils.size_parsing import DEFAULT_STORAGE_SIZE, parse_memory_limit, parse_storage_size


class ContainerConfig(BaseModel):
    """
    Resource settings applied to every service container.

    Sizes may be given in human-readable form ("512m", "10G") and are
    parsed when the configuration is loaded.
    """
    memory_limit: Optional[int] = None  # Bytes; no limit when unset
    kubernetes_storage_size: str = DEFAULT_STORAGE_SIZE
    kubernetes_storage_enable: bool = False

    @field_validator('memory_limit', mode='before')
    @classmethod
    def validate_memory_limit(cls, v):
        if isinstance(v, str):
            return parse_memory_limit(v)
        return v

    @field_validator('kubernetes_storage_size', mode='before')
    @classmethod
    def validate_storage_size(cls, v):
        if isinstance(v, str):
            return parse_storage_size(v)
        return v


class KubernetesDownwardApiConfig(BaseModel):
    # File the downward API projects the pod labels into
    labels_path: str = Field(default="/run/podinfo/labels", alias="labelsPath")

    class Config:
        populate_by_name = True


class DockerRuntimeConfig(BaseModel):
    type: Literal["docker"] = "docker"


class KubernetesRuntimeConfig(BaseModel):
    type: Literal["kubernetes"] = "kubernetes"
    downward_api: KubernetesDownwardApiConfig = Field(
        default_factory=KubernetesDownwardApiConfig, alias="downwardApi"
    )

    class Config:
        populate_by_name = True


# Only the Kubernetes runtime carries downward API settings
RuntimeConfig = Annotated[
    Union[DockerRuntimeConfig, KubernetesRuntimeConfig],
    Field(discriminator="type"),
]


class RegistryCredentials(BaseModel):
    username: str
    password: SecretStr


class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # Runtime the applications are deployed to (docker or kubernetes)
    runtime: RuntimeConfig = Field(default_factory=DockerRuntimeConfig)

    # Container resources, e.g. CONTAINERS__MEMORY_LIMIT=512m
    containers: ContainerConfig = Field(default_factory=ContainerConfig)

    # Private registries keyed by host, e.g.
    # REGISTRIES='{"registry.example.com": {"username": "u", "password": "p"}}'
    registries: Dict[str, RegistryCredentials] = Field(default_factory=dict)

    @field_validator('runtime', mode='before')
    @classmethod
    def normalize_runtime_type(cls, v):
        # RUNTIME__TYPE=Kubernetes selects the kubernetes runtime
        if isinstance(v, dict) and isinstance(v.get("type"), str):
            return {**v, "type": v["type"].strip().lower()}
        return v

    @property
    def is_kubernetes_mode(self) -> bool:
        """Check if applications are deployed to Kubernetes."""
        return isinstance(self.runtime, KubernetesRuntimeConfig)

    @property
    def use_image_pull_secret(self) -> bool:
        """Deployments reference an image pull secret only when registries are configured."""
        return bool(self.registries)

    def registry_credentials(self) -> Dict[str, Tuple[str, SecretStr]]:
        """Registry -> (username, password) mapping for the image pull secret."""
        return {
            registry: (credentials.username, credentials.password)
            for registry, credentials in self.registries.items()
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()
