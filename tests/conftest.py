"""
Test configuration and fixtures for pytest.

Fixtures provide sample services, route definitions and persistent volume
claims shared by the manifest tests.
"""

import sys
import os
from pathlib import Path, PurePosixPath
import pytest

# Add the project root to sys.path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    # Set test environment variables BEFORE any settings are loaded
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["RUNTIME__TYPE"] = "kubernetes"

    from preview_orchestrator.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "kubernetes: mark test as building Kubernetes objects")


@pytest.fixture
def app_name():
    return "master"


@pytest.fixture
def db_config():
    """ServiceConfig for a MariaDB service without env or files."""
    from preview_orchestrator.models import ServiceConfig

    return ServiceConfig(service_name="db", image="docker.io/library/mariadb:10.3.17")


@pytest.fixture
def make_service(app_name):
    """Factory for DeployableService instances with the default route."""
    from preview_orchestrator.models import DeployableService, RedeployAlways
    from preview_orchestrator.services.traefik import IngressRoute

    def _make(config, strategy=None, ingress_route=None, declared_volumes=()):
        return DeployableService(
            config=config,
            strategy=strategy if strategy is not None else RedeployAlways(),
            ingress_route=ingress_route or IngressRoute.with_defaults(app_name, config.service_name),
            declared_volumes=tuple(declared_volumes),
        )

    return _make


@pytest.fixture
def nginx_files():
    """Two files in one directory and one in another."""
    from pydantic import SecretStr

    return {
        PurePosixPath("/etc/nginx/nginx.conf"): SecretStr("worker_processes 1;\n"),
        PurePosixPath("/etc/nginx/mime.types"): SecretStr("types {}\n"),
        PurePosixPath("/usr/share/nginx/html/index.html"): SecretStr("<h1>Hello</h1>"),
    }


@pytest.fixture
def make_pvc():
    """Factory for persistent volume claims as returned by the cluster."""
    pytest.importorskip("kubernetes")
    from kubernetes import client

    def _make(name):
        return client.V1PersistentVolumeClaim(
            metadata=client.V1ObjectMeta(name=name, namespace="master")
        )

    return _make
