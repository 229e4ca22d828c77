"""
Traefik Routing Model

Describes how external traffic reaches a service through Traefik:
- Route: a rendered router rule plus the middlewares applied to it
- Middleware: either a reference to an existing middleware (MiddlewareRef)
  or an inline definition that needs its own Middleware object (MiddlewareSpec)

Also converts IngressRoute custom objects read back from the cluster into
this model.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..utils.resource_naming import get_middleware_name

logger = logging.getLogger(__name__)


class MissingRouteData(Exception):
    """Raised when an IngressRoute object from the cluster has no usable routes."""
    pass


@dataclass(frozen=True)
class MiddlewareRef:
    """Reference to a middleware that already exists in the cluster"""
    name: str


@dataclass(frozen=True)
class MiddlewareSpec:
    """Inline middleware; its spec is passed to Traefik unchanged"""
    name: str
    spec: Dict[str, Any]


Middleware = Union[MiddlewareRef, MiddlewareSpec]


@dataclass(frozen=True)
class Route:
    rule: str  # Rendered Traefik matcher, e.g. PathPrefix(`/master/db/`)
    middlewares: Tuple[Middleware, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class IngressRoute:
    routes: Tuple[Route, ...] = field(default_factory=tuple)
    entry_points: Tuple[str, ...] = field(default_factory=tuple)  # Empty means the "web" annotation
    cert_resolver: Optional[str] = None  # ACME resolver of spec.tls

    @classmethod
    def with_rule(cls, rule: str) -> "IngressRoute":
        return cls(routes=(Route(rule=rule),))

    @classmethod
    def with_defaults(cls, app_name: str, service_name: str) -> "IngressRoute":
        """
        Default route of a service: /{app_name}/{service_name}/ with the
        prefix stripped before the request reaches the container.
        """
        prefix = _path_prefix(app_name, service_name)
        strip_prefix = MiddlewareSpec(
            name=get_middleware_name(app_name, service_name),
            spec={"stripPrefix": {"prefixes": [prefix]}},
        )
        return cls(routes=(Route(rule=f"PathPrefix(`{prefix}`)", middlewares=(strip_prefix,)),))

    def middleware_names(self) -> List[str]:
        return [m.name for route in self.routes for m in route.middlewares]


def path_prefix_rule(segments: Iterable[str]) -> str:
    """
    Render a PathPrefix matcher from path segments.

    Example:
        >>> path_prefix_rule(["master", "db"])
        "PathPrefix(`/master/db/`)"
    """
    return f"PathPrefix(`{_path_prefix(*segments)}`)"


def _path_prefix(*segments: str) -> str:
    return "/" + "".join(f"{segment}/" for segment in segments)


def ingress_route_from_k8s(obj: Dict[str, Any]) -> IngressRoute:
    """
    Convert an IngressRoute custom object into the routing model.

    Args:
        obj: IngressRoute as returned by CustomObjectsApi

    Returns:
        IngressRoute with one Route per entry of spec.routes; middlewares are
        returned as references since their bodies live in separate objects

    Raises:
        MissingRouteData: If the object has no routes, a route has no match rule
            or a middleware has no name
    """
    name = (obj.get("metadata") or {}).get("name", "<unnamed>")
    spec = obj.get("spec") or {}
    k8s_routes = spec.get("routes")
    if not k8s_routes:
        raise MissingRouteData(f"IngressRoute {name} does not contain any routes")

    routes = []
    for k8s_route in k8s_routes:
        rule = k8s_route.get("match")
        if not rule:
            raise MissingRouteData(f"IngressRoute {name} contains a route without match rule")

        middlewares = []
        for k8s_middleware in k8s_route.get("middlewares") or []:
            middleware_name = (k8s_middleware or {}).get("name")
            if not middleware_name:
                raise MissingRouteData(
                    f"IngressRoute {name} references a middleware without name"
                )
            middlewares.append(MiddlewareRef(name=middleware_name))
        routes.append(Route(rule=rule, middlewares=tuple(middlewares)))

    # Traefik spells the field entryPoints, older objects use entrypoints
    entry_points = spec.get("entryPoints") or spec.get("entrypoints") or []
    cert_resolver = (spec.get("tls") or {}).get("certResolver")

    logger.debug(f"Converted IngressRoute {name} with {len(routes)} route(s)")
    return IngressRoute(
        routes=tuple(routes),
        entry_points=tuple(entry_points),
        cert_resolver=cert_resolver,
    )
