"""Endpoint URLs of NodePort and LoadBalancer services.

Services, endpoints and nodes are handled in their Kubernetes JSON form.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

log = logging.getLogger(__name__)

_HTTP_PORT_NAMES = ("http", "ui", "airflow", "superset")


class ServiceError(Exception):
    """The endpoints of a service could not be determined."""


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _object_name(obj: Mapping[str, Any], what: str) -> str:
    name = _metadata(obj).get("name")
    if name is None:
        raise ServiceError(f"{what} has no name")
    return name


def _trim_start_matches(text: str, prefix: str) -> str:
    if not prefix:
        return text
    while text.startswith(prefix):
        text = text[len(prefix):]
    return text


def _endpoint_name(service_name: str, referenced_object_name: str, port_name: str) -> str:
    trimmed = _trim_start_matches(service_name, referenced_object_name)
    trimmed = _trim_start_matches(trimmed, "-")
    return port_name if not trimmed else f"{trimmed}-{port_name}"


def _port_name(service_port: Mapping[str, Any], port: int) -> str:
    name = service_port.get("name")
    return str(port) if name is None else name


def endpoint_url(endpoint_host: str, endpoint_port: int, port_name: str) -> str:
    """Return the URL of an endpoint, with a scheme guessed from the port name."""
    if port_name in _HTTP_PORT_NAMES or port_name.startswith("http-"):
        return f"http://{endpoint_host}:{endpoint_port}"
    if port_name == "https" or port_name.startswith("https-"):
        return f"https://{endpoint_host}:{endpoint_port}"
    return f"{endpoint_host}:{endpoint_port}"


def node_name_ip_mapping(nodes: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Map each node name to its ExternalIP, or its InternalIP if it has none."""
    result: dict[str, str] = {}
    for node in nodes:
        node_name = _object_name(node, "node")
        status = node.get("status")
        if status is None:
            raise ServiceError(f"failed to get status of node {node_name}")
        addresses = status.get("addresses")
        if addresses is None:
            raise ServiceError(f"failed to get address of node {node_name}")
        candidates = [
            address
            for address in addresses
            if address.get("type") in ("InternalIP", "ExternalIP")
        ]
        if not candidates:
            raise ServiceError(
                f"Could not find an ExternalIP or InternalIP for node {node_name}"
            )
        # "ExternalIP" sorts before "InternalIP", and is the one preferred.
        result[node_name] = min(candidates, key=lambda a: a["type"])["address"]
    return result


def _endpoint_node_name(service_name: str, endpoints: Mapping[str, Any] | None) -> str | None:
    prefix = f"Could not determine the node the endpoint {service_name} is running on because"
    subsets = (endpoints or {}).get("subsets")
    if subsets is None:
        log.warning(
            "%s the endpoint has no subset. Is the service %s up and running?",
            prefix,
            service_name,
        )
        return None
    if len(subsets) != 1:
        log.warning("%s endpoints consists of %d subsets", prefix, len(subsets))
        return None
    addresses = subsets[0].get("addresses")
    if addresses is None:
        log.warning(
            "%s subset had no addresses. Is the service %s up and running?",
            prefix,
            service_name,
        )
        return None
    if not addresses:
        log.warning("%s the subset had no addresses", prefix)
        return None
    node_name = addresses[0].get("nodeName")
    if node_name is None:
        log.warning("%s the address of the subset didn't had a node name", prefix)
    return node_name


def endpoint_urls_for_nodeport(
    service_name: str,
    service_spec: Mapping[str, Any],
    endpoints: Mapping[str, Any] | None,
    node_ips: Mapping[str, str],
    referenced_object_name: str,
) -> dict[str, str]:
    """Return the endpoint URLs of a NodePort service, keyed by endpoint name."""
    node_name = _endpoint_node_name(service_name, endpoints)
    if node_name is None:
        return {}

    node_ip = node_ips.get(node_name)
    if node_ip is None:
        raise ServiceError(f"failed to find node {node_name} in node_name_ip_mapping")

    result: dict[str, str] = {}
    for service_port in service_spec.get("ports") or []:
        node_port = service_port.get("nodePort")
        if node_port is None:
            log.debug(
                "Could not get endpoint_url as service %s has no nodePort", service_name
            )
            continue
        port_name = _port_name(service_port, service_port.get("port"))
        name = _endpoint_name(service_name, referenced_object_name, port_name)
        result[name] = endpoint_url(node_ip, node_port, port_name)
    return result


def endpoint_urls_for_loadbalancer(
    service_name: str,
    service: Mapping[str, Any],
    service_spec: Mapping[str, Any],
    referenced_object_name: str,
) -> dict[str, str]:
    """Return the endpoint URLs of a LoadBalancer service, keyed by endpoint name."""
    ingress = ((service.get("status") or {}).get("loadBalancer") or {}).get("ingress")
    if not ingress:
        return {}
    first = ingress[0]
    lb_host = first.get("hostname")
    if lb_host is None:
        lb_host = first.get("ip")
    if lb_host is None:
        return {}

    result: dict[str, str] = {}
    for service_port in service_spec.get("ports") or []:
        lb_port = service_port.get("port")
        port_name = _port_name(service_port, lb_port)
        name = _endpoint_name(service_name, referenced_object_name, port_name)
        result[name] = endpoint_url(lb_host, lb_port, port_name)
    return result


def service_endpoint_urls(
    service: Mapping[str, Any],
    referenced_object_name: str,
    endpoints: Mapping[str, Any] | None = None,
    nodes: Iterable[Mapping[str, Any]] = (),
) -> dict[str, str]:
    """Return the endpoint URLs of a service.

    `endpoints` is the Endpoints object of the service and `nodes` the cluster
    nodes; both are only consulted for NodePort services.
    """
    service_name = _object_name(service, "service")
    if _metadata(service).get("namespace") is None:
        raise ServiceError(f"missing namespace for service '{service_name}'")
    service_spec = service.get("spec")
    if service_spec is None:
        raise ServiceError(f"missing spec for service '{service_name}'")

    service_type = service_spec.get("type")
    if service_type == "NodePort":
        if _endpoint_node_name(service_name, endpoints) is None:
            return {}
        return endpoint_urls_for_nodeport(
            service_name,
            service_spec,
            endpoints,
            node_name_ip_mapping(nodes),
            referenced_object_name,
        )
    if service_type == "LoadBalancer":
        return endpoint_urls_for_loadbalancer(
            service_name, service, service_spec, referenced_object_name
        )
    return {}