# stackcockpit

A library for working with a Kubernetes data platform made of operators,
releases, stacks and demos. It parses the YAML files that describe them,
validates user parameters, installs and uninstalls operators through the
`helm` command line, creates local clusters with `kind` or `minikube`, and
computes service endpoint URLs from Kubernetes objects.

## Installation

```
pip install stackcockpit
```

Creating local clusters needs `docker` and either `kind` or `minikube` on the
`PATH`. Installing or uninstalling releases needs `helm`.

## Parameters

Stacks and demos take parameters written as `NAME=VALUE`
(`stackcockpit.params`):

```python
from stackcockpit.params import Parameter, into_params, parse_raw_parameter

raw = parse_raw_parameter("param=value")
print(raw.name, raw.value)  # param value

valid = [Parameter(name="adminUser", description="Admin user", default="admin")]
print(into_params("adminUser=alice", valid))  # {'adminUser': 'alice'}
print(into_params([], valid))                 # {'adminUser': 'admin'}
```

`into_params` accepts a space separated string or a list of strings. A
malformed entry raises `RawParameterParseError` (its `kind` is a
`RawParameterErrorKind`); when going through `into_params` it is wrapped in
`IntoParametersError`. A name that is not declared raises
`InvalidParameterError`.

## Operators

```python
from stackcockpit.operator import parse_operator_spec, operator_spec

spec = parse_operator_spec("zookeeper=1.2.3")
print(spec.helm_name())       # zookeeper-operator
print(spec.helm_repo_name())  # stackable-stable
spec.install("stackable-operators")
```

Versions ending in `-nightly` or `-dev`, or no version at all, map to the
`stackable-dev` repository; versions containing `-pr` to `stackable-test`;
any other version to `stackable-stable`. `operator_spec(name, version)` and
specs with a version only accept the operators listed in `VALID_OPERATORS`.

## Helm

`stackcockpit.helm` runs the `helm` binary:

- `install_release_from_repo` installs a chart unless the release exists. If
  it exists, it returns `ReleaseAlreadyInstalledUnspecified` (no version
  requested) or `ReleaseAlreadyInstalledWithVersion` (same version), and
  raises `ReleaseAlreadyInstalledError` for a different version. A fresh
  install returns `ReleaseInstalled`.
- `uninstall_release` returns `ReleaseUninstalled` or `ReleaseNotInstalled`.
- `check_release_exists`, `list_releases`, `get_release` and `add_repo`.
- `helm_index_url` and `get_helm_index` fetch and parse a repository's
  `index.yaml` into a `HelmRepo`.

All failures are subclasses of `HelmError`.

## Releases, stacks and demos

```python
from stackcockpit.release import parse_releases
from stackcockpit.stack import parse_stacks
from stackcockpit.demo import parse_demos

with open("releases.yaml") as f:
    releases = parse_releases(f.read())
with open("stacks.yaml") as f:
    stacks = parse_stacks(f.read())
with open("demos.yaml") as f:
    demos = parse_demos(f.read())

demo = demos["trino-taxi-data"]
demo.check_prerequisites("default")
stack = demo.stack_spec(stacks)
stack.check_prerequisites("default")
stack.install_release(releases, "stackable-operators", "default", False)

stack_values = stack.stack_parameters(["adminUser=alice"])
demo_values = demo.demo_parameters([])
```

`ReleaseSpec.filter_products(include, exclude)` selects products;
`ReleaseSpec.install` and `ReleaseSpec.uninstall` act on each of them through
Helm. `check_prerequisites` raises `UnsupportedNamespaceError` (stacks) or
`DemoUnsupportedNamespaceError` (demos) when the namespace is not among the
supported ones; an empty list allows any namespace. An unknown release raises
`NoSuchReleaseError`, an unknown stack `NoSuchStackError`.

## Local clusters

```python
from stackcockpit.kind import KindCluster, KindClusterConfig
from stackcockpit.minikube import MinikubeCluster

print(KindClusterConfig.create(3, 1).to_yaml())
KindCluster(node_count=2, cp_node_count=1).create_if_not_exists()
MinikubeCluster(node_count=2).create_if_not_exists()
```

Both check that the needed binaries are present and that Docker is running
(`stackcockpit.docker.check_if_docker_is_running`), and raise
`KindClusterError` or `MinikubeClusterError` otherwise. The default cluster
name is `stackable-data-platform`.

## Templating

Manifests are rendered as Jinja templates with undefined variables treated as
errors. Two functions are available inside them: `random_password()` (32
alphanumeric characters) and `bcrypt(password=...)`.

```python
from stackcockpit.templating import render

print(render("user: {{ user }}", {"user": "admin"}))
```

Rendering failures raise `TemplateError`.

## Service endpoints and stacklets

`stackcockpit.service` works on services, Endpoints objects and nodes in their
Kubernetes JSON form. `service_endpoint_urls` handles `NodePort` and
`LoadBalancer` services and returns a mapping from endpoint name to URL.
`endpoint_url` picks `http://` for `http`, `ui`, `airflow`, `superset` and
`http-*` ports, `https://` for `https` and `https-*` ports, and no scheme
otherwise.

`stackcockpit.stacklet` holds the `Stacklet` record and
`build_products_gvk_list`, which maps product names to the custom resource
kinds of their clusters. `stackcockpit.conditions.plain_conditions` reduces
status conditions to `DisplayCondition` values. `stackcockpit.labels` builds
label selectors for products.

## What it does not do

- It has no Kubernetes API client: it does not list stacklets, services or
  nodes from a cluster, create namespaces, or apply plain YAML manifests. The
  service and stacklet helpers work on objects you fetch yourself.
- `check_prerequisites` only checks the namespace; resource requests are
  parsed but not compared with cluster capacity.
- It does not download or install the manifests of stacks and demos; it
  validates their parameters and installs the operators of their release.
- It has no command line program of its own.