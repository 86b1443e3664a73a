"""Parse release, stack and demo specs and manage operators with Helm, kind and minikube."""

__version__ = "0.1.0"