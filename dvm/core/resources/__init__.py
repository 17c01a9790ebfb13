"""Polymorphic Get/List/Delete/Create over every resource kind."""

from dvm.core.resources.base import API_VERSION, BaseHandler, Handler, Resource, ResourceContext
from dvm.core.resources.registry import (
    ResourceRegistry,
    apply,
    create,
    default_registry,
    delete,
    get,
    list_resources,
    spec_from_document,
)

__all__ = [
    "API_VERSION",
    "BaseHandler",
    "Handler",
    "Resource",
    "ResourceContext",
    "ResourceRegistry",
    "apply",
    "create",
    "default_registry",
    "delete",
    "get",
    "list_resources",
    "spec_from_document",
]
