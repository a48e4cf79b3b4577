# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for endpoint introspection.

Management endpoints are plain classes whose public async methods are
turned into REST routes by api_base.register_endpoint.

Components:
    POST: Decorator to mark methods as HTTP POST.
    BaseEndpoint: Base class with introspection capabilities.

Example:
    Define an endpoint::

        from wopi_viewer.interface.endpoint_base import BaseEndpoint, POST

        class MyEndpoint(BaseEndpoint):
            name = "items"

            async def list(self) -> list[dict]:
                \"\"\"List all items.\"\"\"
                return [entry.to_dict() for _, entry in self.store.items()]

            @POST
            async def purge(self, dry_run: bool = False) -> dict:
                \"\"\"Remove expired items.\"\"\"
                return {"deleted": self.store.sweep()}

Note:
    BaseEndpoint.discover() scans wopi_viewer.entities for endpoint.py
    modules, one subpackage per entity.
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Callable
from typing import Any, get_type_hints

from pydantic import create_model

# Package to scan for entity endpoints
_ENTITIES_PACKAGE = "wopi_viewer.entities"


def POST(method: Callable) -> Callable:
    """Decorator to mark an endpoint method as POST.

    POST methods receive parameters via JSON request body
    instead of query parameters.
    """
    method._http_post = True  # type: ignore[attr-defined]
    return method


class BaseEndpoint:
    """Base class for all endpoints with introspection capabilities.

    Attributes:
        name: Endpoint name used in URL paths.
        store: Backing CapabilityStore.
    """

    name: str = ""

    def __init__(self, store: Any):
        """Initialize endpoint with store reference.

        Args:
            store: CapabilityStore the endpoint operates on.
        """
        self.store = store

    def get_methods(self) -> list[tuple[str, Callable]]:
        """Return all public async methods for API generation."""
        methods = []
        for method_name in dir(self):
            if method_name.startswith("_"):
                continue
            method = getattr(self, method_name)
            if callable(method) and inspect.iscoroutinefunction(method):
                methods.append((method_name, method))
        return methods

    def get_http_method(self, method_name: str) -> str:
        """Return "POST" if decorated with @POST, otherwise "GET"."""
        method = getattr(self, method_name)
        if getattr(method, "_http_post", False):
            return "POST"
        return "GET"

    def create_request_model(self, method_name: str) -> type:
        """Create Pydantic model from method signature.

        Used by API layer to validate and parse request bodies.

        Args:
            method_name: Name of the method to introspect.

        Returns:
            Dynamically created Pydantic model class.
        """
        method = getattr(self, method_name)
        sig = inspect.signature(method)

        try:
            hints = get_type_hints(method)
        except Exception:
            hints = {}

        fields = {}
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue

            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any

            if param.default is inspect.Parameter.empty:
                fields[param_name] = (annotation, ...)
            else:
                fields[param_name] = (annotation, param.default)

        model_name = f"{method_name.title().replace('_', '')}Request"
        return create_model(model_name, **fields)

    @classmethod
    def discover(cls) -> list[type[BaseEndpoint]]:
        """Autodiscover endpoint classes from entities/ subpackages.

        Returns:
            List of endpoint classes ready for instantiation.
        """
        endpoints: list[type[BaseEndpoint]] = []
        for module in cls._find_entity_modules(_ENTITIES_PACKAGE, "endpoint").values():
            endpoint_class = cls._get_class_from_module(module, "Endpoint")
            if endpoint_class:
                endpoints.append(endpoint_class)
        return endpoints

    @classmethod
    def _find_entity_modules(cls, base_package: str, module_name: str) -> dict[str, Any]:
        """Find entity modules in a package."""
        result: dict[str, Any] = {}
        package = importlib.import_module(base_package)

        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg:
                continue
            full_module_name = f"{base_package}.{name}.{module_name}"
            try:
                result[name] = importlib.import_module(full_module_name)
            except ModuleNotFoundError as e:
                if e.name != full_module_name:
                    raise
        return result

    @classmethod
    def _get_class_from_module(cls, module: Any, class_suffix: str) -> type | None:
        """Extract an endpoint class from module by suffix pattern."""
        for attr_name in dir(module):
            if attr_name.startswith("_"):
                continue
            obj = getattr(module, attr_name)
            if isinstance(obj, type) and attr_name.endswith(class_suffix):
                if attr_name in ("BaseEndpoint", "Endpoint"):
                    continue
                if not issubclass(obj, BaseEndpoint) or not obj.name:
                    continue
                return obj
        return None


__all__ = ["BaseEndpoint", "POST"]
