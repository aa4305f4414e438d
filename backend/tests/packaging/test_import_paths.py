"""Packaging sanity checks for import paths.

Ensures the namespace packages installed from pyproject.toml import cleanly
and expose the entry points the app and tests rely on.
"""
from importlib import import_module


def test_import_academics_operations():
    mod = import_module("backend.academics.operations")
    assert hasattr(mod, "AcademicOperations")


def test_import_web_app():
    mod = import_module("backend.web.main")
    assert hasattr(mod, "app")
    assert hasattr(mod, "set_identity_resolver")


def test_import_identity_resolver():
    mod = import_module("backend.identity_access.resolver")
    assert hasattr(mod, "KeycloakIdentityResolver")
