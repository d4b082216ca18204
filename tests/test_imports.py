"""Every module of the package imports cleanly."""

import importlib
import pkgutil

import pytest

import komuniteti


def all_modules():
    prefix = komuniteti.__name__ + "."
    return sorted(name for _, name, _ in pkgutil.walk_packages(komuniteti.__path__, prefix))


@pytest.mark.parametrize("module_name", all_modules())
def test_module_imports(module_name):
    assert importlib.import_module(module_name) is not None


def test_service_layer_exports():
    from komuniteti.services import base

    assert {"ServiceResult", "ServiceError", "OperationTracker"} <= set(base.__all__)
