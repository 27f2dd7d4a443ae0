"""helper functions for factoryqueue"""

import importlib
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Any


def import_from_path(path: str) -> Any:
    """Import an object given as :code:`module:attribute`, e.g. :code:`mypackage.api:fetch`.

    Raises
    ------
    ValueError
        If the path is not of the form :code:`module:attribute`.
    ImportError
        If the module can not be imported.
    AttributeError
        If the module has no such attribute.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"'{path}' is not of the form 'module:attribute'")
    target = importlib.import_module(module_name)
    for name in attribute.split("."):
        target = getattr(target, name)
    return target


def get_versions_string() -> str:
    """Returns the python and factoryqueue versions"""
    padding = 25
    try:
        package_version = version("factoryqueue")
    except PackageNotFoundError:
        package_version = "unset"
    version_string = f"{'python version:'.ljust(padding)}{sys.version.split()[0]}"
    version_string += f"\n{'factoryqueue version:'.ljust(padding)}{package_version}"
    return version_string
