"""
Dependency / conflict checks for module installation.

Everything here is a pure function over module codes. Only direct
dependencies are checked: installing B that depends on A requires A to be
enabled already, nothing is installed on the caller's behalf.
"""
import logging
from typing import AbstractSet, Iterable, List, Set

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)


def missing_dependencies(installed_codes: AbstractSet[str], candidate) -> Set[str]:
    """Dependencies of ``candidate`` that are not in ``installed_codes``."""
    return set(candidate.dependencies) - set(installed_codes)


def conflicts(installed_codes: AbstractSet[str], candidate) -> Set[str]:
    """Codes in ``installed_codes`` that ``candidate`` declares a conflict with."""
    return set(candidate.conflicts_with) & set(installed_codes)


def find_dependents(module_code: str, installations: Iterable) -> List:
    """
    Installations whose master module lists ``module_code`` as a dependency.

    ``installations`` should already be narrowed to the enabled records of a
    single workspace; the record for ``module_code`` itself is skipped.
    """
    return [
        installation
        for installation in installations
        if installation.master_module.module_code != module_code
        and module_code in installation.master_module.dependencies
    ]


def is_newer_version(available: str, installed: str) -> bool:
    """
    True when the catalog version ``available`` supersedes ``installed``.

    Versions that do not parse as PEP 440 / semver are compared for
    inequality only.
    """
    if not available or available == installed:
        return False
    try:
        return Version(available) > Version(installed)
    except InvalidVersion:
        logger.debug("Non-standard module version pair %r / %r", available, installed)
        return available != installed
