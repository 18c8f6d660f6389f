"""Domain errors raised by the module registry."""
from enum import Enum

from rest_framework import status


class ModuleErrorCode(str, Enum):
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    MODULE_NOT_PRODUCTION_READY = "MODULE_NOT_PRODUCTION_READY"
    MISSING_DEPENDENCIES = "MISSING_DEPENDENCIES"
    MODULE_CONFLICT = "MODULE_CONFLICT"
    HAS_DEPENDENTS = "HAS_DEPENDENTS"
    DUPLICATE_INSTALL = "DUPLICATE_INSTALL"
    PARTIAL_NOT_FOUND = "PARTIAL_NOT_FOUND"
    TENANT_CONTEXT_MISSING = "TENANT_CONTEXT_MISSING"
    MODULE_NOT_INSTALLED = "MODULE_NOT_INSTALLED"
    MODULE_CODE_EXISTS = "MODULE_CODE_EXISTS"
    MODULE_IN_USE = "MODULE_IN_USE"
    INVALID_MODULE_DEFINITION = "INVALID_MODULE_DEFINITION"
    MODULE_NOT_ACTIVATABLE = "MODULE_NOT_ACTIVATABLE"
    UPDATE_NOT_AVAILABLE = "UPDATE_NOT_AVAILABLE"
    WORKSPACE_MISMATCH = "WORKSPACE_MISMATCH"


HTTP_STATUS_BY_CODE = {
    ModuleErrorCode.MODULE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ModuleErrorCode.MODULE_NOT_INSTALLED: status.HTTP_404_NOT_FOUND,
    ModuleErrorCode.MODULE_CONFLICT: status.HTTP_409_CONFLICT,
    ModuleErrorCode.HAS_DEPENDENTS: status.HTTP_409_CONFLICT,
    ModuleErrorCode.MODULE_CODE_EXISTS: status.HTTP_409_CONFLICT,
    ModuleErrorCode.MODULE_IN_USE: status.HTTP_409_CONFLICT,
    ModuleErrorCode.WORKSPACE_MISMATCH: status.HTTP_403_FORBIDDEN,
}


class ModuleError(Exception):
    """
    A deterministic validation outcome of a catalog or lifecycle operation.

    ``details`` carries the offending module codes (missing dependencies,
    conflicts), dependent module names or unresolved ids, for display.
    """

    def __init__(self, code: ModuleErrorCode, message: str, details=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = sorted(details) if details else []

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_CODE.get(self.code, status.HTTP_400_BAD_REQUEST)

    def __str__(self):
        if self.details:
            return f"{self.code.value}: {self.message} [{', '.join(map(str, self.details))}]"
        return f"{self.code.value}: {self.message}"
