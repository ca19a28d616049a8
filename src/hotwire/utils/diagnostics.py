from typing import Optional
from pydantic import BaseModel

class Diagnostic(BaseModel):
    """
    Standardized report for discovery, loading and registration issues.
    """
    file_path: str
    error_code: str
    message: str
    severity: str = "error" # 'error', 'warning', 'critical'
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message} (at {self.file_path})"


class HotwireError(Exception):
    """Base class for framework errors."""


class ConfigurationError(HotwireError):
    """
    A static configuration defect (duplicate identifiers, missing requirements).
    The runtime treats these as fatal.
    """


class DuplicateDefinitionError(ConfigurationError):
    def __init__(self, identifier: str, file_path: Optional[str] = None):
        self.identifier = identifier
        self.file_path = file_path
        loc = f" (at {file_path})" if file_path else ""
        super().__init__(f"Duplicate command identifier found: {identifier}{loc}")


class MissingRequirementError(ConfigurationError):
    def __init__(self, component: str, missing: list[str]):
        self.component = component
        self.missing = missing
        super().__init__(
            f"Component '{component}' requires unregistered component(s): {', '.join(missing)}"
        )


class ComponentRegistrationError(HotwireError, ValueError):
    """Raised when a component identity is registered twice."""
