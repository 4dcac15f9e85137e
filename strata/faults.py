"""
StrataFaults - Structured fault taxonomy for template composition.

Defines:
- Severity levels and fault domains
- Fault base class (structured fault objects)
- Template faults (source read, parse, not found, execution)
- Configuration faults
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines logging level and whether the host should abort.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.TEMPLATE = FaultDomain("template", "Template discovery, compilation and rendering")
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault carries a stable machine-readable code, a human-readable
    message, a domain and a severity. Hosts translate faults into status
    codes or fallback pages; the engine only raises them.

    Attributes:
        code: Stable machine-readable identifier (e.g., "TEMPLATE_NOT_FOUND")
        message: Human-readable summary
        domain: Fault domain
        severity: Fault severity
        public: Whether safe to expose to client
        metadata: Additional context data
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        domain: FaultDomain,
        severity: Severity = Severity.ERROR,
        public: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain
        self.severity = severity
        self.public = public
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize fault to dictionary for logging."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "public": self.public,
            "metadata": self.metadata,
        }


# ============================================================================
# TEMPLATE Faults
# ============================================================================

class TemplateFault(Fault):
    """Base class for template faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.TEMPLATE,
            severity=severity,
            public=False,
            metadata=metadata,
        )


class SourceReadFault(TemplateFault):
    """A template source could not be listed or read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="TEMPLATE_SOURCE_READ",
            message=f"Cannot read template source '{path}': {reason}",
            severity=Severity.FATAL,
            metadata={"path": path, "reason": reason},
        )
        self.path = path


class TemplateParseFault(TemplateFault):
    """A template source has invalid syntax."""

    def __init__(self, name: str, reason: str, lineno: Optional[int] = None):
        location = f"{name}:{lineno}" if lineno else name
        super().__init__(
            code="TEMPLATE_PARSE",
            message=f"Cannot parse template '{location}': {reason}",
            severity=Severity.FATAL,
            metadata={"name": name, "reason": reason, "lineno": lineno},
        )
        self.name = name
        self.lineno = lineno


class TemplateNotFoundFault(TemplateFault):
    """The requested page name has no compiled template."""

    def __init__(self, name: str):
        super().__init__(
            code="TEMPLATE_NOT_FOUND",
            message=f"Template '{name}' not found",
            metadata={"name": name},
        )
        self.name = name


class TemplateExecutionFault(TemplateFault):
    """Rendering failed while binding data or calling a template function."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            code="TEMPLATE_EXECUTION",
            message=f"Error executing template '{name}': {reason}",
            metadata={"name": name, "reason": reason},
        )
        self.name = name


class DuplicateTemplateFault(TemplateFault):
    """Two source entries resolve to the same template name."""

    def __init__(self, name: str, paths: list[str]):
        super().__init__(
            code="TEMPLATE_DUPLICATE",
            message=f"Template name '{name}' is claimed by several sources: {', '.join(paths)}",
            severity=Severity.FATAL,
            metadata={"name": name, "paths": paths},
        )
        self.name = name


class FunctionRegistrationFault(TemplateFault):
    """A template function failed registration-time validation."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            code="TEMPLATE_FUNCTION_INVALID",
            message=f"Cannot register template function '{name}': {reason}",
            severity=Severity.FATAL,
            metadata={"name": name, "reason": reason},
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigInvalidFault(Fault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            domain=FaultDomain.CONFIG,
            severity=Severity.FATAL,
            metadata={"key": key, "reason": reason},
        )
