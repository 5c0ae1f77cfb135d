"""
Core Module Package.

This package contains the infrastructure components
that all other registry modules depend on.

Components:
- clock: UTC time abstraction
- config: Service configuration
- exceptions: Registry error taxonomy
"""

from core.clock import ClockProtocol, SystemClock, MockClock
from core.config import RegistryConfig
from core.exceptions import (
    RegistryException,
    SpecValidationError,
    RetrievalError,
    RegistrationError,
    JobCreationError,
    InvalidStatusTransitionError,
)

__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "RegistryConfig",
    "RegistryException",
    "SpecValidationError",
    "RetrievalError",
    "RegistrationError",
    "JobCreationError",
    "InvalidStatusTransitionError",
]
