from .ltex_ls import (
    OFFLINE_INSTRUCTIONS,
    TRY_AGAIN,
    AcquisitionSession,
    DependencyManager,
    NonInteractivePrompt,
    RetryPrompt,
)
from .runtime_validator import RuntimeValidator, ValidationResult

__all__ = [
    "OFFLINE_INSTRUCTIONS",
    "TRY_AGAIN",
    "AcquisitionSession",
    "DependencyManager",
    "NonInteractivePrompt",
    "RetryPrompt",
    "RuntimeValidator",
    "ValidationResult",
]
