"""Base classes for matrixci managers."""

from .orchestrator import BaseOrchestrator
from .service import BaseService

__all__ = ["BaseOrchestrator", "BaseService"]
