"""
Core module for application configuration and session engine logic.

Note: auth and security modules are not imported at package level to avoid
circular imports with mockprep.models. Import them directly:
from mockprep.core.auth import ... or from mockprep.core.security import ...
"""
from .config import settings

__all__ = ["settings"]
