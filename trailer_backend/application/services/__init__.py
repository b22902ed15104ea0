"""
Application services.

Dependencies: trailer_backend.core, trailer_backend.boundary
System role: Use-case orchestration behind the HTTP surface
"""

from trailer_backend.application.services.generation_service import GenerationService
from trailer_backend.application.services.status_service import StatusService

__all__ = ["GenerationService", "StatusService"]
