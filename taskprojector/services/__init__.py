"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .estimation import EstimationRequest, EstimationService, FetchEvents

__all__ = ["EstimationRequest", "EstimationService", "FetchEvents"]
