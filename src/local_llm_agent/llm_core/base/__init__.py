"""Re-export the generation backend interface and its request/response models."""

from .base import GenerationBackend, GenerationRequest, GenerationResponse, TokenUsage

__all__ = [
    "GenerationBackend",
    "GenerationRequest",
    "GenerationResponse",
    "TokenUsage",
]
