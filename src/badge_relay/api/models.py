"""Pydantic models for console requests."""

from pydantic import BaseModel


class AutoDispatchRequest(BaseModel):
    """Toggle payload for auto-dispatch."""

    enabled: bool
