"""
Pydantic models for API responses
"""

from typing import Optional
from pydantic import BaseModel, Field


class NotBotResponse(BaseModel):
    """Answer for browser traffic; the SPA renders the page itself"""
    isBot: bool = False
    message: str = "Not a bot, serve SPA normally"


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str


class ProxyErrorResponse(BaseModel):
    """Video proxy failure, carrying the upstream status when there is one"""
    error: str
    status: Optional[int] = Field(None, description="Upstream HTTP status")


class HealthResponse(BaseModel):
    """Response for service health"""
    status: str
    version: str
    database: str
