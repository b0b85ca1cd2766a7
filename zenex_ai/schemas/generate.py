"""Pydantic schemas for the site generation API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    user_id: str = Field(min_length=1, description="Caller id (rate limit and credit key)")
    project_id: str = Field(min_length=1)
    prompt: str = Field(min_length=1, description="Natural-language site description")
    site_type: str = Field("business", max_length=100, description="e.g. 'portfolio', 'restaurant'")


class GeneratedSite(BaseModel):
    html: str
    architecture: str
    public_url: str
    preview_url: str
    architect_provider: str
    engineer_provider: str
    cached: bool = False


class GenerateResponse(BaseModel):
    success: bool = True
    data: GeneratedSite
