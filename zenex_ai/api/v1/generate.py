"""API endpoint for site generation.

Provides:
  - POST /generate — rate limit, spend a credit, run architect + engineer, publish
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from zenex_ai.schemas.generate import GeneratedSite, GenerateRequest, GenerateResponse
from zenex_ai.services.site_generation import SiteGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])


def get_generation_service(request: Request) -> SiteGenerationService:
    return request.app.state.generation_service


@router.post("/generate", response_model=GenerateResponse)
async def generate_site(
    body: GenerateRequest,
    service: SiteGenerationService = Depends(get_generation_service),
):
    """Generate and publish a site from a natural-language prompt."""
    result = await service.generate_site(
        user_id=body.user_id,
        project_id=body.project_id,
        prompt=body.prompt,
        site_type=body.site_type,
    )
    return GenerateResponse(data=GeneratedSite(**result.to_dict()))
