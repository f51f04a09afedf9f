import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from sitebuild.models.project_request import ProjectRequest, ProjectResponse
from sitebuild.services.projector import project

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/project",
    response_model=ProjectResponse,
    summary="Project a list of CMS entries into pages and props",
    description=(
        "Runs the content projector on the posted entries without touching the "
        "cache or the theme style file.  Malformed entries are skipped."
    ),
)
@limiter.limit("30/minute")
async def project_entries(request: Request, body: ProjectRequest) -> ProjectResponse:
    logger.info("Project request received", extra={"entries": len(body.entries)})
    site_data = project(body.entries)
    return ProjectResponse(pages=site_data.pages, props=site_data.props.model_dump())
