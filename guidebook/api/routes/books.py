from fastapi import APIRouter

from guidebook.api.models import DownloadLinksResponse
from guidebook.services import documents as document_service

router = APIRouter()


@router.get("/download/{project_id}", response_model=DownloadLinksResponse, response_model_exclude_none=True)
async def get_download_links(project_id: str) -> DownloadLinksResponse:
  """List completed documents of a project grouped by language."""
  return await document_service.get_download_links(project_id)
