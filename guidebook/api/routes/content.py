import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from guidebook.ai.rotation import ProviderRotationClient
from guidebook.api.deps import get_text_client
from guidebook.api.models import GenerateTravelGuideRequest, GenerationStartedResponse, JobStatusResponse
from guidebook.config import Settings, get_settings
from guidebook.services import content as content_service

router = APIRouter()
logger = logging.getLogger("guidebook.api.routes.content")


@router.post("/generate-travel-guide/{project_id}", response_model=GenerationStartedResponse)
async def generate_travel_guide(  # noqa: B008
  project_id: str,
  request: GenerateTravelGuideRequest,
  background_tasks: BackgroundTasks,
  settings: Settings = Depends(get_settings),  # noqa: B008
  text_client: ProviderRotationClient = Depends(get_text_client),  # noqa: B008
) -> GenerationStartedResponse:
  """Start travel guide content generation for an existing project."""
  return await content_service.start_generation(project_id, request, settings, background_tasks, text_client)


@router.get("/status/{job_id}", response_model=JobStatusResponse)
async def get_generation_status(job_id: str) -> JobStatusResponse:
  """Fetch status, progress and result of a generation job."""
  return await content_service.get_generation_status(job_id)
