from fastapi import APIRouter, BackgroundTasks, Depends

from guidebook.ai.rotation import ProviderRotationClient
from guidebook.api.deps import get_text_client
from guidebook.api.models import TranslateRequest, TranslationStartedResponse
from guidebook.services import translations as translation_service

router = APIRouter()


@router.post("/{project_id}", response_model=TranslationStartedResponse)
async def translate_project(  # noqa: B008
  project_id: str,
  request: TranslateRequest,
  background_tasks: BackgroundTasks,
  text_client: ProviderRotationClient = Depends(get_text_client),  # noqa: B008
) -> TranslationStartedResponse:
  """Translate a generated project into another language in the background."""
  return await translation_service.start_translation(project_id, request, background_tasks, text_client)
