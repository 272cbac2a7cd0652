from fastapi import APIRouter, Depends, status

from guidebook.api.models import DocumentEnqueuedResponse, DocumentRequest, GenerateAllRequest, GenerateAllResponse
from guidebook.config import Settings, get_settings
from guidebook.services import documents as document_service

router = APIRouter()


@router.post("/{project_id}", response_model=DocumentEnqueuedResponse, status_code=status.HTTP_202_ACCEPTED)
async def enqueue_document(  # noqa: B008
  project_id: str,
  request: DocumentRequest,
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> DocumentEnqueuedResponse:
  """Queue a PDF or DOCX render for one language."""
  return await document_service.enqueue_document(project_id, request, settings)


@router.post("/{project_id}/generate-all", response_model=GenerateAllResponse, status_code=status.HTTP_202_ACCEPTED)
async def enqueue_all_documents(  # noqa: B008
  project_id: str,
  request: GenerateAllRequest | None = None,
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> GenerateAllResponse:
  """Queue every missing document for English and completed translations."""
  return await document_service.enqueue_all(project_id, request or GenerateAllRequest(), settings)
