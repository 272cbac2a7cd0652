"""ORM models; importing this package registers every table on ``Base.metadata``."""

from guidebook.schema.documents import Document
from guidebook.schema.jobs import Job
from guidebook.schema.projects import Chapter, Image, Project, Translation
from guidebook.schema.tasks import DocumentTask

__all__ = ["Chapter", "Document", "DocumentTask", "Image", "Job", "Project", "Translation"]
