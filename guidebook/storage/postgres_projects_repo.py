"""Postgres-backed repository for projects and derived content."""

from __future__ import annotations

from sqlalchemy import delete, func, select

from guidebook.core.database import get_session_factory
from guidebook.schema.projects import Chapter, Image, Project, Translation
from guidebook.storage.projects_repo import ChapterRecord, ImageRecord, Language, ProjectBundle, ProjectRecord, ProjectsRepository, ProjectStatus, TranslationRecord


class PostgresProjectsRepository(ProjectsRepository):
  """Read and write project rows through SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def get_project(self, project_id: str) -> ProjectRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Project, project_id)
      return self._project_to_record(row) if row is not None else None

  async def get_project_bundle(self, project_id: str) -> ProjectBundle | None:
    async with self._session_factory() as session:
      row = await session.get(Project, project_id)
      if row is None:
        return None
      chapters = (await session.execute(select(Chapter).where(Chapter.project_id == project_id).order_by(Chapter.order.asc()))).scalars().all()
      images = (await session.execute(select(Image).where(Image.project_id == project_id).order_by(Image.position.asc(), Image.created_at.asc()))).scalars().all()
      return ProjectBundle(project=self._project_to_record(row), chapters=[self._chapter_to_record(chapter) for chapter in chapters], images=[self._image_to_record(image) for image in images])

  async def update_project(self, project_id: str, *, status: ProjectStatus | None = None, number_of_chapters: int | None = None) -> ProjectRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Project, project_id)
      if row is None:
        return None
      if status is not None:
        row.status = status
      if number_of_chapters is not None:
        row.number_of_chapters = number_of_chapters
      await session.commit()
      await session.refresh(row)
      return self._project_to_record(row)

  async def add_chapter(self, record: ChapterRecord) -> None:
    async with self._session_factory() as session:
      session.add(Chapter(id=record.chapter_id, project_id=record.project_id, title=record.title, order=record.order, content=record.content))
      await session.commit()

  async def list_chapters(self, project_id: str) -> list[ChapterRecord]:
    async with self._session_factory() as session:
      rows = (await session.execute(select(Chapter).where(Chapter.project_id == project_id).order_by(Chapter.order.asc()))).scalars().all()
      return [self._chapter_to_record(row) for row in rows]

  async def count_chapters(self, project_id: str) -> int:
    async with self._session_factory() as session:
      return int((await session.execute(select(func.count()).select_from(Chapter).where(Chapter.project_id == project_id))).scalar_one())

  async def delete_chapters(self, project_id: str) -> int:
    async with self._session_factory() as session:
      result = await session.execute(delete(Chapter).where(Chapter.project_id == project_id))
      await session.commit()
      return int(result.rowcount or 0)

  async def get_translation(self, project_id: str, language: Language) -> TranslationRecord | None:
    async with self._session_factory() as session:
      row = (await session.execute(select(Translation).where(Translation.project_id == project_id, Translation.language == language))).scalar_one_or_none()
      return self._translation_to_record(row) if row is not None else None

  async def list_translations(self, project_id: str) -> list[TranslationRecord]:
    async with self._session_factory() as session:
      rows = (await session.execute(select(Translation).where(Translation.project_id == project_id).order_by(Translation.language.asc()))).scalars().all()
      return [self._translation_to_record(row) for row in rows]

  async def save_translation(self, record: TranslationRecord) -> TranslationRecord:
    async with self._session_factory() as session:
      stmt = select(Translation).where(Translation.project_id == record.project_id, Translation.language == record.language).with_for_update()
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        row = Translation(id=record.translation_id, project_id=record.project_id, language=record.language)
        session.add(row)
      row.title = record.title
      row.subtitle = record.subtitle
      row.content = list(record.content)
      row.status = record.status
      row.completed_at = record.completed_at
      await session.commit()
      await session.refresh(row)
      return self._translation_to_record(row)

  @staticmethod
  def _project_to_record(row: Project) -> ProjectRecord:
    return ProjectRecord(project_id=row.id, title=row.title, subtitle=row.subtitle, author=row.author, description=row.description, status=row.status, number_of_chapters=row.number_of_chapters, user_id=row.user_id)

  @staticmethod
  def _chapter_to_record(row: Chapter) -> ChapterRecord:
    return ChapterRecord(chapter_id=row.id, project_id=row.project_id, title=row.title, order=row.order, content=row.content)

  @staticmethod
  def _image_to_record(row: Image) -> ImageRecord:
    return ImageRecord(image_id=row.id, project_id=row.project_id, url=row.url, caption=row.caption, chapter_number=row.chapter_number, position=row.position, is_map=row.is_map)

  @staticmethod
  def _translation_to_record(row: Translation) -> TranslationRecord:
    return TranslationRecord(translation_id=row.id, project_id=row.project_id, language=row.language, title=row.title, subtitle=row.subtitle, content=list(row.content or []), status=row.status, completed_at=row.completed_at)
