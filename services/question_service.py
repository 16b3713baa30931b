import uuid
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update
from models.question import Question
from schemas.question import QuestionUpdate, OrderUpdate, parse_question
from services.settings_service import SettingsService
from core.logger import logger

# Columns shared by every variant plus the variant-specific ones
_COLUMNS = (
    "type", "section", "title", "description", "points", "order",
    "language", "buggy_code", "correct_code",
    "code_snippet", "options", "correct_option_index",
    "scenario", "accepted_answers",
)


def question_to_dict(row: Question) -> dict:
    """Row -> camelCase wire object carrying only the fields of its variant."""
    data = {name: getattr(row, name) for name in _COLUMNS}
    data["id"] = row.id
    # Drop NULL variant columns so the schema defaults apply
    data = {k: v for k, v in data.items() if v is not None}
    return parse_question(data).to_wire()


class QuestionService:
    def __init__(self, db: AsyncSession, batch_limit: int = 25):
        self.db = db
        self.batch_limit = batch_limit
        self.settings = SettingsService(db)

    def _build_row(self, question) -> Question:
        fields = question.model_dump(exclude={"id"})
        return Question(id=str(uuid.uuid4()), **fields)

    async def list_questions(self) -> List[Question]:
        result = await self.db.execute(select(Question).order_by(Question.order.asc()))
        return list(result.scalars().all())

    async def get_question(self, question_id: str) -> Optional[Question]:
        return await self.db.get(Question, question_id)

    async def create_question(self, question) -> str:
        row = self._build_row(question)
        self.db.add(row)
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Question created", question_id=row.id, type=row.type, section=row.section)
        return row.id

    async def create_many(self, questions: list) -> List[str]:
        """Used by both "seed" and "bulkImport": every item gets a fresh id."""
        rows = [self._build_row(q) for q in questions]
        self.db.add_all(rows)
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Questions created in batch", count=len(rows))
        return [row.id for row in rows]

    async def update_question(self, question_id: str, changes: QuestionUpdate) -> bool:
        values = changes.model_dump(exclude_unset=True)
        row = await self.get_question(question_id)
        if not row:
            return False

        for key, value in values.items():
            setattr(row, key, value)
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Question updated", question_id=question_id, fields=list(values.keys()))
        return True

    async def delete_question(self, question_id: str) -> bool:
        result = await self.db.execute(delete(Question).where(Question.id == question_id))
        await self.settings.touch_questions()
        await self.db.commit()
        success = result.rowcount > 0
        logger.info("Question deleted", question_id=question_id, success=success)
        return success

    async def delete_many(self, ids: List[str]) -> int:
        # Chunked to the store's batch-write limit
        deleted = 0
        for i in range(0, len(ids), self.batch_limit):
            chunk = ids[i:i + self.batch_limit]
            result = await self.db.execute(delete(Question).where(Question.id.in_(chunk)))
            deleted += result.rowcount
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Questions deleted in batch", requested=len(ids), deleted=deleted)
        return deleted

    async def renumber(self, updates: List[OrderUpdate]) -> None:
        for u in updates:
            await self.db.execute(
                update(Question).where(Question.id == u.id).values(order=u.order)
            )
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Questions renumbered", count=len(updates))

    async def move_section(self, ids: List[str], section: str) -> None:
        if ids:
            await self.db.execute(
                update(Question).where(Question.id.in_(ids)).values(section=section)
            )
        await self.settings.touch_questions()
        await self.db.commit()
        logger.info("Questions moved", count=len(ids), section=section)
