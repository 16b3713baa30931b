import hmac
from typing import Dict, List, Optional

from core.config import ClientSettings
from core.exceptions import InvalidStateError, QuizError, ValidationError
from core.logger import logger
from data.sample_questions import seed_items
from schemas.participant import Participant
from schemas.question import SECTIONS, parse_question
from services.leaderboard import LeaderboardRow, export_csv, rank_participants

CONFIG_KEY = "config"


class AdminClient:
    """
    Admin surface over the quiz API.

    The gate is a static shared secret compared locally; every operation
    below requires a successful ``login`` first.
    """

    def __init__(self, api, settings: ClientSettings):
        self.api = api
        self.settings = settings
        self.authenticated = False

    def login(self, password: str) -> bool:
        expected = self.settings.ADMIN_PASSWORD
        self.authenticated = bool(expected) and hmac.compare_digest(password.encode(), expected.encode())
        if not self.authenticated:
            logger.warning("Admin login rejected")
        return self.authenticated

    def _require_login(self):
        if not self.authenticated:
            raise InvalidStateError("Admin login required")

    # ==================== SETTINGS ====================

    async def is_quiz_active(self) -> bool:
        self._require_login()
        config = await self.api.get_settings(CONFIG_KEY)
        if "isQuizActive" not in config:
            # First run: initialise the event as open
            await self.api.put_settings(CONFIG_KEY, {"isQuizActive": True})
            return True
        return config["isQuizActive"] is not False

    async def set_quiz_active(self, active: bool):
        self._require_login()
        await self.api.put_settings(CONFIG_KEY, {"isQuizActive": active})
        logger.info("Quiz status changed", active=active)

    async def toggle_quiz_active(self) -> bool:
        active = not await self.is_quiz_active()
        await self.set_quiz_active(active)
        return active

    # ==================== QUESTIONS ====================

    async def list_questions(self, question_type: Optional[str] = None, section: Optional[str] = None) -> list:
        self._require_login()
        questions = [parse_question(item) for item in await self.api.get_questions()]
        questions.sort(key=lambda q: q.order)
        return [
            q for q in questions
            if (question_type is None or q.type == question_type) and (section is None or q.section == section)
        ]

    async def create_question(self, data: Dict) -> str:
        self._require_login()
        question = parse_question(data)
        result = await self.api.create_question(question.model_dump(by_alias=True, exclude={"id"}))
        return result["id"]

    async def update_question(self, question_id: str, changes: Dict):
        self._require_login()
        if not changes:
            raise ValidationError("No fields to update")
        await self.api.update_question(question_id, changes)

    async def delete_question(self, question_id: str):
        self._require_login()
        await self.api.delete_question(question_id)

    async def seed(self) -> int:
        self._require_login()
        result = await self.api.batch_seed_questions(seed_items())
        return result.get("created", 0)

    async def bulk_import(self, items: List[Dict], question_type: str, section: str) -> int:
        """Create questions parsed by an external tool, appended after the current ones."""
        self._require_login()
        if section not in SECTIONS:
            raise ValidationError(f"Unknown section: {section}")
        if not items:
            raise ValidationError("Nothing to import")

        current = len(await self.api.get_questions())
        prepared = []
        for i, item in enumerate(items):
            question = parse_question({**item, "type": question_type, "section": section, "order": current + i + 1})
            prepared.append(question.model_dump(by_alias=True, exclude={"id"}))

        result = await self.api.batch_import_questions(prepared)
        logger.info("Questions imported", count=len(prepared), type=question_type, section=section)
        return result.get("created", len(prepared))

    async def delete_selected(self, ids: List[str]) -> int:
        self._require_login()
        if not ids:
            return 0
        result = await self.api.batch_delete_questions(list(ids))
        return result.get("deleted", len(ids))

    async def renumber_all(self) -> int:
        """Re-assign 1..N by current order, sending only the questions whose order changes."""
        self._require_login()
        questions = await self.list_questions()
        updates = [
            {"id": q.id, "order": i}
            for i, q in enumerate(questions, 1)
            if q.order != i
        ]
        if updates:
            await self.api.batch_renumber_questions(updates)
        return len(updates)

    async def move_section(self, ids: List[str], section: str):
        self._require_login()
        if section not in SECTIONS:
            raise ValidationError(f"Unknown section: {section}")
        await self.api.batch_move_section(list(ids), section)

    # ==================== PARTICIPANTS ====================

    async def list_participants(self) -> List[Participant]:
        self._require_login()
        return [Participant.model_validate(item) for item in await self.api.get_participants()]

    async def leaderboard(self) -> List[LeaderboardRow]:
        return rank_participants(await self.list_participants())

    async def export_leaderboard_csv(self) -> str:
        return export_csv(await self.list_participants())

    async def clear_participants(self) -> int:
        self._require_login()
        try:
            result = await self.api.delete_all_participants()
        except QuizError as e:
            logger.error("Error clearing participants", error=str(e))
            raise
        return result.get("deleted", 0)
