"""
Participant session.

UNREGISTERED -> SECTION_SELECTED -> AWAITING_DETAILS -> IN_CHALLENGE -> SUBMITTING -> COMPLETED

Everything runs on one event loop. Remote calls are suspension points, so
each completion re-checks the state before acting on its result: a fetch
that lands after teardown or after submission is dropped.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, MutableMapping, Optional

from core.config import ClientSettings
from core.exceptions import (
    InvalidStateError,
    QuizError,
    RegistrationClosedError,
    SubmissionError,
    ValidationError,
)
from core.logger import logger
from schemas.participant import Answer
from schemas.question import PARTICIPANT_SECTIONS
from services.evaluator import ResultSummary, evaluate_all, summarize, total_points
from client.cache import LoadResult, QuestionCacheController
from client.timer import CHALLENGE_DURATION_SECONDS, ChallengeTimer
from utils.timeutil import now_ms

CONFIG_KEY = "config"


class SessionState(str, Enum):
    UNREGISTERED = "unregistered"
    SECTION_SELECTED = "section_selected"
    # Details submitted, waiting for the participant id
    AWAITING_DETAILS = "awaiting_details"
    IN_CHALLENGE = "in_challenge"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


@dataclass
class ResultsBundle:
    name: str
    answers: List[Answer]
    score: int
    total_points: int
    time_taken: int
    summary: ResultSummary = field(init=False)

    def __post_init__(self):
        self.summary = summarize(self.answers, self.total_points)

    def to_wire(self) -> dict:
        return {
            "name": self.name,
            "answers": [a.to_wire() for a in self.answers],
            "score": self.score,
            "totalPoints": self.total_points,
            "timeTaken": self.time_taken,
        }


class SessionController:
    def __init__(
        self,
        api,
        cache: QuestionCacheController,
        session_store: Optional[MutableMapping] = None,
        duration: int = CHALLENGE_DURATION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], int] = now_ms,
        on_complete: Optional[Callable[[ResultsBundle], None]] = None,
        schedule_timer: bool = True,
        tick_seconds: float = 1.0,
    ):
        self.api = api
        self.cache = cache
        self.session_store = session_store if session_store is not None else {}
        self.wall_clock = wall_clock
        self.on_complete = on_complete
        self.schedule_timer = schedule_timer
        self.timer = ChallengeTimer(
            duration=duration,
            on_expire=self._on_timer_expired,
            clock=clock,
            tick_seconds=tick_seconds,
        )

        self.state = SessionState.UNREGISTERED
        self.section: Optional[str] = None
        self.participant_id: Optional[str] = None
        self.participant_name: str = ""
        self.started_at: Optional[int] = None
        self.questions: list = []
        self.answers: Dict[str, str] = {}
        self.current_index = 0

        self._submitting = False
        self._torn_down = False

    @classmethod
    def from_settings(cls, api, store, settings: ClientSettings, **kwargs) -> "SessionController":
        cache = QuestionCacheController(api, store, cache_key=settings.CACHE_KEY)
        return cls(
            api,
            cache,
            duration=settings.CHALLENGE_DURATION_SECONDS,
            tick_seconds=settings.TIMER_TICK_SECONDS,
            **kwargs,
        )

    def _require(self, *states: SessionState):
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidStateError(f"Session is {self.state.value}, expected one of: {allowed}")

    # ==================== REGISTRATION ====================

    def select_section(self, section: str):
        self._require(SessionState.UNREGISTERED, SessionState.SECTION_SELECTED)
        if section not in PARTICIPANT_SECTIONS:
            raise ValidationError(f"Unknown section: {section}")
        self.section = section
        self.state = SessionState.SECTION_SELECTED

    async def is_event_open(self) -> bool:
        try:
            config = await self.api.get_settings(CONFIG_KEY)
        except QuizError as e:
            # Unreadable settings never lock participants out
            logger.warning("Could not read event settings", error=str(e))
            return True
        if isinstance(config, dict) and "isQuizActive" in config:
            return config["isQuizActive"] is not False
        return True

    async def register(self, name: str, student_id: str) -> str:
        self._require(SessionState.SECTION_SELECTED)
        name, student_id = (name or "").strip(), (student_id or "").strip()
        if not name or not student_id:
            raise ValidationError("Please fill in all fields")

        if not await self.is_event_open():
            raise RegistrationClosedError("The challenge is not accepting new participants")

        self.state = SessionState.AWAITING_DETAILS
        started_at = self.wall_clock()
        try:
            result = await self.api.create_participant({
                "name": name,
                "studentId": student_id,
                "section": self.section,
                "startedAt": started_at,
                "score": 0,
                "totalPoints": 0,
                "answers": [],
                "submitted": False,
            })
            participant_id = result["id"]
        except (QuizError, KeyError, TypeError):
            self.state = SessionState.SECTION_SELECTED
            logger.error("Registration failed", section=self.section)
            raise

        if self._torn_down:
            logger.info("Registration completed after teardown, ignoring", participant_id=participant_id)
            return participant_id

        self.participant_id = participant_id
        self.participant_name = name
        self.started_at = started_at
        self.session_store["participantId"] = participant_id
        self.session_store["participantName"] = name
        self.session_store["participantSection"] = self.section
        self.state = SessionState.IN_CHALLENGE
        logger.info("Participant registered", participant_id=participant_id, section=self.section)
        return participant_id

    # ==================== CHALLENGE ====================

    async def load_questions(self, force_refresh: bool = False) -> Optional[LoadResult]:
        self._require(SessionState.IN_CHALLENGE)
        result = await self.cache.load(self.section, force_refresh=force_refresh)

        if self._torn_down or self.state != SessionState.IN_CHALLENGE:
            logger.info("Dropping late question load", state=self.state.value)
            return None

        self.questions = result.questions
        self.current_index = min(self.current_index, max(0, len(self.questions) - 1))
        if not self.timer.started:
            self.timer.start(schedule=self.schedule_timer)
        return result

    @property
    def current_question(self):
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def go_to(self, index: int):
        if not 0 <= index < len(self.questions):
            raise ValidationError(f"No question at index {index}")
        self.current_index = index

    def next_question(self):
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1

    def previous_question(self):
        if self.current_index > 0:
            self.current_index -= 1

    def set_answer(self, question_id: str, value: str):
        self._require(SessionState.IN_CHALLENGE)
        self.answers[question_id] = value

    def answered_count(self) -> int:
        return sum(1 for value in self.answers.values() if value and value.strip())

    # ==================== SUBMISSION ====================

    async def submit(self) -> Optional[ResultsBundle]:
        """Evaluate and write the result once. Concurrent or repeated calls are no-ops."""
        if self._submitting or self.state == SessionState.COMPLETED:
            return None
        self._require(SessionState.IN_CHALLENGE)

        self._submitting = True
        self.state = SessionState.SUBMITTING
        completed = False
        try:
            # No suspension between reading answers and evaluating them
            evaluated = evaluate_all(self.questions, self.answers)
            score = sum(a.points_awarded for a in evaluated)
            total = total_points(self.questions)
            time_taken = self.timer.time_taken()

            await self.api.update_participant(self.participant_id, {
                "answers": [a.to_wire() for a in evaluated],
                "score": score,
                "totalPoints": total,
                "completedAt": self.wall_clock(),
                "timeTaken": time_taken,
                "submitted": True,
            })
            completed = True
        except QuizError as e:
            logger.error("Submission failed", participant_id=self.participant_id, error=str(e))
            raise SubmissionError("Submission failed. Please try again.") from e
        finally:
            self._submitting = False
            if not completed:
                self.state = SessionState.IN_CHALLENGE

        self.state = SessionState.COMPLETED
        self.timer.cancel()
        if self._torn_down:
            logger.info("Submission completed after teardown, ignoring", participant_id=self.participant_id)
            return None

        results = ResultsBundle(
            name=self.participant_name,
            answers=evaluated,
            score=score,
            total_points=total,
            time_taken=time_taken,
        )
        self.session_store["results"] = results
        logger.info("Challenge submitted", participant_id=self.participant_id, score=score, total=total)

        if self.on_complete:
            self.on_complete(results)
        return results

    async def _on_timer_expired(self):
        if self._torn_down:
            return
        try:
            await self.submit()
        except (SubmissionError, InvalidStateError) as e:
            logger.error("Auto-submit failed", participant_id=self.participant_id, error=str(e))

    def take_results(self) -> Optional[ResultsBundle]:
        """Results are handed out once."""
        return self.session_store.pop("results", None)

    def teardown(self):
        """Leave the challenge: stop the timer and ignore late completions."""
        self._torn_down = True
        self.timer.cancel()
        logger.debug("Session torn down", participant_id=self.participant_id)
