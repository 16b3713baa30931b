import asyncio
from typing import Any, Dict, List, Optional

import httpx

from core.config import ClientSettings
from core.exceptions import ApiError, QuizError, RequestFailedError
from core.logger import logger


class QuizApiClient:
    """
    Thin async wrapper over the quiz HTTP API.

    5xx responses and connection failures are retried with linear backoff
    (backoff * attempt) up to ``MAX_RETRIES`` times. 4xx responses raise
    ApiError straight away.
    """

    def __init__(
        self,
        settings: ClientSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep=asyncio.sleep,
    ):
        if not settings.API_URL:
            raise QuizError("API URL is not configured. Please set QUIZ_API_URL.")
        self.settings = settings
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=settings.API_URL.rstrip("/"),
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        max_retries = self.settings.MAX_RETRIES
        last_error: Optional[BaseException] = None

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.request(method, path, json=json)
            except httpx.TransportError as e:
                last_error = e
                logger.warning("API request failed", method=method, path=path, attempt=attempt + 1, error=str(e))
            else:
                if response.status_code < 500:
                    if response.is_error:
                        raise ApiError(response.status_code, _body(response))
                    return response.json()
                last_error = ApiError(response.status_code, _body(response))
                logger.warning("API server error", method=method, path=path, attempt=attempt + 1, status=response.status_code)

            if attempt < max_retries:
                await self._sleep(self.settings.RETRY_BACKOFF_SECONDS * (attempt + 1))

        raise RequestFailedError(path, max_retries + 1, cause=last_error)

    # ==================== SETTINGS ====================

    async def get_settings(self, key: str) -> Dict[str, Any]:
        return await self.request("GET", f"/settings/{key}")

    async def put_settings(self, key: str, data: Dict[str, Any]):
        return await self.request("PUT", f"/settings/{key}", json=data)

    # ==================== METADATA ====================

    async def get_metadata(self, key: str) -> Dict[str, Any]:
        return await self.request("GET", f"/metadata/{key}")

    async def put_metadata(self, key: str, data: Dict[str, Any]):
        return await self.request("PUT", f"/metadata/{key}", json=data)

    # ==================== PARTICIPANTS ====================

    async def create_participant(self, data: Dict[str, Any]) -> Dict[str, str]:
        return await self.request("POST", "/participants", json=data)

    async def get_participants(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/participants")

    async def update_participant(self, participant_id: str, data: Dict[str, Any]):
        return await self.request("PUT", f"/participants/{participant_id}", json=data)

    async def delete_all_participants(self) -> Dict[str, Any]:
        return await self.request("DELETE", "/participants")

    async def get_leaderboard(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/leaderboard")

    # ==================== QUESTIONS ====================

    async def get_questions(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/questions")

    async def create_question(self, data: Dict[str, Any]) -> Dict[str, str]:
        return await self.request("POST", "/questions", json=data)

    async def update_question(self, question_id: str, data: Dict[str, Any]):
        return await self.request("PUT", f"/questions/{question_id}", json=data)

    async def delete_question(self, question_id: str):
        return await self.request("DELETE", f"/questions/{question_id}")

    # ==================== BATCH OPERATIONS ====================

    async def batch_seed_questions(self, items: List[Dict[str, Any]]):
        return await self.request("POST", "/questions/batch", json={"action": "seed", "items": items})

    async def batch_import_questions(self, items: List[Dict[str, Any]]):
        return await self.request("POST", "/questions/batch", json={"action": "bulkImport", "items": items})

    async def batch_delete_questions(self, ids: List[str]):
        return await self.request("POST", "/questions/batch", json={"action": "deleteSelected", "ids": ids})

    async def batch_renumber_questions(self, updates: List[Dict[str, Any]]):
        return await self.request("POST", "/questions/batch", json={"action": "renumber", "updates": updates})

    async def batch_move_section(self, ids: List[str], section: str):
        return await self.request(
            "POST", "/questions/batch", json={"action": "moveSection", "ids": ids, "section": section}
        )


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
