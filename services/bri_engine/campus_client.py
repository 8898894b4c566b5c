# services/bri_engine/campus_client.py

from datetime import date, datetime

import httpx

from .aggregator import MetricSource
from .config import settings
from .schemas import AttendanceRecord, MarksRecord, SentimentEvent, SubmissionRecord
from .utils.logging import setup_logging

logger = setup_logging()


class CampusStoreClient(MetricSource):
    """
    Чтение метрик студента из REST API хранилища кампуса (PostgREST / Supabase).

    Каждый запрос ограничен settings.REQUEST_TIMEOUT. Сетевые ошибки
    повторяются до settings.RETRIES раз; таймауты и HTTP-ошибки
    не повторяются и пробрасываются наверх: пересчёт студента
    в этом случае считается неуспешным.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.CAMPUS_STORE_URL).rstrip("/")
        self.api_key = settings.CAMPUS_STORE_KEY if api_key is None else api_key
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.retries = settings.RETRIES if retries is None else retries
        self.page_size = page_size or settings.STUDENT_PAGE_SIZE
        self.transport = transport

    @property
    def headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}

    async def _get(self, table: str, params: dict[str, str]) -> list[dict]:
        url = f"{self.base_url}/rest/v1/{table}"
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    headers=self.headers,
                    transport=self.transport,
                ) as client:
                    resp = await client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()
            except httpx.TimeoutException:
                logger.error(f"⏱️ Timeout while reading {table} from campus store")
                raise
            except httpx.TransportError as e:
                if attempt >= self.retries:
                    logger.error(f"❌ HTTP error while reading {table}: {e}")
                    raise
                attempt += 1
                logger.warning(f"🔁 Retrying {table} read ({attempt}/{self.retries}) after: {e}")
            except httpx.HTTPStatusError as e:
                logger.warning(f"⚠️ Campus store returned HTTP {e.response.status_code} for {table}")
                raise

    # ---------- Метрики ----------

    async def fetch_attendance(self, student_id: str, since: date) -> list[AttendanceRecord]:
        rows = await self._get(
            "attendance_records",
            {
                "select": "date,is_present",
                "student_id": f"eq.{student_id}",
                "date": f"gte.{since.isoformat()}",
            },
        )
        return [AttendanceRecord.model_validate(r) for r in rows]

    async def fetch_test_results(self, student_id: str, limit: int) -> list[MarksRecord]:
        rows = await self._get(
            "test_results",
            {
                "select": "marks_obtained,created_at,tests!inner(max_marks)",
                "student_id": f"eq.{student_id}",
                "order": "created_at.desc",
                "limit": str(limit),
            },
        )
        # max_marks приходит вложенным объектом из связанной таблицы tests
        return [
            MarksRecord(
                marks_obtained=r["marks_obtained"],
                max_marks=(r.get("tests") or {}).get("max_marks", 0),
                created_at=r["created_at"],
            )
            for r in rows
        ]

    async def fetch_submissions(self, student_id: str, limit: int) -> list[SubmissionRecord]:
        rows = await self._get(
            "assignment_submissions",
            {
                "select": "is_on_time,submitted_at",
                "student_id": f"eq.{student_id}",
                "order": "submitted_at.desc",
                "limit": str(limit),
            },
        )
        return [SubmissionRecord.model_validate(r) for r in rows]

    async def _student_user_id(self, student_id: str) -> str | None:
        rows = await self._get(
            "students",
            {"select": "profiles!inner(user_id)", "id": f"eq.{student_id}"},
        )
        if not rows:
            return None
        return (rows[0].get("profiles") or {}).get("user_id")

    async def fetch_sentiment_events(self, student_id: str, since: datetime) -> list[SentimentEvent]:
        window = {
            "select": "sentiment_score,created_at",
            "created_at": f"gte.{since.isoformat()}",
            "sentiment_score": "not.is.null",
        }
        messages = await self._get("group_chat_messages", {**window, "student_id": f"eq.{student_id}"})

        # диалоги с чат-ботом привязаны к user_id профиля, а не к id студента
        conversations: list[dict] = []
        user_id = await self._student_user_id(student_id)
        if user_id:
            conversations = await self._get("chatbot_conversations", {**window, "user_id": f"eq.{user_id}"})

        return [SentimentEvent.model_validate(r) for r in [*messages, *conversations]]

    async def list_student_ids(self) -> list[str]:
        """
        Все id студентов. PostgREST обрезает ответ по max-rows, поэтому
        читаем страницами, пока не придёт неполная.
        """
        ids: list[str] = []
        offset = 0
        while True:
            rows = await self._get(
                "students",
                {
                    "select": "id",
                    "order": "id.asc",
                    "limit": str(self.page_size),
                    "offset": str(offset),
                },
            )
            ids.extend(str(r["id"]) for r in rows)
            if len(rows) < self.page_size:
                return ids
            offset += len(rows)
