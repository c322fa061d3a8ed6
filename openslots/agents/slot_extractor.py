"""AI slot extractor: asks a completion service to read a schedule document."""
import json
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..config import settings
from ..exceptions import AIParseError
from ..models import ExtractedSchedule
from ..services.llm_provider import LLMProvider, get_llm_provider
from ..utils.logger import logger

TRUNCATION_MARKER = "\n\n... (テキストが長いため省略)"

SYSTEM_PROMPT = (
    "あなたは体育館の個人開放スケジュールPDFを解析する専門家です。"
    "JSON形式で正確に情報を抽出してください。"
)


class SlotExtractor:
    """Extracts gym details and open slots from document text with an LLM."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        max_text_length: Optional[int] = None,
    ):
        """Initialize the slot extractor.

        Args:
            provider: LLM provider. Resolved from settings on first use when omitted,
                so a missing credential surfaces as a ConfigurationError at call time
            max_text_length: Maximum number of document characters sent to the model.
                Defaults to settings.extraction_max_text_length
        """
        self._provider = provider
        self.max_text_length = max_text_length or settings.extraction_max_text_length

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_llm_provider()
        return self._provider

    async def extract(
        self, text: str, url: str = "", today: Optional[date] = None
    ) -> ExtractedSchedule:
        """Extract a schedule from document text.

        Args:
            text: Plain document text
            url: Document URL, for logging only
            today: Reference day for the year rules in the prompt

        Returns:
            The validated schedule

        Raises:
            ConfigurationError: if the provider credential is missing
            AIResponseError: if the service answers with a non-success status
            AIParseError: if the answer is empty, not JSON, or the wrong shape
        """
        provider = self.provider
        prompt = self._build_prompt(self._truncate(text), today or date.today())

        logger.info(f"[AI] Extracting slots from {url or 'document'} with {provider.get_name()}")
        content = await provider.chat(
            messages=[{"role": "user", "content": prompt}],
            system=SYSTEM_PROMPT,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
        if not content or not content.strip():
            raise AIParseError("No content from completion API")

        schedule = self._decode(content)
        logger.info(
            f"[AI] Extracted gym '{schedule.gym_name}' (area: {schedule.area_name}) "
            f"with {len(schedule.slots)} slots"
        )
        return schedule

    def _truncate(self, text: str) -> str:
        if len(text) <= self.max_text_length:
            return text
        return text[: self.max_text_length] + TRUNCATION_MARKER

    def _build_prompt(self, text: str, today: date) -> str:
        """Build the extraction prompt.

        Args:
            text: Document text, already truncated
            today: Reference day for the year rules

        Returns:
            Formatted prompt string
        """
        year = today.year
        month = today.month
        return f"""あなたは体育館の個人開放スケジュールPDFを解析する専門家です。以下のPDFテキストから、体育館情報と空き時間スロットを抽出してください。

PDFテキスト:
{text}

以下のJSON形式で回答してください。存在しない情報はnullまたは空配列にしてください。

{{
  "gymName": "体育館名（例: 渋谷区スポーツセンター）",
  "areaName": "エリア名（例: 渋谷区）",
  "address": "住所（例: 東京都渋谷区西原1-40-18）",
  "tel": "電話番号（例: 03-3468-9051）",
  "slots": [
    {{
      "date": "YYYY-MM-DD形式の日付（例: {year}-12-15）",
      "start_time": "HH:mm形式の開始時間（例: 09:00）",
      "end_time": "HH:mm形式の終了時間（例: 11:00）",
      "sport_name": "競技名（例: バドミントン、卓球、バスケットボールなど）",
      "status": "空き状況（available: 空き、few: 少、full: 満、closed: 閉）",
      "capacity": 定員数（不明な場合はnull）,
      "remaining": 残り枠数（不明な場合はnull）,
      "reception_type": "受付方法（same_day: 当日、reservation: 予約制、lottery: 抽選）",
      "target": "対象者（例: 高校生以上）",
      "notes": "備考（例: ラケット持参）"
    }}
  ]
}}

重要:
- 日付は必ずYYYY-MM-DD形式に変換してください（例: "11月29日" → "{year}-11-29"）
- 年が書かれていない日付は{year}年とし、{month}月より前の月は{year + 1}年としてください
- 空き状況は記号（○、△、×、休など）や文字列（空き、少、満、閉など）から適切に判定してください
- 競技名は一般的な名称に統一してください（例: "バレー" → "バレーボール"、"バスケ" → "バスケットボール"）
- 時間は24時間形式でHH:mmに統一してください
- スロットが見つからない場合は空配列[]を返してください"""

    def _unwrap(self, content: str) -> str:
        """Strip a fenced code block around the JSON answer, if present."""
        json_text = content.strip()
        if json_text.startswith("```"):
            lines = json_text.split("\n")
            start = next((i for i, line in enumerate(lines) if "{" in line), None)
            end = next(
                (i for i in range(len(lines) - 1, -1, -1) if "}" in lines[i]), None
            )
            if start is None or end is None or end < start:
                return ""
            json_text = "\n".join(lines[start : end + 1])
        return json_text

    def _decode(self, content: str) -> ExtractedSchedule:
        json_text = self._unwrap(content)
        try:
            data: Dict[str, Any] = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise AIParseError(f"Completion content is not valid JSON: {e.msg}") from e

        if not isinstance(data, dict):
            raise AIParseError("Completion content is not a JSON object")

        try:
            return ExtractedSchedule.model_validate(data)
        except ValidationError as e:
            raise AIParseError(
                f"Completion content does not match the schedule schema: "
                f"{e.error_count()} errors, first: {e.errors()[0]['msg']}"
            ) from e


# Global slot extractor instance
slot_extractor = SlotExtractor()
