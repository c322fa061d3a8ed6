"""Rule-based slot extraction from schedule text.

Used when the completion service is not wanted (or has failed and the
fallback is switched on). The parser walks the text line by line, carrying
the most recent date and sport forward, and emits one slot for every line
that contains a time range.
"""
import re
from datetime import date
from typing import List, Optional, Pattern, Tuple

from ..config import settings
from ..models import ExtractedSchedule, Slot, SlotStatus
from ..utils.logger import logger

JP_DATE_RE = re.compile(r"(\d{1,2})月(\d{1,2})日")
ISO_DATE_RE = re.compile(r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
TIME_RANGE_RE = re.compile(
    r"(\d{1,2})[:：](\d{2})\s*[-‐－～~〜–—]\s*(\d{1,2})[:：](\d{2})"
)

# Longer names first so "バレーボール" wins over "バレー"
SPORT_RE = re.compile(
    r"(バドミントン|卓球|バスケットボール|バレーボール|テニス|フットサル|ゲートボール|バレー|バスケ)"
)
SPORT_ALIASES = {
    "バレー": "バレーボール",
    "バスケ": "バスケットボール",
}

# Checked in order; the first hit decides the status
STATUS_RULES: List[Tuple[Pattern, SlotStatus]] = [
    (re.compile(r"[○◯〇]|空き|available", re.IGNORECASE), SlotStatus.AVAILABLE),
    (re.compile(r"[△▲]|少|few", re.IGNORECASE), SlotStatus.FEW),
    (re.compile(r"[×✕✖]|満|full", re.IGNORECASE), SlotStatus.FULL),
    (re.compile(r"休|closed|閉", re.IGNORECASE), SlotStatus.CLOSED),
]

GYM_NAME_RES = [
    re.compile(r"(\S+(?:体育館|スポーツセンター|コズミックセンター|アリーナ|体育センター))"),
    re.compile(r"(\S+(?:Gym|Sports))", re.IGNORECASE),
]
AREA_RE = re.compile(r"(\S{1,5}?[市区町村])")
PREFECTURE = r"(?:東京都|北海道|京都府|大阪府|\S{2,3}県)"
PREFECTURE_PREFIX_RE = re.compile(rf"^{PREFECTURE}")
ADDRESS_RE = re.compile(rf"({PREFECTURE}\S+?[市区町村]\S*?\d+(?:[-－ー]\d+)*)")
TEL_RE = re.compile(r"(0\d{1,4}[-ー－]?\d{1,4}[-ー－]?\d{4})")

# (url keyword, gym name, area name)
URL_HINTS = [
    ("kawaguchi", "川口市スポーツセンター", "川口市"),
    ("shibuya", "渋谷区スポーツセンター", "渋谷区"),
    ("shinjuku", "新宿コズミックセンター", "新宿区"),
    ("chuo", "中央区立総合スポーツセンター", "中央区"),
]


def resolve_month_day(month: int, day: int, today: date) -> Optional[str]:
    """Turn a yearless month/day into an ISO date.

    The current year is assumed, except that a month earlier than the current
    month belongs to next year's schedule.

    Returns:
        YYYY-MM-DD, or None for an impossible date such as 2月30日
    """
    year = today.year + 1 if month < today.month else today.year
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def find_date(line: str, today: date) -> Optional[str]:
    """Return the first date mentioned in a line as YYYY-MM-DD."""
    match = JP_DATE_RE.search(line)
    if match:
        return resolve_month_day(int(match.group(1)), int(match.group(2)), today)

    match = ISO_DATE_RE.search(line)
    if match:
        try:
            return date(
                int(match.group(1)), int(match.group(2)), int(match.group(3))
            ).isoformat()
        except ValueError:
            return None
    return None


def find_sport(line: str) -> Optional[str]:
    """Return the canonical name of the first known sport in a line."""
    match = SPORT_RE.search(line)
    if not match:
        return None
    name = match.group(1)
    return SPORT_ALIASES.get(name, name)


def find_status(line: str) -> SlotStatus:
    for pattern, status in STATUS_RULES:
        if pattern.search(line):
            return status
    return SlotStatus.AVAILABLE


def find_time_range(line: str) -> Optional[Tuple[str, str]]:
    match = TIME_RANGE_RE.search(line)
    if not match:
        return None
    start_h, start_m, end_h, end_m = (int(g) for g in match.groups())
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        # "21:00-24:00" and the like; a slot cannot end at 24:00
        logger.debug(f"[PARSER] Skipping out-of-range time range: {match.group(0)}")
        return None
    return f"{start_h:02d}:{start_m:02d}", f"{end_h:02d}:{end_m:02d}"


class HeuristicSlotParser:
    """Pattern-based slot extractor."""

    def __init__(self, default_sport: Optional[str] = None):
        """Initialize the parser.

        Args:
            default_sport: Sport used before any sport name is seen.
                Defaults to settings.default_sport_name
        """
        self.default_sport = default_sport or settings.default_sport_name

    def extract_slots(self, text: str, today: Optional[date] = None) -> List[Slot]:
        """Derive slots from plain text.

        Args:
            text: Document text
            today: Reference day for year resolution and the placeholder slot

        Returns:
            At least one slot. When nothing is recognised a single placeholder
            slot (today, 09:00-11:00, default sport, available) is returned so
            the operator always sees a record.
        """
        today = today or date.today()
        slots: List[Slot] = []
        current_date: Optional[str] = None
        current_sport: Optional[str] = None

        for line in text.splitlines():
            found_date = find_date(line, today)
            if found_date:
                current_date = found_date

            found_sport = find_sport(line)
            if found_sport:
                current_sport = found_sport

            time_range = find_time_range(line)
            if not time_range or not current_date:
                continue

            start_time, end_time = time_range
            slots.append(
                Slot(
                    date=current_date,
                    start_time=start_time,
                    end_time=end_time,
                    sport_name=current_sport or self.default_sport,
                    status=find_status(line),
                )
            )

        if not slots:
            logger.warning("[PARSER] No slots found in text, generating default slot")
            slots.append(
                Slot(
                    date=today.isoformat(),
                    start_time="09:00",
                    end_time="11:00",
                    sport_name=self.default_sport,
                    status=SlotStatus.AVAILABLE,
                )
            )

        logger.info(f"[PARSER] Extracted {len(slots)} slots")
        return slots

    def parse_document(
        self, text: str, url: str = "", today: Optional[date] = None
    ) -> ExtractedSchedule:
        """Derive gym details and slots from plain text.

        Args:
            text: Document text
            url: Document URL, used as a hint for the gym and area names
            today: Reference day for date resolution

        Returns:
            Extracted schedule in the same shape the AI extractor produces
        """
        gym_name = self._find_gym_name(text, url)
        return ExtractedSchedule(
            gym_name=gym_name,
            area_name=self._find_area_name(text, url, gym_name),
            address=self._first_group(ADDRESS_RE, text),
            tel=self._first_group(TEL_RE, text),
            slots=self.extract_slots(text, today=today),
        )

    def _first_group(self, pattern: Pattern, text: str) -> Optional[str]:
        match = pattern.search(text)
        return match.group(1).strip() if match else None

    def _url_hint(self, url: str) -> Optional[Tuple[str, str, str]]:
        url_lower = url.lower()
        for hint in URL_HINTS:
            if hint[0] in url_lower:
                return hint
        return None

    def _find_gym_name(self, text: str, url: str) -> Optional[str]:
        for pattern in GYM_NAME_RES:
            name = self._first_group(pattern, text)
            if name:
                return name
        hint = self._url_hint(url)
        return hint[1] if hint else None

    def _find_area_name(
        self, text: str, url: str, gym_name: Optional[str]
    ) -> Optional[str]:
        # The facility name usually starts with its ward or city
        for candidate in (gym_name or "", text):
            area = self._first_group(AREA_RE, candidate)
            if area:
                return PREFECTURE_PREFIX_RE.sub("", area) or area
        hint = self._url_hint(url)
        return hint[2] if hint else None


# Global heuristic parser instance
heuristic_parser = HeuristicSlotParser()
