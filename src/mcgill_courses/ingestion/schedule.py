"""
Schedule Module - Visual Schedule Builder extraction.
=====================================================

The schedule builder answers ``getclassdata.jsp`` with XML shaped like:

    <uselection>
      <selection ssid="202309"/>
      <block campus="Downtown" disp="Lec 001" location="..." timeblockids="2,3"/>
      <timeblock id="2" day="2" t1="630" t2="715"/>
    </uselection>

Each ``uselection`` becomes one Schedule; blocks are matched to time blocks
through the comma-separated ``timeblockids`` attribute.
"""

import time
from typing import Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup, Tag

from mcgill_courses.ingestion.fetcher import Fetcher
from mcgill_courses.shared.config import get_settings
from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import Block, Schedule, TimeBlock

logger = get_logger(__name__)

SEASONS = {
    "01": "Winter",
    "05": "Summer",
    "09": "Fall",
}


def term_from_ssid(ssid: Optional[str]) -> Optional[str]:
    """
    Decode a six character session code into a term label.

    Example:
        >>> term_from_ssid("202309")
        'Fall 2023'
        >>> term_from_ssid("202312") is None
        True
    """
    if not ssid or len(ssid) < 6:
        return None

    season = SEASONS.get(ssid[4:6])
    if season is None:
        return None

    return f"{season} {ssid[0:4]}"


def extract_schedule(selection: Tag) -> Schedule:
    """
    Extract one term's schedule from a ``uselection`` node.

    Args:
        selection: Parsed node holding ``selection``, ``block`` and
            ``timeblock`` children

    Returns:
        Schedule with its blocks and the decoded term (None when the session
        code is unknown)
    """
    timeblocks = selection.find_all("timeblock")

    blocks = []
    for block in selection.find_all("block"):
        ids = (block.get("timeblockids") or "").split(",")
        blocks.append(
            Block(
                campus=block.get("campus"),
                display=block.get("disp"),
                location=block.get("location"),
                timeblocks=[
                    TimeBlock(
                        day=timeblock.get("day"),
                        t1=timeblock.get("t1"),
                        t2=timeblock.get("t2"),
                    )
                    for timeblock in timeblocks
                    if (timeblock.get("id") or "") in ids
                ],
            )
        )

    session = selection.find("selection")
    ssid = session.get("ssid") if session is not None else None

    return Schedule(term=term_from_ssid(ssid), blocks=blocks)


def extract_schedules(xml: str) -> list[Schedule]:
    """Extract every schedule from a class data response."""
    soup = BeautifulSoup(xml, "xml")
    return [extract_schedule(selection) for selection in soup.find_all("uselection")]


# ─────────────────────────────────────────────────────────────────────────────
# Schedule Builder Client
# ─────────────────────────────────────────────────────────────────────────────


class VsbClient:
    """
    Client for the schedule builder class data endpoint.

    Example:
        >>> client = VsbClient(fetcher)
        >>> schedules = client.schedule("COMP-202", ["202309", "202401"])
    """

    def __init__(
        self,
        fetcher: Fetcher,
        base_url: Optional[str] = None,
        retries: Optional[int] = None,
    ):
        settings = get_settings()

        self.fetcher = fetcher
        self.base_url = base_url or settings.loader.vsb_url
        self.retries = retries

    @staticmethod
    def _window() -> tuple[int, int]:
        """Time window parameters the endpoint expects with every request."""
        t = (int(time.time() * 1000) // 60000) % 1000
        e = t % 3 + t % 39 + t % 42
        return t, e

    def url(self, course_code: str, term: str) -> str:
        """Build the class data URL of a course for one term."""
        t, e = self._window()
        params = {
            "term": term,
            "course_0_0": course_code,
            "rq_0_0": "null",
            "t": t,
            "e": e,
            "nouser": 1,
            "_": int(time.time() * 1000),
        }
        return f"{self.base_url}?{urlencode(params)}"

    def schedule(self, course_code: str, terms: list[str]) -> list[Schedule]:
        """
        Fetch the schedules of a course for every given session code.

        Raises:
            FetchExhausted: If a term's class data cannot be fetched
        """
        schedules: list[Schedule] = []

        for term in terms:
            xml = self.fetcher.fetch(self.url(course_code, term), max_retries=self.retries)
            found = extract_schedules(xml)
            logger.debug(f"Schedule builder: {course_code} {term} -> {len(found)} selections")
            schedules.extend(found)

        return schedules
