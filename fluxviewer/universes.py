"""Universe selection strings as typed into the monitor panels ("1-4", "1,2,5,8")."""

import logging
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_UNIVERSES = [1]
MAX_UNIVERSE = 0xFFFF


def _parse_int(text: str) -> int:
    return int(text.strip())


def parse_universes(text: str) -> List[int]:
    """
    Parse a universe selection into a sorted list without duplicates.

    Ranges are inclusive. Parts that are not numbers or are out of range are
    skipped. An empty or fully invalid selection yields [1].

    Examples:
        "1,3-5"  -> [1, 3, 4, 5]
        "5, 2,2" -> [2, 5]
        ""       -> [1]
    """
    if not text or not text.strip():
        return list(DEFAULT_UNIVERSES)

    selected = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_text, end_text = part.split("-", 1)
                start, end = _parse_int(start_text), _parse_int(end_text)
            else:
                start = end = _parse_int(part)
        except ValueError:
            logger.warning(f"Ignoring invalid universe selection {part!r}")
            continue

        if start > end or start < 0 or end > MAX_UNIVERSE:
            logger.warning(f"Ignoring out-of-range universe selection {part!r}")
            continue
        selected.update(range(start, end + 1))

    return sorted(selected) if selected else list(DEFAULT_UNIVERSES)
