from __future__ import annotations

import string
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

LETTERS = tuple(string.ascii_uppercase)


@dataclass(frozen=True)
class Selection:
    pathogen: str = ""
    authority: str = ""
    manufacturer: str = ""
    country: str = ""
    search: str = ""
    letter: str = ""
    vaccine_ids: Tuple[str, ...] = field(default_factory=tuple)


def _as_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_str_tuple(values: object) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    out: List[str] = []
    for v in values:  # type: ignore[union-attr]
        s = _as_str(v)
        if s and s not in out:
            out.append(s)
    return tuple(out)


def normalize_letter(value: object) -> str:
    letter = _as_str(value).upper()
    return letter if letter in LETTERS else ""


def normalize_selection(raw: Mapping[str, object]) -> Selection:
    """Build a Selection from URL query parameters (deep links)."""
    return Selection(
        pathogen=_as_str(raw.get("pathogen")),
        authority=_as_str(raw.get("licenser") or raw.get("authority")),
        manufacturer=_as_str(raw.get("manufacturer")),
        country=_as_str(raw.get("country")),
        search=_as_str(raw.get("search")),
        letter=normalize_letter(raw.get("letter")),
        vaccine_ids=_as_str_tuple(raw.get("vaccines")),
    )


def select_pathogen(selection: Selection, pathogen: str) -> Selection:
    """Changing the pathogen clears the compared vaccines."""
    if pathogen == selection.pathogen:
        return selection
    return replace(selection, pathogen=pathogen, vaccine_ids=())


def toggle_vaccine(
    selection: Selection, vaccine_id: str, pathogen_vaccine_ids: Iterable[str]
) -> Selection:
    """Add or remove one compared vaccine, dropping ids from other pathogens."""
    current = set(pathogen_vaccine_ids)
    kept = [v for v in selection.vaccine_ids if v in current]
    if vaccine_id in kept:
        kept.remove(vaccine_id)
    elif vaccine_id in current:
        kept.append(vaccine_id)
    return replace(selection, vaccine_ids=tuple(kept))


def matches(text: str, search: str = "", letter: str = "", initial_text: Optional[str] = None) -> bool:
    """Case-insensitive substring match AND first-letter match."""
    hay = (text or "").lower()
    if search and search.lower() not in hay:
        return False
    if letter:
        initial = (initial_text if initial_text is not None else text) or ""
        if initial[:1].upper() != letter.upper():
            return False
    return True


def filter_items(
    items: Iterable[T],
    selection: Selection,
    text: Callable[[T], str] = str,
    initial: Optional[Callable[[T], str]] = None,
) -> List[T]:
    out: List[T] = []
    for item in items:
        initial_text = initial(item) if initial else None
        if matches(text(item), selection.search, selection.letter, initial_text):
            out.append(item)
    return out


def resolve_choice(options: Sequence[str], requested: str, default: Optional[str] = None) -> str:
    """A deep-linked value is honoured only when it names a known option."""
    if requested and requested in options:
        return requested
    if default and default in options:
        return default
    return options[0] if options else ""


class RequestGenerations:
    """Monotonic request tokens per channel; only the newest token is current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Dict[str, int] = {}

    def begin(self, channel: str = "default") -> int:
        with self._lock:
            token = self._latest.get(channel, 0) + 1
            self._latest[channel] = token
            return token

    def is_current(self, channel: str, token: int) -> bool:
        with self._lock:
            return self._latest.get(channel) == token
