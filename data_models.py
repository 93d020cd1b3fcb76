"""
Content item and query state data models.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from dateutil import parser as date_parser

from config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    DEFAULT_WORD_COUNT,
    WORDS_PER_MINUTE,
)

CONTENT_TYPES = ('whitepaper', 'video', 'slide', 'infographic')
FUNNEL_STAGES = ('Awareness', 'Consideration', 'Decision', 'Retention')
SORT_MODES = ('relevance', 'newest', 'oldest', 'shortest', 'longest')

# Facet dimensions in display order; the first four label lists are multi-valued
LABEL_FIELDS = ('industries', 'personas', 'topics', 'tags')
FACET_DIMENSIONS = ('type', 'industries', 'personas', 'topics', 'tags', 'stage', 'year')


def parse_release_date(value: Any) -> Optional[datetime]:
    """Parse a release date into an aware datetime, or None if it can't be read.

    Date-only values are taken as UTC midnight, like ISO dates in a browser.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not value or not isinstance(value, str):
        return None
    else:
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(value)
            except (ValueError, OverflowError):
                return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _labels(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(label) for label in value if label is not None)


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _round_half_up(value: float) -> int:
    # round() goes to the even neighbour on .5
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class ContentItem:
    """Data class for catalog items"""
    id: Union[str, int]
    title: str
    summary: str
    content_type: str
    file_url: str
    release_date: str = ''
    slug: str = ''
    industries: Tuple[str, ...] = ()
    personas: Tuple[str, ...] = ()
    topics: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    funnel_stage: str = ''
    version: int = 1
    cover_url: Optional[str] = None
    duration_sec: Optional[float] = None
    read_time_min: Optional[float] = None
    words: Optional[float] = None
    released_at: Optional[datetime] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContentItem':
        """Build an item from a raw catalog record, filling defaults for missing fields.

        Raises ValueError when content_type or file_url is missing.
        """
        content_type = str(data.get('content_type') or '').strip()
        file_url = str(data.get('file_url') or '').strip()
        if not content_type:
            raise ValueError('missing content_type')
        if not file_url:
            raise ValueError('missing file_url')

        release_date = data.get('release_date') or ''
        version = _number(data.get('version'))
        return cls(
            id=data.get('id', data.get('slug', '')),
            title=str(data.get('title') or ''),
            summary=str(data.get('summary') or ''),
            content_type=content_type,
            file_url=file_url,
            release_date=str(release_date),
            slug=str(data.get('slug') or ''),
            industries=_labels(data.get('industries')),
            personas=_labels(data.get('personas')),
            topics=_labels(data.get('topics')),
            tags=_labels(data.get('tags')),
            funnel_stage=str(data.get('funnel_stage') or ''),
            version=int(version) if version and version > 0 else 1,
            cover_url=data.get('cover_url') or None,
            duration_sec=_number(data.get('duration_sec')),
            read_time_min=_number(data.get('read_time_min')),
            words=_number(data.get('words')),
            released_at=parse_release_date(release_date),
        )

    @property
    def is_video(self) -> bool:
        return self.content_type == 'video'

    @property
    def year(self) -> str:
        """Calendar year of the release date, or '' when the date is unreadable."""
        if self.released_at is None:
            return ''
        return str(self.released_at.year)

    @property
    def release_timestamp(self) -> float:
        if self.released_at is None:
            return 0.0
        return self.released_at.timestamp()

    @property
    def sort_read_time(self) -> float:
        return self.read_time_min or 0

    @property
    def display_minutes(self) -> Union[int, float]:
        """Minutes shown on the card. Estimates round half up; a given read time is shown as is."""
        if self.is_video:
            return _round_half_up((self.duration_sec or 0) / 60)
        if self.read_time_min:
            if float(self.read_time_min).is_integer():
                return int(self.read_time_min)
            return self.read_time_min
        return _round_half_up((self.words or DEFAULT_WORD_COUNT) / WORDS_PER_MINUTE)

    def labels(self, dimension: str) -> Tuple[str, ...]:
        return getattr(self, dimension)

    def search_text(self) -> str:
        """Title, summary and every label joined into one searchable string."""
        return ' \n '.join([
            self.title,
            self.summary,
            *self.topics,
            *self.tags,
            *self.personas,
            *self.industries,
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'summary': self.summary,
            'industries': list(self.industries),
            'personas': list(self.personas),
            'topics': list(self.topics),
            'tags': list(self.tags),
            'funnel_stage': self.funnel_stage,
            'release_date': self.release_date,
            'version': self.version,
            'content_type': self.content_type,
            'file_url': self.file_url,
            'cover_url': self.cover_url,
            'duration_sec': self.duration_sec,
            'read_time_min': self.read_time_min,
            'words': self.words,
        }


@dataclass(frozen=True)
class QueryState:
    """Every search, filter, sort and paging selection for one session"""
    term: str = ''
    type: Tuple[str, ...] = ()
    industries: Tuple[str, ...] = ()
    personas: Tuple[str, ...] = ()
    topics: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    stage: Tuple[str, ...] = ()
    year: Tuple[str, ...] = ()
    sort: str = DEFAULT_SORT
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def trimmed_term(self) -> str:
        return self.term.strip()

    def selected(self, dimension: str) -> Tuple[str, ...]:
        return getattr(self, dimension)

