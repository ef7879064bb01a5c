"""Data classes for the planner domain model."""
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp as a fixed-precision UTC ISO string (naive values are taken as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_ts(value) -> Optional[datetime]:
    """Parse a stored timestamp or calendar date into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class _Record:
    """Mixin for records stored as JSON documents."""

    _timestamps: tuple = ()

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in cls._timestamps:
            if name in values:
                values[name] = parse_ts(values[name])
        return cls(**values)

    def to_dict(self) -> dict:
        data = asdict(self)
        for name in self._timestamps:
            data[name] = to_iso(data[name])
        return data

    def copy(self, **changes):
        return replace(self, **changes)


@dataclass
class TopicProgress(_Record):
    topic_id: str
    course_id: Optional[str] = None
    mastery_score: float = 0
    last_revised: Optional[datetime] = None
    next_revision: Optional[datetime] = None
    revision_count: int = 0
    total_study_time: int = 0
    solved_questions: list = field(default_factory=list)
    practice_count: int = 0
    last_practiced: Optional[datetime] = None
    needs_review: bool = False
    review_requested_at: Optional[datetime] = None
    status: Optional[str] = None
    user_notes: str = ""
    personal_context: str = ""
    tags: list = field(default_factory=list)
    difficulty: int = 3
    importance: int = 3
    last_score_improvement: int = 0

    _timestamps = ("last_revised", "next_revision", "last_practiced", "review_requested_at")


@dataclass
class Subtopic(_Record):
    id: str
    name: str
    status: str = "not_started"
    needs_review: bool = False
    review_requested_at: Optional[datetime] = None
    last_revised: Optional[datetime] = None
    practice_count: int = 0
    revision_count: int = 0

    _timestamps = ("review_requested_at", "last_revised")


@dataclass
class SyllabusTopic:
    id: str
    name: str
    estimated_hours: Optional[float] = None
    subtopics: list[Subtopic] = field(default_factory=list)
    order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "SyllabusTopic":
        subtopics = []
        for i, sub in enumerate(data.get("subtopics") or []):
            # Older syllabi carry subtopics as bare names.
            if isinstance(sub, str):
                sub = {"id": f"{data['id']}-{i}", "name": sub}
            subtopics.append(Subtopic.from_dict(sub))
        return cls(
            id=data["id"],
            name=data["name"],
            estimated_hours=data.get("estimated_hours"),
            subtopics=subtopics,
            order=data.get("order", 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "estimated_hours": self.estimated_hours,
            "subtopics": [s.to_dict() for s in self.subtopics],
            "order": self.order,
        }


@dataclass
class SyllabusSubject:
    id: str
    name: str
    tier: int = 3
    topics: list[SyllabusTopic] = field(default_factory=list)
    estimated_hours: Optional[float] = None
    order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "SyllabusSubject":
        return cls(
            id=data["id"],
            name=data["name"],
            tier=data.get("tier", 3),
            topics=[SyllabusTopic.from_dict(t) for t in data.get("topics") or []],
            estimated_hours=data.get("estimated_hours"),
            order=data.get("order", 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "topics": [t.to_dict() for t in self.topics],
            "estimated_hours": self.estimated_hours,
            "order": self.order,
        }


@dataclass
class HealthMetrics(_Record):
    energy: int = 5
    sleep_hours: float = 0
    sleep_quality: int = 5
    stress_level: int = 5
    physical_activity: int = 0
    screen_time: float = 0


@dataclass
class StudySession(_Record):
    topic_id: str
    subject_id: str = ""
    minutes: int = 0
    method: str = "reading"
    effectiveness: int = 3
    distractions: int = 0


@dataclass
class DailyGoals(_Record):
    target_minutes: int = 0
    actual_minutes: int = 0
    completed: bool = False


@dataclass
class DailyLog:
    date: str
    health: HealthMetrics = field(default_factory=HealthMetrics)
    studied_topics: list[StudySession] = field(default_factory=list)
    goals: DailyGoals = field(default_factory=DailyGoals)
    mood: int = 3
    productivity: int = 3
    note: str = ""
    challenges: list[str] = field(default_factory=list)
    wins: list[str] = field(default_factory=list)

    @property
    def study_minutes(self) -> int:
        return sum(s.minutes for s in self.studied_topics)

    @classmethod
    def from_dict(cls, data: dict) -> "DailyLog":
        return cls(
            date=data.get("date") or data["id"],
            health=HealthMetrics.from_dict(data.get("health") or {}),
            studied_topics=[StudySession.from_dict(s) for s in data.get("studied_topics") or []],
            goals=DailyGoals.from_dict(data.get("goals") or {}),
            mood=data.get("mood", 3),
            productivity=data.get("productivity", 3),
            note=data.get("note", ""),
            challenges=list(data.get("challenges") or []),
            wins=list(data.get("wins") or []),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UnifiedProgress(_Record):
    total_missions_completed: int = 0
    total_time_invested: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    consistency_rating: int = 0
    updated_at: Optional[datetime] = None

    _timestamps = ("updated_at",)


@dataclass
class RevisionItem:
    topic_id: str
    topic_name: str
    subject_name: str
    tier: int
    mastery_score: float
    days_since_last_revision: int
    priority: str
    estimated_time: float
    last_revised: Optional[datetime] = None
    next_revision: Optional[datetime] = None
    revision_count: int = 0


@dataclass
class ReviewItem:
    type: str
    id: str
    name: str
    subject_id: str
    subject_name: str
    status: str
    needs_review: bool = False
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None
    next_revision: Optional[datetime] = None
    last_revised: Optional[datetime] = None
    practice_count: int = 0
    revision_count: int = 0


@dataclass
class UserProfile(_Record):
    user_id: str
    display_name: str = ""
    email: str = ""
    current_course_id: Optional[str] = None
    preparation_start_date: Optional[datetime] = None
    preferences: dict = field(default_factory=dict)

    _timestamps = ("preparation_start_date",)


@dataclass
class TopicPerformance(_Record):
    topic_id: str
    accuracy: float


@dataclass
class MockTestLog:
    id: str
    date: datetime
    test_name: str = ""
    platform: str = ""
    course_id: Optional[str] = None
    scores: dict = field(default_factory=dict)
    max_scores: dict = field(default_factory=dict)
    topic_performance: list[TopicPerformance] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "MockTestLog":
        return cls(
            id=data["id"],
            date=parse_ts(data["date"]),
            test_name=data.get("test_name", ""),
            platform=data.get("platform", ""),
            course_id=data.get("course_id"),
            scores=dict(data.get("scores") or {}),
            max_scores=dict(data.get("max_scores") or {}),
            topic_performance=[TopicPerformance.from_dict(p) for p in data.get("topic_performance") or []],
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = to_iso(self.date)
        return data


@dataclass
class Note(_Record):
    id: str
    filename: str
    course_id: Optional[str] = None
    topic_id: Optional[str] = None
    content_text: str = ""
    length: int = 0
    imported_at: Optional[datetime] = None

    _timestamps = ("imported_at",)
