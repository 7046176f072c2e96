"""Runtime configuration service."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rms.core.exceptions import NotFoundError, ValidationError
from rms.models.config import ConfigCategory, ConfigEntry
from rms.models.result import ExamType
from rms.schemas.config import ConfigUpdate
from rms.services.grading import (
    DEFAULT_GRADE_BANDS,
    GradeBand,
    bands_from_mapping,
    mapping_from_bands,
)

logger = logging.getLogger(__name__)

GRADE_MAPPING = "GRADE_MAPPING"
EXAM_TYPES = "EXAM_TYPES"
PASSING_PERCENTAGE = "PASSING_PERCENTAGE"
ATTENDANCE_THRESHOLD = "ATTENDANCE_THRESHOLD"

DEFAULT_CONFIGS: list[dict[str, Any]] = [
    {
        "key": GRADE_MAPPING,
        "value": mapping_from_bands(DEFAULT_GRADE_BANDS),
        "category": ConfigCategory.GRADING,
        "description": "Percentage bands and grade points per grade",
    },
    {
        "key": EXAM_TYPES,
        "value": [e.value for e in ExamType],
        "category": ConfigCategory.EXAM,
        "description": "Exam types results can be recorded for",
    },
    {
        "key": PASSING_PERCENTAGE,
        "value": 40,
        "category": ConfigCategory.GRADING,
        "description": "Default pass percentage for new subjects",
    },
    {
        "key": ATTENDANCE_THRESHOLD,
        "value": 75,
        "category": ConfigCategory.ACADEMIC,
        "description": "Minimum attendance percentage",
    },
]


class ConfigService:
    """Admin-editable configuration stored in the database."""

    def __init__(self, db: Session):
        self.db = db

    def _get_entry(self, key: str) -> ConfigEntry | None:
        return self.db.execute(
            select(ConfigEntry).where(ConfigEntry.key == key.upper())
        ).scalar_one_or_none()

    def seed_defaults(self) -> int:
        """Insert missing default rows; existing rows are left untouched."""
        created = 0
        for default in DEFAULT_CONFIGS:
            if self._get_entry(default["key"]) is None:
                self.db.add(ConfigEntry(**default))
                created += 1
        self.db.flush()
        if created:
            logger.info(f"Seeded {created} default config entries")
        return created

    def get_value(self, key: str, default: Any = None) -> Any:
        entry = self._get_entry(key)
        if entry is None or not entry.is_active:
            return default
        return entry.value

    def get_config(self, key: str) -> ConfigEntry:
        entry = self._get_entry(key)
        if entry is None:
            raise NotFoundError("Config", key)
        return entry

    def list_configs(self, category: ConfigCategory | None = None) -> list[ConfigEntry]:
        query = select(ConfigEntry)
        if category:
            query = query.where(ConfigEntry.category == category)
        return list(self.db.execute(query.order_by(ConfigEntry.key)).scalars().all())

    def update_config(self, key: str, request: ConfigUpdate, updated_by_id: int) -> tuple[ConfigEntry, dict]:
        """Update a config row; returns the row and its previous value."""
        entry = self.get_config(key)
        before = {"value": entry.value, "is_active": entry.is_active}

        if entry.key == GRADE_MAPPING:
            try:
                bands_from_mapping(request.value)
            except ValueError as e:
                raise ValidationError(str(e), {"key": entry.key})
        elif entry.key == EXAM_TYPES:
            allowed = {e.value for e in ExamType}
            if not isinstance(request.value, list) or not set(request.value) <= allowed:
                raise ValidationError(
                    "Exam types must be a list drawn from the supported types",
                    {"allowed": sorted(allowed)},
                )
        elif entry.key in (PASSING_PERCENTAGE, ATTENDANCE_THRESHOLD):
            if isinstance(request.value, bool) or not isinstance(request.value, (int, float)) or not 0 <= request.value <= 100:
                raise ValidationError(f"{entry.key} must be a number between 0 and 100")

        entry.value = request.value
        if request.description is not None:
            entry.description = request.description
        if request.is_active is not None:
            entry.is_active = request.is_active
        entry.updated_by_id = updated_by_id
        self.db.flush()
        self.db.refresh(entry)
        return entry, before

    def get_grade_bands(self) -> tuple[GradeBand, ...]:
        """Configured band table, falling back to the defaults."""
        mapping = self.get_value(GRADE_MAPPING)
        if mapping is None:
            return DEFAULT_GRADE_BANDS
        try:
            return bands_from_mapping(mapping)
        except ValueError as e:
            logger.warning(f"Ignoring malformed {GRADE_MAPPING}: {e}")
            return DEFAULT_GRADE_BANDS
