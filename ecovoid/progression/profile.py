"""
Player Profile - Persisted progress across runs.

The profile lives behind an opaque key-value surface:
- MemoryKeyValueStore: in-process (tests, ephemeral servers)
- JsonFileKeyValueStore: one JSON file per key on local disk

ProfileStore.load() never fails the boot: missing, unreadable or
malformed data yields a fresh profile (and the bad entry is removed).
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Optional, Protocol
import hashlib
import logging

from pydantic import BaseModel, Field, ValidationError

from .catalog import DEFAULT_SCENARIO, FIRST_CHAPTER

logger = logging.getLogger(__name__)

PROFILE_KEY = "eco_game_profile"


# =============================================================================
# Models
# =============================================================================

class ChapterProgress(BaseModel):
    completed: bool = False
    best_score: int = 0
    attempts: int = 0
    best_time: Optional[float] = None
    unlocked_rewards: list[str] = Field(default_factory=list)
    completion_data: dict[str, Any] = Field(default_factory=dict)


class PermanentBoosts(BaseModel):
    max_hand_size: int = 0
    max_pv: int = 0
    max_cor: int = 0
    max_pa: int = 0


class Preferences(BaseModel):
    difficulty: str = "normal"
    auto_save: bool = True
    show_tutorials: bool = True


class PlayerProfile(BaseModel):
    total_score: int = 0
    chapters_progress: dict[str, ChapterProgress] = Field(default_factory=dict)
    permanent_boosts: PermanentBoosts = Field(default_factory=PermanentBoosts)
    unlocked_content: list[str] = Field(default_factory=lambda: [FIRST_CHAPTER, DEFAULT_SCENARIO])
    achievements: list[str] = Field(default_factory=list)
    current_chapter: Optional[str] = None
    preferences: Preferences = Field(default_factory=Preferences)

    def progress_for(self, chapter_id: str) -> ChapterProgress:
        if chapter_id not in self.chapters_progress:
            self.chapters_progress[chapter_id] = ChapterProgress()
        return self.chapters_progress[chapter_id]

    def is_unlocked(self, content_id: str) -> bool:
        return content_id in self.unlocked_content


# =============================================================================
# Persistence
# =============================================================================

class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dictionary-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueStore:
    """
    File-backed storage.

    Usage:
        backend = JsonFileKeyValueStore("~/.ecovoid/profile")
        store = ProfileStore(backend)
    """

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".ecovoid" / "profile"
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        digest = hashlib.sha256(key.encode()).hexdigest()[:8]
        return self.directory / f"{safe}_{digest}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class ProfileStore:
    """load()/save() for the player profile over a key-value backend."""

    def __init__(self, backend: KeyValueStore | None = None, key: str = PROFILE_KEY):
        self.backend = backend if backend is not None else MemoryKeyValueStore()
        self.key = key

    def load(self) -> PlayerProfile:
        raw = self.backend.get(self.key)
        if raw is None:
            return PlayerProfile()
        try:
            return PlayerProfile.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Saved profile is corrupt, starting fresh: %s", e)
            self.backend.delete(self.key)
            return PlayerProfile()

    def save(self, profile: PlayerProfile) -> None:
        self.backend.set(self.key, profile.model_dump_json())

    def clear(self) -> None:
        self.backend.delete(self.key)


def profile_from_dict(data: dict[str, Any]) -> PlayerProfile | None:
    """Validate imported profile data. Returns None if it is malformed."""
    try:
        return PlayerProfile.model_validate(data)
    except ValidationError as e:
        logger.warning("Rejected profile import: %s", e)
        return None
