"""
Structured sub-editors for technical-skills and languages sections.

Each editor holds the decoded structure and, on every effective mutation,
encodes it back to canonical HTML and hands that to `on_change`, so the
section HTML is never edited by hand while the editor is mounted.
"""

from typing import Callable, List, Optional

from src.competence_file.codecs import (
    decode_languages,
    decode_skills,
    encode_languages,
    encode_skills,
)
from src.competence_file.types import (
    DEFAULT_LANGUAGE_LEVEL,
    MAX_LANGUAGE_LEVEL,
    MIN_LANGUAGE_LEVEL,
    LanguageItem,
)

HtmlSink = Callable[[str], None]


class SkillsEditor:
    """Tag list for technical skills; distinctness is case-sensitive."""

    def __init__(self, skills: List[str], on_change: Optional[HtmlSink] = None):
        self._skills = list(skills)
        self._on_change = on_change

    @classmethod
    def from_html(cls, html: str, on_change: Optional[HtmlSink] = None) -> "SkillsEditor":
        return cls(decode_skills(html), on_change)

    @property
    def skills(self) -> List[str]:
        return list(self._skills)

    def __len__(self) -> int:
        return len(self._skills)

    def to_html(self) -> str:
        return encode_skills(self._skills)

    def add(self, value: str) -> bool:
        """Add a trimmed skill; empty values and exact duplicates are ignored."""
        value = (value or "").strip()
        if not value or value in self._skills:
            return False
        self._skills.append(value)
        self._emit()
        return True

    def remove_at(self, index: int) -> bool:
        if not 0 <= index < len(self._skills):
            return False
        del self._skills[index]
        self._emit()
        return True

    def replace(self, skills: List[str]) -> None:
        """Replace the whole list, keeping the first occurrence of each skill."""
        cleaned: List[str] = []
        for skill in skills:
            skill = skill.strip()
            if skill and skill not in cleaned:
                cleaned.append(skill)
        self._skills = cleaned
        self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.to_html())


class LanguagesEditor:
    """Language list with 0-5 levels; names are distinct case-insensitively."""

    def __init__(self, items: List[LanguageItem], on_change: Optional[HtmlSink] = None):
        self._items = [LanguageItem(item.name, item.level) for item in items]
        self._on_change = on_change

    @classmethod
    def from_html(cls, html: str, on_change: Optional[HtmlSink] = None) -> "LanguagesEditor":
        return cls(decode_languages(html), on_change)

    @property
    def items(self) -> List[LanguageItem]:
        return [LanguageItem(item.name, item.level) for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def to_html(self) -> str:
        return encode_languages(self._items)

    def add(self, name: str, level: int = DEFAULT_LANGUAGE_LEVEL) -> bool:
        """Add a language (default Intermediate); blank or known names are ignored."""
        name = (name or "").strip()
        if not name:
            return False
        if any(item.name.lower() == name.lower() for item in self._items):
            return False
        self._items.append(LanguageItem(name, level))
        self._emit()
        return True

    def set_level(self, index: int, level: int) -> bool:
        if not MIN_LANGUAGE_LEVEL <= level <= MAX_LANGUAGE_LEVEL:
            raise ValueError(
                f"Language level must be between {MIN_LANGUAGE_LEVEL} and "
                f"{MAX_LANGUAGE_LEVEL}, got {level}"
            )
        if not 0 <= index < len(self._items):
            return False
        if self._items[index].level == level:
            return False
        self._items[index].level = level
        self._emit()
        return True

    def remove_at(self, index: int) -> bool:
        if not 0 <= index < len(self._items):
            return False
        del self._items[index]
        self._emit()
        return True

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.to_html())
