"""Study materials service layer.

Publishing is course-anchored (live course owner). Deletion is
creator-anchored: only the teacher recorded on the material may delete it,
even after the course was reassigned to someone else.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from backend.academics.domain import normalize_material_type, normalize_title, require_id
from backend.academics.errors import InvalidInputError
from backend.academics.ownership import require_course_owner, require_material_creator


class MaterialsRepoProtocol(Protocol):
    """Repository contract expected by the materials service."""

    def get_course(self, course_id: str) -> Optional[dict]: ...

    def get_material(self, material_id: str) -> Optional[dict]: ...

    def create_material(
        self, *, title: str, file_url: str, type: str, teacher_id: str, course_id: str
    ) -> dict: ...

    def delete_material(self, material_id: str) -> Optional[dict]: ...


def _normalize_file_url(value: object) -> str:
    if not isinstance(value, str):
        raise InvalidInputError("invalid_file_url")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > 2048:
        raise InvalidInputError("invalid_file_url")
    return trimmed


@dataclass
class MaterialsService:
    """Encapsulate study material use cases independent of web adapters."""

    repo: MaterialsRepoProtocol

    def publish_material(
        self,
        teacher_id: str,
        *,
        title: object,
        course_id: object,
        file_url: object,
        type: object,
    ) -> dict:
        # Type is checked before any lookup so a bad type never reaches the store.
        material_type = normalize_material_type(type)
        course = require_course_owner(self.repo, require_id(course_id, "invalid_course_id"), teacher_id)
        return self.repo.create_material(
            title=normalize_title(title),
            file_url=_normalize_file_url(file_url),
            type=material_type,
            teacher_id=str(teacher_id),
            course_id=str(course["id"]),
        )

    def delete_material(self, teacher_id: str, material_id: str) -> dict:
        material = require_material_creator(self.repo, require_id(material_id, "invalid_material_id"), teacher_id)
        deleted = self.repo.delete_material(str(material["id"]))
        return deleted or material
