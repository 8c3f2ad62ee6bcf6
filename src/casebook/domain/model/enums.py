"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Discriminator for attribute schemas and sidecar attribute rows."""

    BENEVOLENCE_REQUEST = "benevolence_request"
    BENEVOLENCE_RESULT = "benevolence_result"
