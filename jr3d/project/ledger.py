from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class IdRemapLedger:
    """Old-ID to new-ID maps built while one import runs.

    Created per import and passed through the phases; dicts keep insertion
    order, so iteration follows restoration order.
    """
    model_ids: Dict[str, str] = field(default_factory=dict)
    clip_ids: Dict[str, str] = field(default_factory=dict)
    spine_ids: Dict[str, str] = field(default_factory=dict)

    def record_model(self, old_id: str, new_id: str) -> None:
        self.model_ids[old_id] = new_id

    def record_clip(self, old_id: str, new_id: str) -> None:
        self.clip_ids[old_id] = new_id

    def record_spine(self, old_id: str, new_id: str) -> None:
        self.spine_ids[old_id] = new_id

    def model(self, old_id: Optional[str]) -> Optional[str]:
        return self.model_ids.get(old_id) if old_id else None

    def clip(self, old_id: Optional[str]) -> Optional[str]:
        return self.clip_ids.get(old_id) if old_id else None

    def spine(self, old_id: Optional[str]) -> Optional[str]:
        return self.spine_ids.get(old_id) if old_id else None

    def clip_or_stale(self, old_id: str) -> str:
        return self.clip_ids.get(old_id, old_id)
