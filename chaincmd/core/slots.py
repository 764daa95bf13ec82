# -*- coding: utf-8 -*-
"""Storage-slot definitions for installed contracts.

Two sources are supported behind one interface:
- `SidecarSlots`: a JSON file holding the list (preferred).
- `GeneratedSourceSlots`: the `$slots = [...]` block embedded in generated client code.
  This is text scraping; keep callers on `SlotsSource.load()` so the format can change.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from chaincmd.core.errors import ChaincmdError


class SlotsError(ChaincmdError):
    pass


@dataclass(frozen=True)
class SlotDefinition:
    name: str
    type: str
    slot: int
    position: int = 0
    size: Optional[int] = None

    @property
    def overridden(self) -> bool:
        """Inheritance shadows are emitted with a trailing `$`."""
        return self.name.endswith("$")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SlotDefinition":
        return cls(
            name=str(raw.get("name") or ""),
            type=str(raw.get("type") or ""),
            slot=int(raw.get("slot") or 0),
            position=int(raw.get("position") or 0),
            size=int(raw["size"]) if raw.get("size") is not None else None,
        )


class SlotsSource:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[SlotDefinition]:
        raise NotImplementedError

    def _read(self) -> str:
        if not self.path.exists():
            raise SlotsError(f"Slots source not found: {self.path}")
        return self.path.read_text(encoding="utf-8")

    @staticmethod
    def _parse(raw: Any, origin: Path) -> List[SlotDefinition]:
        if not isinstance(raw, list):
            raise SlotsError(f"{origin}: slots must be a JSON array")
        return [SlotDefinition.from_dict(x) for x in raw if isinstance(x, dict)]

    @staticmethod
    def for_path(path: Path) -> "SlotsSource":
        if Path(path).suffix.lower() == ".json":
            return SidecarSlots(path)
        return GeneratedSourceSlots(path)


class SidecarSlots(SlotsSource):
    def load(self) -> List[SlotDefinition]:
        try:
            raw = json.loads(self._read())
        except json.JSONDecodeError as exc:
            raise SlotsError(f"{self.path}: invalid JSON ({exc})") from exc
        if isinstance(raw, dict):
            raw = raw.get("slots")
        return self._parse(raw, self.path)


class GeneratedSourceSlots(SlotsSource):
    _START = re.compile(r"^\s*\$slots\s*=\s*\[", re.M)
    _END = re.compile(r"^\s*\]", re.M)

    def extract(self, code: str) -> str:
        start = self._START.search(code)
        if start is None:
            raise SlotsError(f"{self.path} has no generated $slots field")
        end = self._END.search(code, start.end())
        if end is None:
            raise SlotsError(f"{self.path}: end of the $slots value not found")
        return code[start.end() - 1 : end.end()]

    def load(self) -> List[SlotDefinition]:
        block = self.extract(self._read())
        try:
            raw = json.loads(block)
        except json.JSONDecodeError as exc:
            raise SlotsError(f"{self.path}: $slots is not valid JSON ({exc})") from exc
        return self._parse(raw, self.path)
