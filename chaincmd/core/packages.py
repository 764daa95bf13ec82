# -*- coding: utf-8 -*-
"""Installed-contract registry (chaincmd.json).

Format
    {
      "contracts": {
        "eth": {
          "0xdAC17F958D2ee523a2206206994597C13D831ec7": {
            "name": "USDT",
            "abi": "./abi/USDT.json",
            "slots": "./abi/USDT.slots.json"
          }
        }
      }
    }

Relative paths resolve from the registry file's directory. An ABI file may be a plain
list or an artifact with an `abi` key.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from chaincmd.core.errors import ChaincmdError
from chaincmd.core.slots import SlotDefinition, SlotsSource

_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


class RegistryError(ChaincmdError):
    status = 404
    exit_code = 2


def is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS.match(value))


@dataclass(frozen=True)
class ContractPackage:
    name: str
    address: str
    platform: str
    abi_path: Optional[Path] = None
    slots_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "platform": self.platform,
            "abi": str(self.abi_path) if self.abi_path else None,
        }

    def load_abi(self) -> List[Dict[str, Any]]:
        if self.abi_path is None or not self.abi_path.exists():
            raise RegistryError(f"ABI file not found for {self.name} ({self.abi_path})")
        try:
            mix = json.loads(self.abi_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RegistryError(f"{self.abi_path}: invalid JSON ({exc})") from exc
        if isinstance(mix, dict) and isinstance(mix.get("abi"), list):
            mix = mix["abi"]
        if not isinstance(mix, list):
            raise RegistryError(f'"{self.abi_path}" should contain an array of ABI items or an artifact JSON')
        return mix

    def load_slots(self) -> List[SlotDefinition]:
        if self.slots_path is None:
            raise RegistryError(f"No slots source registered for {self.name}")
        return SlotsSource.for_path(self.slots_path).load()


class PackageRegistry:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._mtime: Optional[float] = None
        self._packages: List[ContractPackage] = []

    def load(self, *, force: bool = False) -> None:
        with self._lock:
            if not self.path.exists():
                self._packages = []
                self._mtime = None
                return
            mtime = self.path.stat().st_mtime
            if not force and self._mtime == mtime:
                return
            try:
                doc = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise RegistryError(f"{self.path}: invalid JSON ({exc})") from exc
            self._packages = self._parse(doc if isinstance(doc, dict) else {})
            self._mtime = mtime

    def _resolve(self, raw: Optional[str]) -> Optional[Path]:
        if not raw:
            return None
        p = Path(raw).expanduser()
        return p if p.is_absolute() else (self.path.parent / p).resolve()

    def _parse(self, doc: Dict[str, Any]) -> List[ContractPackage]:
        out: List[ContractPackage] = []
        for platform, entries in (doc.get("contracts") or {}).items():
            if not isinstance(entries, dict):
                continue
            for address, row in entries.items():
                row = row if isinstance(row, dict) else {}
                out.append(
                    ContractPackage(
                        name=str(row.get("name") or address),
                        address=str(address),
                        platform=str(platform).lower(),
                        abi_path=self._resolve(row.get("abi")),
                        slots_path=self._resolve(row.get("slots")),
                    )
                )
        return out

    def all(self, platform: Optional[str] = None) -> List[ContractPackage]:
        self.load()
        pkgs = list(self._packages)
        if platform:
            pkgs = [p for p in pkgs if p.platform == str(platform).lower()]
        return sorted(pkgs, key=lambda p: (p.platform, p.name))

    def find(self, name_or_address: str, platform: Optional[str] = None) -> Optional[ContractPackage]:
        """By address or name; the requested platform wins when a name is installed twice."""
        key = str(name_or_address)
        matches = [
            p for p in self.all()
            if p.name == key or (is_address(key) and p.address.lower() == key.lower())
        ]
        if platform:
            preferred = [p for p in matches if p.platform == str(platform).lower()]
            matches = preferred or matches
        return matches[0] if matches else None

    def get(self, name_or_address: str, platform: Optional[str] = None) -> ContractPackage:
        pkg = self.find(name_or_address, platform)
        if pkg is None:
            raise RegistryError(f"Package {name_or_address} not found. `chaincmd contract list` to view installed contracts")
        return pkg
