# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ApiSettings:
    """Runtime settings for the API server.

    Notes
    - api_prefix is where compiled command routes live ('/api' -> /api/contract/read/...).
    - root_path is for reverse-proxy mount (e.g. '/chain'); FastAPI applies it.
    """

    api_prefix: str = "/api"
    root_path: str = ""
    cors_allow_origins: Optional[List[str]] = None
    gzip_minimum_size: int = 800

    @staticmethod
    def normalize_root_path(root_path: str) -> str:
        rp = (root_path or "").strip()
        if not rp:
            return ""
        if not rp.startswith("/"):
            rp = "/" + rp
        rp = rp.rstrip("/")
        return rp

    @classmethod
    def normalize_prefix(cls, prefix: str) -> str:
        return cls.normalize_root_path(prefix)
