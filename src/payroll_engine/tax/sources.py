"""Jurisdiction configuration sources.

Each (jurisdiction, year) pair maps to one JSON payload. The bundled data
lives in ``payroll_engine/tax/data/<year>/<CODE>.json``, with city and county
rules under ``<year>/local/<STATE>-<LOCALITY>.json``.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Protocol


class ConfigSource(Protocol):
    """Provides raw rule payloads per jurisdiction and year."""

    def available(self) -> list[tuple[str, int]]:
        """List every configured (jurisdiction, year) pair."""
        ...

    def load(self, jurisdiction: str, year: int) -> dict[str, Any] | None:
        """Load one payload, or None when not configured."""
        ...


class JsonConfigSource:
    """Reads payloads from a directory tree of ``<year>/<CODE>.json`` files."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def available(self) -> list[tuple[str, int]]:
        pairs: list[tuple[str, int]] = []
        if not self.directory.is_dir():
            return pairs
        for year_dir in sorted(self.directory.iterdir()):
            if not (year_dir.is_dir() and year_dir.name.isdigit()):
                continue
            paths = sorted(year_dir.glob("*.json")) + sorted(year_dir.glob("local/*.json"))
            for path in paths:
                pairs.append((path.stem.upper(), int(year_dir.name)))
        return pairs

    def load(self, jurisdiction: str, year: int) -> dict[str, Any] | None:
        year_dir = self.directory / str(year)
        name = f"{jurisdiction.upper()}.json"
        path = year_dir / name
        if not path.is_file():
            path = year_dir / "local" / name
        if not path.is_file():
            return None
        # Decimal parsing keeps rates like 0.0145 exact
        return json.loads(path.read_text(encoding="utf-8"), parse_float=Decimal)


class InMemoryConfigSource:
    """Payloads held in memory, keyed by (jurisdiction, year)."""

    def __init__(self, payloads: Mapping[tuple[str, int], dict[str, Any]]):
        self._payloads = {(code.upper(), year): p for (code, year), p in payloads.items()}

    def available(self) -> list[tuple[str, int]]:
        return sorted(self._payloads)

    def load(self, jurisdiction: str, year: int) -> dict[str, Any] | None:
        return self._payloads.get((jurisdiction.upper(), year))
