"""Persist and load import header-alias profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List


@dataclass
class AliasProfile:
    """Extra header aliases per logical import field (``name``, ``contact``, a category key...)."""

    aliases: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "AliasProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        raw = data.get("aliases", {})
        aliases: Dict[str, List[str]] = {}
        for key, value in raw.items():
            if isinstance(value, str):
                value = [value]
            aliases[str(key)] = [str(item) for item in value if str(item).strip()]
        return cls(aliases=aliases)

    def save(self, path: Path) -> None:
        payload = {"aliases": self.aliases}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def merged(self, other: "AliasProfile") -> "AliasProfile":
        """Combine two profiles; aliases from ``other`` are tried after ours."""

        combined = {key: list(values) for key, values in self.aliases.items()}
        for key, values in other.aliases.items():
            existing = combined.setdefault(key, [])
            existing.extend(value for value in values if value not in existing)
        return AliasProfile(aliases=combined)
