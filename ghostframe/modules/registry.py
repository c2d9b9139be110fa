from __future__ import annotations

from typing import Dict, List, Optional

from ghostframe.modules.base import GhostModule
from ghostframe.modules.quiz_ghost import QuizGhostModule
from ghostframe.modules.story_spirit import StorySpiritModule

# Marketplace listing figures for the built-in modules
CATALOG_STATS = {
    "quiz-ghost": {"downloads": 1247, "rating": 4.8, "reviews": 156, "featured": True, "trending": True},
    "story-spirit": {"downloads": 892, "rating": 4.6, "reviews": 98, "featured": True, "trending": False},
}


class ModuleRegistry:
    def __init__(self) -> None:
        self._modules: Dict[str, GhostModule] = {}

    def register(self, module: GhostModule) -> None:
        if not module.module_id:
            raise ValueError("module_id is required")
        self._modules[module.module_id] = module

    def get(self, module_id: str) -> Optional[GhostModule]:
        return self._modules.get(module_id)

    def list(self) -> List[GhostModule]:
        return list(self._modules.values())

    def catalog(self) -> List[dict]:
        entries = []
        for module in self._modules.values():
            entry = module.manifest()
            entry.update(CATALOG_STATS.get(module.module_id, {
                "downloads": 0, "rating": 0.0, "reviews": 0, "featured": False, "trending": False,
            }))
            entries.append(entry)
        return entries

    def search(self, query: Optional[str]) -> List[dict]:
        entries = self.catalog()
        if not query:
            return entries
        needle = query.lower()
        return [
            e for e in entries
            if needle in e["name"].lower()
            or needle in e["description"].lower()
            or any(needle in tag.lower() for tag in e["tags"])
        ]


def build_default_registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    registry.register(QuizGhostModule())
    registry.register(StorySpiritModule())
    return registry


registry = build_default_registry()
