from .mapper import EXPORTER_VERSION, map_families
from .pipeline import scrape
from .renderer import CONTENT_TYPE, SnapshotCollector, render

__all__ = [
    "EXPORTER_VERSION",
    "map_families",
    "render",
    "CONTENT_TYPE",
    "SnapshotCollector",
    "scrape",
]
