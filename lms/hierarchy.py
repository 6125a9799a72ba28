"""Class → Subject → Chapter → Note/Lecture navigation helpers."""
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from . import models
from .config import settings

GENERAL_BUCKET = "General"


def asset_url(path: Optional[str]) -> Optional[str]:
    """Absolute URL of an uploaded asset, always built from ``public_base_url``."""
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return settings.public_base_url.rstrip("/") + "/" + path.lstrip("/")


def chapters_for(db, class_id: Optional[int], subject_id: Optional[int]):
    """Chapters of one subject inside one class, by ``order`` then creation time.

    Both parents are required; with either missing the result is empty.
    """
    if not class_id or not subject_id:
        return []
    return (db.query(models.Chapter)
            .filter(models.Chapter.class_id == class_id, models.Chapter.subject_id == subject_id)
            .order_by(models.Chapter.order.asc(), models.Chapter.created_at.asc(), models.Chapter.id.asc())
            .all())


def group_by_chapter(items: Iterable, chapters: Iterable) -> Dict[str, List]:
    """Bucket notes/lectures under their chapter title.

    Buckets follow the order of ``chapters``; items keep their incoming order.
    Items without a known chapter go to the ``General`` bucket, which comes last.
    Chapters with no items are left out.
    """
    titles = OrderedDict((c.id, c.title) for c in chapters)
    groups: Dict[str, List] = OrderedDict((title, []) for title in titles.values())
    general = []
    for item in items:
        title = titles.get(getattr(item, "chapter_id", None))
        if title is None:
            general.append(item)
        else:
            groups[title].append(item)
    result = OrderedDict((title, found) for title, found in groups.items() if found)
    if general:
        result[GENERAL_BUCKET] = general
    return result
