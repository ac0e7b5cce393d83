from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlalchemy import func, select

from .config import settings
from .database import db_session
from .models import Caption, Image

logger = logging.getLogger(__name__)

_BUNDLED_SEED = Path(__file__).parent / "seed_content.yml"


def load_seed_file(path: str | Path) -> List[Dict[str, Any]]:
    """
    Read a demo catalogue. Expected shape::

        images:
          - id: img-1
            url: https://...
            image_description: ...
            captions:
              - {id: cap-1, content: "...", like_count: 3}
    """
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    images = data.get("images") or []
    if not isinstance(images, list):
        raise ValueError(f"{path}: 'images' must be a list")
    return images


def seed_demo_content(path: str | Path | None = None) -> int:
    """
    Fill an empty catalogue from the seed file for local development.
    Does nothing once any image exists. Returns the number of captions added.
    """
    with db_session() as session:
        if session.execute(select(func.count(Image.id))).scalar_one():
            return 0

    source = path or settings.seed_path or _BUNDLED_SEED
    entries = load_seed_file(source)

    added = 0
    with db_session() as session:
        for entry in entries:
            image = Image(
                id=str(entry["id"]),
                url=entry.get("url"),
                image_description=entry.get("image_description"),
            )
            session.add(image)
            for cap in entry.get("captions") or []:
                session.add(Caption(
                    id=str(cap["id"]),
                    content=cap.get("content"),
                    image_id=image.id,
                    like_count=int(cap.get("like_count", 0)),
                ))
                added += 1
    logger.info("Seeded %d images / %d captions from %s", len(entries), added, source)
    return added
