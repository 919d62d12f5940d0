import logging
import os
from dataclasses import dataclass, field
from typing import List

import yaml

from webspider.domain.starting_point import StartingPoint
from webspider.exceptions import SeedFileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedFile:
    starting_points: List[StartingPoint] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)


def _parse_starting_point(path: str, index: int, entry) -> StartingPoint:
    if not isinstance(entry, dict):
        raise SeedFileError(path, f"starting point #{index} must be a mapping")
    try:
        return StartingPoint(
            name=str(entry.get("name") or ""),
            url=str(entry.get("url") or ""),
            internal_depth=int(entry.get("internal_depth", 0)),
            external_depth=int(entry.get("external_depth", 0)),
            base_url=entry.get("base_url"),
        )
    except (TypeError, ValueError) as e:
        raise SeedFileError(path, f"starting point #{index}: {e}") from e


def load_seed_file(path: str) -> SeedFile:
    """Load starting points and keywords from a YAML file.

    Expected layout:
      keywords: [Foo, Bar]          # string or list of strings
      starting_points:
        - name: N1
          url: http://ex.com/a
          internal_depth: 1
          external_depth: 0
          base_url: http://ex.com   # optional

    Starting point names must be unique, compared case-insensitively.
    """
    if not os.path.isfile(path):
        raise SeedFileError(path, "not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SeedFileError(path, f"could not be read: {e}") from e

    if not data:
        logger.warning("Seed file %s is empty", path)
        return SeedFile()
    if not isinstance(data, dict):
        raise SeedFileError(path, "top level must be a mapping")

    keywords = data.get("keywords") or []
    if isinstance(keywords, str):
        keywords = [keywords]
    keywords = [str(k) for k in keywords if k is not None and str(k).strip()]

    starting_points: List[StartingPoint] = []
    seen = set()
    for index, entry in enumerate(data.get("starting_points") or [], start=1):
        sp = _parse_starting_point(path, index, entry)
        if sp.key in seen:
            raise SeedFileError(path, f"duplicate starting point name '{sp.name}'")
        seen.add(sp.key)
        starting_points.append(sp)

    logger.info("Loaded %d starting point(s) and %d keyword(s) from %s", len(starting_points), len(keywords), path)
    return SeedFile(starting_points=starting_points, keywords=keywords)
