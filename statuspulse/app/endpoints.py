import logging
from typing import Any, List
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

def _url_of(entry: Any) -> str | None:
    if isinstance(entry, str):
        return entry.strip() or None
    if isinstance(entry, dict) and isinstance(entry.get("url"), str):
        return entry["url"].strip() or None
    return None

def load_endpoints(path: str | Path) -> List[str]:
    """Load the configured endpoint URLs.

    Accepts a plain list of URLs (``["https://a", ...]``) or a mapping with an
    ``endpoints`` key whose items are URLs or ``{"url": ...}`` objects. JSON
    files are read through the same YAML loader. A missing or malformed file
    yields an empty list; the error is logged, never raised.
    """
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.error(f"Failed to load endpoint config {p}: {e}")
        return []

    if isinstance(data, dict):
        data = data.get("endpoints", [])
    if not isinstance(data, list):
        logger.error(f"Endpoint config {p} must be a list of URLs, got {type(data).__name__}")
        return []

    # Remove duplicates while preserving order
    seen = set()
    out = []
    for e in data:
        url = _url_of(e)
        if url is None:
            logger.warning(f"Skipping invalid endpoint entry in {p}: {e!r}")
            continue
        if url in seen:
            continue
        seen.add(url)
        out.append(url)

    logger.info(f"Configuration loaded successfully. {len(out)} endpoints configured.")
    return out
