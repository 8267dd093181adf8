import logging
from typing import List

import requests

from .errors import SourceError

logger = logging.getLogger("ipsetctl.sources")


def parse_entries(text: str) -> List[str]:
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        entries.append(line.split()[0])
    return entries


def fetch_entries(source: str, timeout: int = 30) -> List[str]:
    """Read set entries from a URL or a local file, one per line."""
    if source.startswith(("http://", "https://")):
        logger.info(f"Fetching {source}")
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SourceError(f"unable to fetch {source}: {e}") from e
        text = response.text
    else:
        try:
            with open(source, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise SourceError(f"unable to read {source}: {e}") from e
    entries = parse_entries(text)
    logger.info(f"{len(entries)} entries from {source}")
    return entries
