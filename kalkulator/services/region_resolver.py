from __future__ import annotations

import csv
import io
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Optional

import httpx

from kalkulator.core.logging_config import logger
from kalkulator.core.settings import get_settings
from kalkulator.domain.regions import RegionTable

CSV_DELIMITER = ";"
ZIP_COLUMN = 2  # psc
REGION_COLUMN = 8  # nazevkraj

DEFAULT_MAPPING_PATH = Path(__file__).resolve().parents[1] / "data" / "zv_cobce_psc.csv"

_ZIP_RE = re.compile(r"^\d{5}$")


def normalize_zip_code(zip_code: object) -> str:
    return re.sub(r"\s+", "", str(zip_code or ""))


def is_valid_zip_code(zip_code: object) -> bool:
    return bool(_ZIP_RE.match(normalize_zip_code(zip_code)))


def parse_zip_mapping(text: str, regions: RegionTable) -> dict[str, str]:
    """
    Parse the PSČ register (';'-separated, header row first) into {psc: region key}.
    Rows that are too short or name an unknown region are skipped.
    """
    mapping: dict[str, str] = {}
    reader = csv.reader(io.StringIO(text), delimiter=CSV_DELIMITER)
    next(reader, None)
    for row in reader:
        if len(row) <= REGION_COLUMN:
            continue
        zip_code = normalize_zip_code(row[ZIP_COLUMN])
        region = regions.by_csv_name(row[REGION_COLUMN])
        if zip_code and region is not None:
            mapping[zip_code] = str(region.value)
    return mapping


class RegionResolver:
    """
    PSČ -> region key.

    The mapping is loaded lazily on first lookup and kept for the lifetime of the
    resolver. Any load failure degrades to an empty mapping so that pricing falls
    back to the default region instead of failing.
    """

    def __init__(
        self,
        *,
        mapping: Optional[Mapping[str, str]] = None,
        mapping_path: Optional[str | Path] = None,
        mapping_url: Optional[str] = None,
        timeout_seconds: float = 3.0,
        skip: bool = False,
        regions: Optional[RegionTable] = None,
        fetch: Optional[Callable[[str, float], str]] = None,
    ):
        self.regions = regions or RegionTable()
        self.mapping_path = Path(mapping_path) if mapping_path else DEFAULT_MAPPING_PATH
        self.mapping_url = mapping_url
        self.timeout_seconds = timeout_seconds
        self.skip = skip
        self._fetch = fetch or _http_fetch
        self._mapping: Optional[dict[str, str]] = dict(mapping) if mapping is not None else None

    @classmethod
    def from_settings(cls) -> "RegionResolver":
        s = get_settings()
        return cls(
            mapping_path=s.zip_mapping_path,
            mapping_url=s.zip_mapping_url,
            timeout_seconds=s.zip_resolve_timeout_seconds,
            skip=s.skip_zip_resolve,
        )

    def resolve(self, zip_code: object) -> Optional[str]:
        code = normalize_zip_code(zip_code)
        if not code:
            return None
        return self.mapping().get(code)

    def mapping(self) -> dict[str, str]:
        if self.skip:
            return {}
        if self._mapping is None:
            self._mapping = self._load()
        return self._mapping

    # -----------------
    # internals
    # -----------------

    def _load(self) -> dict[str, str]:
        try:
            if self.mapping_url:
                text = self._fetch(self.mapping_url, self.timeout_seconds)
                source = self.mapping_url
            else:
                text = self.mapping_path.read_text(encoding="utf-8-sig")
                source = str(self.mapping_path)
        except (OSError, httpx.HTTPError) as e:
            logger.error("zip_mapping_load_failed", error=repr(e))
            return {}

        mapping = parse_zip_mapping(text, self.regions)
        logger.info("zip_mapping_loaded", source=source, entries=len(mapping))
        return mapping


def _http_fetch(url: str, timeout_seconds: float) -> str:
    with httpx.Client(timeout=timeout_seconds) as client:
        response = client.get(url)
        response.raise_for_status()
        return response.text


@lru_cache(maxsize=1)
def get_region_resolver() -> RegionResolver:
    return RegionResolver.from_settings()
