from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Region(StrEnum):
    PRAGUE = "prague"
    STREDOCESKY = "stredocesky"
    KARLOVARSKY = "karlovarsky"
    PLZENSKY = "plzensky"
    USTECKY = "ustecky"
    JIHOCESKY = "jihocesky"
    LIBERECKY = "liberecky"
    KRALOVEHRADECKY = "kralovehradecky"
    PARDUBICKY = "pardubicky"
    VYSOCINA = "vysocina"
    JIHOMORAVSKY = "jihomoravsky"
    OLOMOUCKY = "olomoucky"
    ZLINSKY = "zlinsky"
    MORAVSKOSLEZSKY = "moravskoslezsky"


DEFAULT_REGION = Region.PRAGUE


@dataclass(frozen=True)
class RegionInfo:
    value: str
    label: str
    coefficient: float  # price multiplier relative to Praha
    csv_name: str  # "nazevkraj" column of the PSČ register

    def as_dict(self) -> dict:
        return {"value": self.value, "label": self.label, "coefficient": self.coefficient}


REGIONS: tuple[RegionInfo, ...] = (
    RegionInfo(Region.PRAGUE, "Praha", 1.0, "Hlavní město Praha"),
    RegionInfo(Region.STREDOCESKY, "Středočeský kraj", 0.96078, "Středočeský"),
    RegionInfo(Region.KARLOVARSKY, "Karlovarský kraj", 0.72549, "Karlovarský"),
    RegionInfo(Region.PLZENSKY, "Plzeňský kraj", 0.75686, "Plzeňský"),
    RegionInfo(Region.USTECKY, "Ústecký kraj", 0.69019, "Ústecký"),
    RegionInfo(Region.JIHOCESKY, "Jihočeský kraj", 0.75294, "Jihočeský"),
    RegionInfo(Region.LIBERECKY, "Liberecký kraj", 0.76863, "Liberecký"),
    RegionInfo(Region.KRALOVEHRADECKY, "Královéhradecký kraj", 0.75294, "Královéhradecký"),
    RegionInfo(Region.PARDUBICKY, "Pardubický kraj", 0.75294, "Pardubický"),
    RegionInfo(Region.VYSOCINA, "Kraj Vysočina", 0.68235, "Vysočina"),
    RegionInfo(Region.JIHOMORAVSKY, "Jihomoravský kraj", 0.82352, "Jihomoravský"),
    RegionInfo(Region.OLOMOUCKY, "Olomoucký kraj", 0.71372, "Olomoucký"),
    RegionInfo(Region.ZLINSKY, "Zlínský kraj", 0.71372, "Zlínský"),
    RegionInfo(Region.MORAVSKOSLEZSKY, "Moravskoslezský kraj", 0.65098, "Moravskoslezský"),
)


class RegionTable:
    """Lookup over a region list; tests can pass their own rows."""

    def __init__(self, regions: tuple[RegionInfo, ...] | list[RegionInfo] = REGIONS):
        self._by_key = {str(r.value): r for r in regions}
        self._by_csv_name = {r.csv_name: r for r in regions}

    def get(self, key: str | None) -> RegionInfo | None:
        if key is None:
            return None
        return self._by_key.get(str(key))

    def by_csv_name(self, name: str) -> RegionInfo | None:
        return self._by_csv_name.get(name.strip())

    def available(self) -> list[dict]:
        return [r.as_dict() for r in self._by_key.values()]


def get_available_regions() -> list[dict]:
    return RegionTable().available()
