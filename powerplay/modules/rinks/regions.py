"""Region helpers: a region is the province plus district of a rink address."""

from typing import Iterable, List, Optional


def extract_region(address: Optional[str]) -> str:
    """'서울특별시 성북구 안암로 145' -> '서울특별시 성북구'"""
    if not address:
        return ""
    parts = address.split()
    return " ".join(parts[:2])


def unique_regions(rinks: Iterable[dict]) -> List[str]:
    regions = {extract_region(rink.get("address")) for rink in rinks}
    regions.discard("")
    return sorted(regions)
