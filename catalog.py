"""
Static registries: which resources are collected, and for which regions.

Both lists are ordered; the collector walks them in this order and the
order of values inside a run follows from it.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from models import Region, ResourceDefinition

WB_INDICATOR_URL = "https://api.worldbank.org/v2/country/all/indicator/"


# ----------------------------
# Resources
# ----------------------------
# Format: (id, name, type, unit, description, indicator)
_RESOURCES: List[Tuple[str, str, str, str, str, str]] = [
    ("crude-oil", "Crude Oil", "energy", "million barrels/day", "Global crude oil production", "EG.ELC.PETR.ZS"),
    ("natural-gas", "Natural Gas", "energy", "billion cubic meters", "Natural gas production", "EG.ELC.NGAS.ZS"),
    ("coal", "Coal", "energy", "million tonnes", "Coal production and consumption", "EG.ELC.COAL.ZS"),
    ("lithium", "Lithium", "mineral", "thousand tonnes LCE", "Lithium production for batteries", "TX.VAL.MMTL.ZS.UN"),
    ("iron-ore", "Iron Ore", "mineral", "million tonnes", "Iron ore extraction", "TX.VAL.MMTL.ZS.UN"),
    ("wheat", "Wheat", "food", "million tonnes", "Global wheat production and trade", "AG.PRD.FOOD.XD"),
    ("rice", "Rice", "food", "million tonnes", "Global rice production", "AG.PRD.FOOD.XD"),
    ("semiconductors", "Semiconductors", "technology", "billion USD", "Semiconductor production and trade value", "NV.IND.MANF.ZS"),
    ("rare-earth", "Rare Earth Elements", "mineral", "thousand tonnes", "Rare earth extraction", "TX.VAL.MMTL.ZS.UN"),
    ("copper", "Copper", "mineral", "million tonnes", "Copper mining and refining", "TX.VAL.MMTL.ZS.UN"),
]

CATALOG: Tuple[ResourceDefinition, ...] = tuple(
    ResourceDefinition(
        id=rid,
        name=name,
        type=rtype,
        unit=unit,
        description=desc,
        source_url=WB_INDICATOR_URL,
        indicator=indicator,
    )
    for rid, name, rtype, unit, desc, indicator in _RESOURCES
)


# ----------------------------
# Regions (major economies)
# ----------------------------

REGIONS: Tuple[Region, ...] = (
    Region("USA", "United States"),
    Region("CHN", "China"),
    Region("JPN", "Japan"),
    Region("DEU", "Germany"),
    Region("GBR", "United Kingdom"),
    Region("IND", "India"),
    Region("FRA", "France"),
    Region("BRA", "Brazil"),
    Region("SAU", "Saudi Arabia"),
    Region("RUS", "Russia"),
    Region("AUS", "Australia"),
    Region("KOR", "South Korea"),
    Region("TWN", "Taiwan"),
    Region("CHL", "Chile"),
    Region("ARG", "Argentina"),
)


def resolve_targets(
    resource_ids: Optional[Iterable[str]] = None,
    catalog: Iterable[ResourceDefinition] = CATALOG,
) -> List[ResourceDefinition]:
    """Catalog entries selected by `resource_ids`, in catalog order.

    None selects the whole catalog. Unknown ids are ignored.
    """
    if resource_ids is None:
        return list(catalog)
    wanted = set(resource_ids)
    return [r for r in catalog if r.id in wanted]
