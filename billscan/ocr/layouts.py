"""
Layout Profiles

Pixel regions to read in free-text (region) mode, one profile per known
screenshot layout. The defaults were measured on the payment apps the
screenshots come from; extra layouts can be supplied through settings.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from .result import Rect

logger = logging.getLogger(__name__)


# Separator between the fields of one layout line
FIELD_SEPARATOR = "   "


@dataclass(frozen=True)
class RegionSpec:
    """One region to read and the literal text appended to it."""
    rect: Rect
    suffix: str = ""


@dataclass(frozen=True)
class LayoutProfile:
    """A named screenshot layout."""
    layout_id: int
    name: str
    regions: Tuple[RegionSpec, ...] = field(default_factory=tuple)


DEFAULT_LAYOUTS: Tuple[LayoutProfile, ...] = (
    LayoutProfile(1, "bill-detail", (
        RegionSpec(Rect(370, 200, 500, 500)),
        RegionSpec(Rect(760, 200, 800, 550)),
    )),
    LayoutProfile(2, "transfer-receipt", (
        RegionSpec(Rect(220, 100, 320, 600)),
        RegionSpec(Rect(600, 380, 670, 740)),
    )),
    LayoutProfile(3, "payment-success", (
        RegionSpec(Rect(410, 200, 550, 900)),
        RegionSpec(Rect(1090, 740, 1170, 1210), suffix=":00"),
    )),
    LayoutProfile(4, "order-summary", (
        RegionSpec(Rect(230, 200, 310, 700)),
        RegionSpec(Rect(820, 450, 880, 730), suffix=":00"),
    )),
)


def layout_from_dict(data: Dict[str, Any]) -> LayoutProfile:
    """
    Build a profile from its settings form:

        {"id": 5, "name": "...", "regions": [{"rect": [t, l, b, r], "suffix": ""}]}

    Raises:
        ValueError: on a malformed entry
    """
    try:
        regions = tuple(
            RegionSpec(Rect(*(int(v) for v in region["rect"])), str(region.get("suffix", "")))
            for region in data["regions"]
        )
        return LayoutProfile(int(data["id"]), str(data.get("name", f"layout-{data['id']}")), regions)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed layout entry {data!r}: {e}") from e


def build_layouts(extra: Iterable[Dict[str, Any]] = ()) -> List[LayoutProfile]:
    """
    Default layouts plus the ones from settings, sorted by id.

    A settings entry with the id of a default layout replaces it.
    """
    layouts = {layout.layout_id: layout for layout in DEFAULT_LAYOUTS}
    for data in extra:
        try:
            layout = layout_from_dict(data)
        except ValueError as e:
            logger.warning(f"Ignoring layout: {e}")
            continue
        layouts[layout.layout_id] = layout
    return [layouts[k] for k in sorted(layouts)]
