"""
hierarchy.py — Administrative level model and hierarchy traversal.

The dataset stores one row per smallest administrative unit, with the codes
and names of every enclosing level in the columns GID_0..GID_5 and
NAME_0..NAME_5. A code's level is the first column it appears in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Sequence

from region_lookup.errors import NotFoundError

if TYPE_CHECKING:
    from region_lookup.dataset import RegionDataset

logger = logging.getLogger(__name__)

GID_COLUMNS: tuple[str, ...] = ("GID_0", "GID_1", "GID_2", "GID_3", "GID_4", "GID_5")
NAME_COLUMNS: tuple[str, ...] = ("NAME_0", "NAME_1", "NAME_2", "NAME_3", "NAME_4", "NAME_5")

# Labels emitted on the wire for each level.
_LEVEL_LABELS: tuple[str, ...] = (
    "LEVEL_UNSPECIFIED",
    "PROVINCE",
    "CITY",
    "DISTRICT",
    "VILLAGE",
    "SUBVILLAGE",
)


class Level(IntEnum):
    COUNTRY = 0
    PROVINCE = 1
    CITY = 2
    DISTRICT = 3
    VILLAGE = 4
    SUBVILLAGE = 5

    @property
    def gid_column(self) -> str:
        return GID_COLUMNS[self]

    @property
    def name_column(self) -> str:
        return NAME_COLUMNS[self]

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]

    @property
    def is_leaf(self) -> bool:
        return self is Level.SUBVILLAGE

    @property
    def child(self) -> "Level":
        if self.is_leaf:
            raise ValueError("the sub-village level has no child level")
        return Level(self + 1)

    @property
    def parent(self) -> Optional["Level"]:
        return None if self is Level.COUNTRY else Level(self - 1)


@dataclass(frozen=True)
class HierarchyNode:
    """One administrative region: its code, name, level and parent code."""

    code: str
    name: str
    level: Level
    parent_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "parentCode": self.parent_code or "",
            "level": self.level.label,
        }


@dataclass(frozen=True)
class AdminChain:
    """
    The nested regions containing a point, outermost first.

    Attributes:
        nodes: One HierarchyNode per level that carries a code, each
               parented to the previous node.
    """

    nodes: tuple[HierarchyNode, ...]

    @classmethod
    def from_columns(cls, codes: Sequence[str], names: Sequence[str]) -> "AdminChain":
        """Build a chain from the six GID/NAME values of a dataset row."""
        nodes = []
        parent: Optional[str] = None
        for level in Level:
            code = codes[level]
            if not code:
                continue
            nodes.append(HierarchyNode(code, names[level], level, parent))
            parent = code
        return cls(tuple(nodes))

    @property
    def deepest(self) -> HierarchyNode:
        return self.nodes[-1]

    def to_dict(self) -> dict:
        out: dict = {"level0Name": ""}
        for node in self.nodes:
            out[f"level{int(node.level)}Code"] = node.code
            out[f"level{int(node.level)}Name"] = node.name
        out["list"] = [node.to_dict() for node in self.nodes]
        return out


class HierarchyResolver:
    """Level detection and child enumeration against a RegionDataset."""

    def __init__(self, dataset: "RegionDataset") -> None:
        self.dataset = dataset

    def detect_level(self, code: str) -> Level:
        """
        Return the level whose GID column carries ``code``.

        Levels are probed from 0 upwards, so a code that (anomalously)
        appears at two levels resolves to the lower one.

        Raises:
            NotFoundError: If the code is blank or absent at every level.
        """
        code = (code or "").strip()
        if not code:
            raise NotFoundError("region code required")

        for level in Level:
            if self.dataset.has_code(level, code):
                return level

        raise NotFoundError(f"code {code!r} not found in any level")

    def children_of(self, code: str) -> list[HierarchyNode]:
        """
        Return the distinct direct children of ``code``.

        Children are sorted case-insensitively by name (then by code). A
        sub-village has no children and yields an empty list.

        Raises:
            NotFoundError: If the code is blank or absent at every level.
        """
        code = (code or "").strip()
        level = self.detect_level(code)
        if level.is_leaf:
            return []

        child_level = level.child
        children = {
            (child_code, name)
            for child_code, name in self.dataset.child_pairs(level, code)
            if child_code and name is not None
        }
        nodes = [
            HierarchyNode(child_code, name, child_level, code)
            for child_code, name in children
        ]
        nodes.sort(key=lambda node: (node.name.casefold(), node.code))
        logger.debug("%d children under %s (%s)", len(nodes), code, level.name)
        return nodes
