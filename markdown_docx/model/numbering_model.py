"""Numbering model describes the list definitions written into numbering.xml."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

BULLET_NUM_ID = 1
ORDERED_NUM_ID = 2
BULLET_ABSTRACT_ID = 0
ORDERED_ABSTRACT_ID = 1
MAX_LIST_LEVEL = 1


@dataclass(slots=True)
class NumberingLevel:
    """Defines numbering behavior for a specific indentation level."""

    level_index: int
    start: int
    num_format: str
    level_text: str
    alignment: str = "left"
    indent_left: int = 720
    hanging: int = 360


@dataclass(slots=True)
class NumberingOverride:
    """Restart applied to a numbering instance for one level."""

    level_index: int
    start_override: int


@dataclass(slots=True)
class AbstractNumberingDefinition:
    """Template describing multi-level numbering behavior."""

    abstract_num_id: int
    multi_level_type: str
    levels: Dict[int, NumberingLevel] = field(default_factory=dict)


@dataclass(slots=True)
class NumberingInstance:
    """Concrete numbering instance bound to an abstract definition."""

    num_id: int
    abstract_num_id: int
    overrides: Dict[int, NumberingOverride] = field(default_factory=dict)


@dataclass(slots=True)
class NumberingCatalog:
    """Collection of abstract definitions and concrete numbering instances."""

    abstracts: Dict[int, AbstractNumberingDefinition]
    instances: Dict[int, NumberingInstance]
    _ordered_used: bool = False

    @classmethod
    def default(cls) -> "NumberingCatalog":
        """Bullet and ordinal definitions with two levels each."""
        bullet = AbstractNumberingDefinition(
            abstract_num_id=BULLET_ABSTRACT_ID,
            multi_level_type="hybridMultilevel",
            levels={
                0: NumberingLevel(0, 1, "bullet", "•", indent_left=720),
                1: NumberingLevel(1, 1, "bullet", "◦", indent_left=1440),
            },
        )
        ordered = AbstractNumberingDefinition(
            abstract_num_id=ORDERED_ABSTRACT_ID,
            multi_level_type="hybridMultilevel",
            levels={
                0: NumberingLevel(0, 1, "decimal", "%1.", indent_left=720),
                1: NumberingLevel(1, 1, "lowerLetter", "%2.", indent_left=1440),
            },
        )
        return cls(
            abstracts={bullet.abstract_num_id: bullet, ordered.abstract_num_id: ordered},
            instances={
                BULLET_NUM_ID: NumberingInstance(BULLET_NUM_ID, BULLET_ABSTRACT_ID),
                ORDERED_NUM_ID: NumberingInstance(ORDERED_NUM_ID, ORDERED_ABSTRACT_ID),
            },
        )

    def start_ordered_list(self) -> int:
        """Return the numId for a new ordered list, restarting its count at 1."""
        if not self._ordered_used:
            self._ordered_used = True
            return ORDERED_NUM_ID
        num_id = max(self.instances) + 1
        abstract = self.abstracts[ORDERED_ABSTRACT_ID]
        self.instances[num_id] = NumberingInstance(
            num_id=num_id,
            abstract_num_id=ORDERED_ABSTRACT_ID,
            overrides={
                index: NumberingOverride(index, level.start) for index, level in abstract.levels.items()
            },
        )
        return num_id

    def abstract_for(self, num_id: int) -> AbstractNumberingDefinition:
        """Resolve the abstract definition a numbering instance is bound to."""
        instance = self.instances[num_id]
        try:
            return self.abstracts[instance.abstract_num_id]
        except KeyError:
            raise ValueError(f"numId {num_id} refers to unknown abstractNumId {instance.abstract_num_id}") from None
