"""Naming conventions used to derive table and column names from entity keys."""

from __future__ import annotations

from enum import Enum, auto


class CharacterClass(Enum):
    DIGIT = auto()
    LOWER = auto()
    UPPER = auto()
    OTHER = auto()

    @classmethod
    def of(cls, character: str) -> CharacterClass:
        if character.isdigit():
            return cls.DIGIT
        if character.islower():
            return cls.LOWER
        if character.isupper():
            return cls.UPPER
        return cls.OTHER


def to_snake_case(identifier: str) -> str:
    """Convert a camelCase identifier to lowercase underscore style.

    A boundary is only inserted on a lowercase -> uppercase transition, so
    acronyms stay together (``HTTPServer`` -> ``httpserver``) and digits never
    start a new word. Dots are kept as they are.
    """

    parts: list[str] = []
    previous: CharacterClass | None = None
    for character in identifier:
        current = CharacterClass.of(character)
        if previous is CharacterClass.LOWER and current is CharacterClass.UPPER:
            parts.append("_")
        parts.append(character.lower())
        previous = current
    return "".join(parts)


def simple_name(entity_key: str) -> str:
    """Return the last dotted segment of an entity key (``a.b.Invoice`` -> ``Invoice``)."""

    return entity_key.rsplit(".", 1)[-1]


def default_table_name(entity_key: str) -> str:
    return to_snake_case(simple_name(entity_key))


def default_id_column(table_name: str) -> str:
    return f"{table_name}_id"


def default_column_name(property_path: str) -> str:
    """Flatten a (possibly nested) property path into a column name."""

    return to_snake_case(property_path.replace(".", "_"))
