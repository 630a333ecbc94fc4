"""Ephemeral audit rows, persisted only through their SQL projection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from .columns import ColumnDefinition
    from .enums import Action


@dataclass(frozen=True, slots=True)
class AuditRow:
    source_columns: Mapping[str, object]
    action: Action
    actor_id: str
    timestamp: datetime

    def bind_parameters(
        self,
        columns: Sequence[ColumnDefinition],
        *,
        timestamp_value: object | None = None,
    ) -> tuple[object, ...]:
        """Return positional binds: source columns in ``columns`` order, then audit values."""

        values = [self.source_columns.get(column.name) for column in columns]
        values.append(self.action.value)
        values.append(self.actor_id)
        values.append(self.timestamp if timestamp_value is None else timestamp_value)
        return tuple(values)
