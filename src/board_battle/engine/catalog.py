"""Action catalog - the static, read-only table of actions both sides can use."""

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from .enums import ActionKind
from .errors import ActionNotFoundError, ConfigurationError
from .schemas import ActionSchema, CatalogSchema

# Lower value is evaluated first by the opponent policy (and wins ties)
KIND_PRIORITY = {
    ActionKind.SPECIAL: 0,
    ActionKind.PRECISION: 1,
    ActionKind.PHYSICAL: 2,
}


@dataclass(frozen=True)
class ActionDefinition:
    """An immutable action definition shared by both combatants."""

    id: str
    display_name: str
    base_damage: int
    ep_cost: int
    kind: ActionKind
    hit_chance: float = 1.0
    cooldown_turns: int = 0

    @classmethod
    def from_schema(cls, schema: ActionSchema) -> "ActionDefinition":
        return cls(
            id=schema.id,
            display_name=schema.display_name,
            base_damage=schema.base_damage,
            ep_cost=schema.ep_cost,
            kind=schema.kind,
            hit_chance=schema.hit_chance,
            cooldown_turns=schema.cooldown_turns,
        )


DEFAULT_ACTIONS: tuple[ActionDefinition, ...] = (
    ActionDefinition("basic1", "Golpe Rápido", base_damage=12, ep_cost=10, kind=ActionKind.PHYSICAL),
    ActionDefinition("basic2", "Corte Seguro", base_damage=18, ep_cost=16, kind=ActionKind.PHYSICAL),
    ActionDefinition(
        "precision", "Mira Precisa", base_damage=32, ep_cost=22, kind=ActionKind.PRECISION, hit_chance=0.8
    ),
    ActionDefinition(
        "special",
        "Explosão Máxima",
        base_damage=50,
        ep_cost=30,
        kind=ActionKind.SPECIAL,
        hit_chance=0.95,
        cooldown_turns=2,
    ),
)


class ActionCatalog:
    """Lookup table of action definitions, kept in declaration order."""

    def __init__(self, actions: Iterable[ActionDefinition]) -> None:
        self._actions: dict[str, ActionDefinition] = {}
        for action in actions:
            if action.id in self._actions:
                raise ConfigurationError(f"Duplicate action id: {action.id}")
            self._actions[action.id] = action
        if not self._actions:
            raise ConfigurationError("Action catalog is empty")

    @classmethod
    def default(cls) -> "ActionCatalog":
        """The catalog used by the board game."""
        return cls(DEFAULT_ACTIONS)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ActionCatalog":
        """Build a catalog from raw data.

        Accepts either ``{"actions": [{...}, ...]}`` or a mapping keyed by
        action id (``{"basic1": {...}, ...}``).

        Raises:
            ConfigurationError: if the data does not describe a valid catalog
        """
        if "actions" in data:
            raw = data
        else:
            for key, value in data.items():
                if not isinstance(value, Mapping):
                    raise ConfigurationError(f"Invalid action catalog: entry {key!r} must be an object")
            raw = {"actions": [{"id": key, **value} for key, value in data.items()]}

        try:
            schema = CatalogSchema.model_validate(raw)
        except SchemaValidationError as e:
            raise ConfigurationError(f"Invalid action catalog: {e}") from e

        return cls(ActionDefinition.from_schema(a) for a in schema.actions)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ActionCatalog":
        """Load a catalog from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read action catalog {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Action catalog {path} must contain a JSON object")
        return cls.from_mapping(data)

    def lookup(self, action_id: str) -> ActionDefinition:
        """Get an action by id.

        Raises:
            ActionNotFoundError: if the id is not in the catalog
        """
        try:
            return self._actions[action_id]
        except KeyError:
            raise ActionNotFoundError(action_id) from None

    def ids(self) -> list[str]:
        """Action ids in declaration order."""
        return list(self._actions)

    def evaluation_order(self) -> list[ActionDefinition]:
        """Actions in the order the opponent policy scores them.

        Specials first, then precision, then physical; within a kind the more
        expensive action comes first. For the default catalog this is
        special > precision > basic2 > basic1.
        """
        declared = list(self._actions.values())
        return sorted(
            declared,
            key=lambda a: (KIND_PRIORITY[a.kind], -a.ep_cost, declared.index(a)),
        )

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    def __iter__(self) -> Iterator[ActionDefinition]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)
