"""Schemas for loading action catalogs from external data (JSON files, env config)."""

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import ActionKind


class ActionSchema(BaseModel):
    """One action entry of a catalog file."""

    id: str = Field(min_length=1, description="Catalog key (e.g., 'basic1', 'special')")
    display_name: str = Field(min_length=1, description="Name shown to the player")
    base_damage: int = Field(gt=0, description="Damage before variance, multipliers and crits")
    ep_cost: int = Field(ge=0, description="EP spent when the action is used")
    kind: ActionKind = Field(description="Action kind: physical, precision or special")
    hit_chance: float = Field(default=1.0, gt=0.0, le=1.0, description="Probability the action lands")
    cooldown_turns: int = Field(default=0, ge=0, description="Turns before the action can be used again")

    @field_validator("id")
    @classmethod
    def id_is_not_rest(cls, value: str) -> str:
        """'rest' is reserved for the built-in rest action."""
        if value.strip().lower() == "rest":
            raise ValueError("'rest' is a reserved action id")
        return value


class CatalogSchema(BaseModel):
    """A complete action catalog."""

    actions: list[ActionSchema] = Field(min_length=1, description="Actions available to both sides")

    @model_validator(mode="after")
    def ids_are_unique(self) -> "CatalogSchema":
        seen: set[str] = set()
        for action in self.actions:
            if action.id in seen:
                raise ValueError(f"Duplicate action id: {action.id}")
            seen.add(action.id)
        return self
