"""Core data models for the research graph.

Uses Pydantic v2 for validation. Names are the primary key for entities;
there are no surrogate IDs. JSON keys follow the on-disk format
(``entityType``, ``from``, ``relationType``).
"""

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """A node in the research graph."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    entity_type: str = Field(alias="entityType")
    observations: list[str] = Field(default_factory=list)


class Relation(BaseModel):
    """A directed, typed edge between two entity names."""

    model_config = ConfigDict(populate_by_name=True)

    from_entity: str = Field(alias="from")
    to_entity: str = Field(alias="to")
    relation_type: str = Field(alias="relationType")

    @property
    def key(self) -> tuple[str, str, str]:
        """Uniqueness key: (from, to, relationType)."""
        return (self.from_entity, self.to_entity, self.relation_type)

    def other_entity(self, name: str) -> str:
        """Return the entity on the other end of this relation."""
        return self.to_entity if self.from_entity == name else self.from_entity


class KnowledgeGraph(BaseModel):
    """The single persisted aggregate: every entity and relation."""

    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Serialize with on-disk key names."""
        return self.model_dump(mode="json", by_alias=True)


# ─────────────────────────────────────────────────────────────────────────────
# Mutation inputs and results
# ─────────────────────────────────────────────────────────────────────────────


class ObservationAddition(BaseModel):
    """Observations to append to one entity."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    contents: list[str] = Field(default_factory=list)


class ObservationDeletion(BaseModel):
    """Observation strings to remove from one entity."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    observations: list[str] = Field(default_factory=list)


class AddObservationResult(BaseModel):
    """Per-entity delta reported by add_observations."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    added_observations: list[str] = Field(default_factory=list, alias="addedObservations")


class DeleteObservationResult(BaseModel):
    """Per-entity delta reported by delete_observations."""

    model_config = ConfigDict(populate_by_name=True)

    entity_name: str = Field(alias="entityName")
    deleted_observations: list[str] = Field(default_factory=list, alias="deletedObservations")


def dump_all(items: list[BaseModel]) -> list[dict]:
    """Serialize a list of models with their JSON aliases."""
    return [item.model_dump(mode="json", by_alias=True) for item in items]
