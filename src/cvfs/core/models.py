from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Model(BaseModel):
    """Base for records persisted by a JsonCollection."""

    id: UUID = Field(default_factory=uuid4)

    model_config = ConfigDict(json_schema_serialization_defaults_required=True)


class ApiModel(BaseModel):
    """Base for values returned to clients, serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
    )
