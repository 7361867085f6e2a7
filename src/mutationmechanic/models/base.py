"""Shared pydantic base for models persisted or exchanged as camelCase JSON."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire.

    Both spellings are accepted on input so records written by the browser
    dashboard (camelCase) and by Python callers (snake_case) validate alike.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump to a JSON-safe camelCase dictionary."""
        return self.model_dump(mode="json", by_alias=True)
