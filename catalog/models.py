"""
Record schema for the language catalog.

Canonical on-disk keys:
    name, description, creationInfo, link

Legacy keys from the first version of the resource are accepted on read:
    nome → name,  descricao → description,  data_criacao → creationInfo

Missing or null fields become "". Numbers (e.g. a bare year) become strings.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", validation_alias=AliasChoices("name", "nome"))
    description: str = Field(
        default="", validation_alias=AliasChoices("description", "descricao")
    )
    creation_info: str = Field(
        default="",
        validation_alias=AliasChoices("creationInfo", "creation_info", "data_criacao"),
        serialization_alias="creationInfo",
    )
    link: str = ""

    @field_validator("name", "description", "creation_info", "link", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        # bool is an int subclass; keep it out so "true" never shows up as a year
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_json(self) -> dict[str, str]:
        """Serialise with the canonical keys."""
        return self.model_dump(by_alias=True)


Catalog = tuple[Record, ...]
