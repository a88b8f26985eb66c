from pydantic import BaseModel, ConfigDict, field_validator


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str

    @field_validator("type", mode="before")
    @classmethod
    def type_as_text(cls, v):
        return getattr(v, "value", v)
