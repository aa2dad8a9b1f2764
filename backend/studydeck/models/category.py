from pydantic import Field

from studydeck.models.base import ApiModel


class CategoryCreate(ApiModel):
    name: str = Field(min_length=1)
    description: str | None = None


class Category(ApiModel):
    id: int
    name: str
    description: str | None = None
