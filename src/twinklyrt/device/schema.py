"""Pydantic models for the products.json catalog."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ProductFamily(BaseModel):
    """One Twinkly product line and the SKUs that belong to it."""

    family: str = Field(min_length=1, description="Display name (e.g., 'Strings')")
    image: str = Field(description="Product image URL")
    product_codes: list[str] = Field(
        default_factory=list, description="SKUs reported as product_code by /gestalt"
    )

    @field_validator("product_codes")
    @classmethod
    def normalize_codes(cls, v: list[str]) -> list[str]:
        return [code.strip().upper() for code in v if code.strip()]


class ProductCatalogSchema(BaseModel):
    """Root schema for products.json."""

    families: list[ProductFamily] = Field(default_factory=list)

    @classmethod
    def from_json_file(cls, path: Path) -> "ProductCatalogSchema":
        with open(path) as f:
            return cls.model_validate_json(f.read())
