"""Health check schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    collections: list[str] = Field(default_factory=list, description="Probed collections")
    catalog_path: str = Field(..., description="Index catalog the CLI tools update")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "0.1.0",
                    "environment": "development",
                    "collections": ["orders", "members", "products", "admins"],
                    "catalog_path": "firestore.indexes.json",
                }
            ]
        }
    }
