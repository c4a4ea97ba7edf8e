"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Solr
    solr_url: str = Field(
        default="http://localhost:8983/solr/",
        description=(
            "Base URL of the Solr server. A missing trailing slash or "
            "'/solr/' path segment is added automatically."
        ),
    )
    solr_connection_timeout: float = Field(default=10.0, description="Connect timeout in seconds")
    solr_socket_timeout: float = Field(default=60.0, description="Read timeout in seconds")
    solr_default_collection: str = ""

    # Flattening
    max_nesting_depth: int | None = Field(
        default=64,
        description="Maximum object/array nesting accepted by the flattener. None disables the guard.",
    )
    index_object_arrays: bool = Field(
        default=False,
        description=(
            "Flatten arrays of objects with positional suffixes (authors_0_name) "
            "instead of dropping them."
        ),
    )

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton; import `settings` wherever needed.
settings = Settings()
