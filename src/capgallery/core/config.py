"""Configuration management for Caption Gallery.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the CAPGALLERY_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CAPGALLERY_* prefix)
2. .env file in the project root
3. Default values defined in GalleryConfig

Example .env file:
    CAPGALLERY_STORE_URL=https://example.supabase.co
    CAPGALLERY_STORE_ANON_KEY=public-anon-key
    CAPGALLERY_FETCH_LIMIT=1000
    CAPGALLERY_ITEMS_PER_PAGE=100

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from capgallery.core.config import config

    print(config.store_url)
    print(config.fetch_limit)

Remote Store Constraints
------------------------
The remote store caps the number of rows returned by a single request.
``fetch_limit`` must match that cap: the bulk reader treats any response
shorter than ``fetch_limit`` as the last page of a table.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GalleryConfig(BaseSettings):
    """Main configuration for Caption Gallery.

    Values are loaded from environment variables with the CAPGALLERY_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Remote Store Settings:
        store_url : str
            Base URL of the PostgREST-compatible data store
        store_anon_key : str
            Public API key sent with every request
        request_timeout : float
            Per-request HTTP timeout in seconds
        fetch_limit : int
            Maximum rows per range request (the store's row cap)

    Table Settings:
        images_table, images_columns : str
            Image table name and column projection
        captions_table, captions_columns : str
            Caption table name and column projection
        images_order_by, captions_order_by : str | None
            Optional column used to request a stable row ordering

    Presentation Settings:
        items_per_page : int
            Default number of display items per page
        max_page_buttons : int
            Default width of the page navigation window

    Server Settings:
        server_host : str
            Server bind address
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root log level used by the CLI entry point

    Examples
    --------
        >>> custom_config = GalleryConfig(
        ...     store_url="http://localhost:54321",
        ...     fetch_limit=500,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAPGALLERY_",
        case_sensitive=False,
    )

    # Remote store
    store_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the remote data store",
    )
    store_anon_key: str = Field(
        default="",
        description="Public API key sent as the apikey header",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Per-request HTTP timeout in seconds",
        gt=0,
    )
    fetch_limit: int = Field(
        default=1000,
        description="Maximum rows returned by one range request",
        ge=1,
    )

    # Tables
    images_table: str = Field(default="images")
    images_columns: str = Field(default="id, url")
    images_order_by: str | None = Field(
        default=None,
        description="Column used to request a stable image ordering (unordered when unset)",
    )
    captions_table: str = Field(default="captions")
    captions_columns: str = Field(default="content, image_id")
    captions_order_by: str | None = Field(
        default=None,
        description="Column used to request a stable caption ordering (unordered when unset)",
    )

    # Presentation
    items_per_page: int = Field(default=100, ge=1, le=1000)
    max_page_buttons: int = Field(default=5, ge=1, le=50)

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


# Global configuration instance, loaded from CAPGALLERY_* variables and .env.
config = GalleryConfig()
