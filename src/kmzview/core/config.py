"""
Configuration settings for the kmzview application.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        uploads_dir: Directory where uploaded files are stored under their original name
        max_upload_size_mb: Maximum file upload size in megabytes
        max_archive_size_mb: Maximum KMZ archive size accepted by the viewer endpoints
        max_link_depth: Maximum NetworkLink nesting depth (None for unlimited)
        render_link_base: Base path policy used by the map renderer for hrefs
        map_tiles: Tile provider passed to folium
        map_default_center: Initial map center as (lat, lon)
        map_default_zoom: Initial map zoom level
        map_max_zoom: Maximum zoom level of the tile layer
        overlay_opacity: Opacity of ground overlay images
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="KMZVIEW_",
    )

    # Upload settings
    uploads_dir: Path = Path("./Upload")
    max_upload_size_mb: int = 50

    # KMZ processing
    max_archive_size_mb: int = 100
    max_link_depth: Optional[int] = None
    render_link_base: Literal["archive_root", "document"] = "archive_root"

    # Map settings
    map_tiles: str = "OpenStreetMap"
    map_default_center: tuple[float, float] = (0.0, 0.0)
    map_default_zoom: int = 2
    map_max_zoom: int = 18
    overlay_opacity: float = 1.0

    # API settings
    api_v1_prefix: str = "/api/v1"
    port: int = 5000

    # CORS settings
    cors_origins: str = "*"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def max_archive_size_bytes(self) -> int:
        """Get max archive size in bytes."""
        return self.max_archive_size_mb * 1024 * 1024

    def model_post_init(self, __context: object) -> None:
        """Create uploads directory if it doesn't exist."""
        self.uploads_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
