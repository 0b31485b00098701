"""Runtime configuration read from ``HERMITCRAB_*`` environment variables."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .store.base import DEFAULT_ARCHIVE_TEMPLATE, ArtifactStore
from .store.http import HTTPArtifactStore
from .store.local import LocalArtifactStore


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HERMITCRAB_", case_sensitive=False, extra="ignore")

    cache_dir: Path = Path.home() / ".cache" / "hermitcrab"
    store_url: Optional[str] = None
    store_path: Optional[Path] = None
    archive_template: str = DEFAULT_ARCHIVE_TEMPLATE
    manifest_name: str = "manifest.json"
    latest_series: Optional[str] = None
    root_file: str = "index.html"
    host: str = "127.0.0.1"
    port: int = 8080
    request_timeout: float = 60.0
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def build_store(self) -> ArtifactStore:
        """Artifact store selected by ``store_url`` or ``store_path``."""
        if self.store_url:
            return HTTPArtifactStore(
                self.store_url,
                archive_template=self.archive_template,
                manifest_name=self.manifest_name,
                timeout=self.request_timeout,
            )
        if self.store_path:
            return LocalArtifactStore(self.store_path, archive_template=self.archive_template)
        raise ValueError("either a store URL or a store path must be configured")
