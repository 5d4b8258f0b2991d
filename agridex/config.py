from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationInfo, ValidatorFunctionWrapHandler, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AGRICOLACARDS_URL = "https://www.agricolacards.com/get-cards"
DEFAULT_NORGE_URL = "https://agricola.no/play-agricola-4player-card-statistics/"
DEFAULT_PLAY_AGRICOLA_URLS = "https://play-agricola.com/Agricola/Cards/index.php?id=1174"
DEFAULT_BGG_SOURCE_URL = "https://boardgamegeek.com/boardgame/31260/agricola/files"


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


class Settings(BaseSettings):
    """Pipeline settings loaded from environment.

    Every override is read as a string and replaced by the built-in
    default when it is blank or does not parse.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "agridex"

    # Working tree that holds datasets/, data/raw/, public/ and reports/
    root_dir: Path = Path(".")

    agricolacards_url: str = DEFAULT_AGRICOLACARDS_URL
    # AgricolaDB has no stable public endpoint; blank disables the live fetch
    agricoladb_url: str = ""
    norge_url: str = DEFAULT_NORGE_URL
    play_agricola_urls: str = DEFAULT_PLAY_AGRICOLA_URLS
    bgg_source_url: str = DEFAULT_BGG_SOURCE_URL

    http_timeout: float = 30.0

    # Fixed generation timestamp for reproducible output (ISO-8601)
    generated_at: str = ""

    # Datasets that must be present before the index is published
    required_dataset_ids: str = "agricolacards_get_cards_local,agricola_norge_full_4p_play_agricola"

    @field_validator("agricolacards_url", "norge_url", "bgg_source_url", mode="before")
    @classmethod
    def _fallback_url(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and _is_absolute_url(value.strip()):
            return value.strip()
        return cls.model_fields[info.field_name].default

    @field_validator("agricoladb_url", mode="before")
    @classmethod
    def _optional_url(cls, value: Any) -> Any:
        if isinstance(value, str) and _is_absolute_url(value.strip()):
            return value.strip()
        return ""

    @field_validator("http_timeout", mode="wrap")
    @classmethod
    def _fallback_timeout(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> float:
        default = float(cls.model_fields["http_timeout"].default)
        try:
            timeout = float(handler(value))
        except ValueError:
            # pydantic's ValidationError is a ValueError subclass
            return default
        return timeout if timeout > 0 else default

    @property
    def play_agricola_url_list(self) -> list[str]:
        urls = [url.strip() for url in self.play_agricola_urls.split(",")]
        valid = [url for url in urls if _is_absolute_url(url)]
        return valid or [DEFAULT_PLAY_AGRICOLA_URLS]

    @property
    def required_dataset_id_set(self) -> frozenset[str]:
        return frozenset(
            dataset_id.strip()
            for dataset_id in self.required_dataset_ids.split(",")
            if dataset_id.strip()
        )

    @property
    def datasets_dir(self) -> Path:
        """Published dataset packages and index.json."""
        return self.root_dir / "public" / "datasets"

    @property
    def raw_data_dir(self) -> Path:
        """Cached raw snapshots (HTML / JSON) from live fetches."""
        return self.root_dir / "data" / "raw"

    @property
    def reports_dir(self) -> Path:
        return self.root_dir / "reports"

    @property
    def imports_dir(self) -> Path:
        return self.root_dir / "datasets" / "_imports"

    @property
    def bgg_imports_dir(self) -> Path:
        return self.root_dir / "datasets" / "_bgg"

    @property
    def alias_path(self) -> Path:
        return self.root_dir / "datasets" / "_aliases.json"


settings = Settings()
