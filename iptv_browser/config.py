"""
Configuration management for the IPTV Browser.
Uses pydantic-settings for environment variable loading.
"""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


# Hosts and partial domains observed to block cross-origin playback or to fail
# outright. Matched as substrings of the lower-cased stream URL.
DEFAULT_HOST_DENYLIST = [
    "pluto.tv",
    "plutotv.com",
    "cfd-v4-service-channel-stitcher-use1-1.prd.pluto.tv",
    "service-stitcher.clusters.pluto.tv",
    "alkassdigital.net",
    "vo-live-media.cdb.cdn.orange.com",
    "dev.aftermind.xyz",
    "raycom-accdn-firetv.amagi.tv",
    "bl.webcaster.pro",
    "webstreaming.viewmedia.tv",
    "aasthaott.akamaized.net",
    "live20.bozztv.com",
]

# Logo filename fragments known to be broken upstream
DEFAULT_LOGO_BLOCKLIST = [
    "alternatv.png",
    "cropped-LOGO-NEW.png",
    "5ba5a4abe66dd.png",
    "TBK-logo-2021.png",
    "Logo-BLTV-B-c-Li-u.png",
    "btv-Bac-Ninh-2021.png",
    "KULINAR_TEMP.png",
    "logo-square.png",
    "f-1.png",
    "default_logo-150x150.png",
    "tANAElTS_400x400.jpg",
    "IMG-20230706-142136.jpg",
    "20190716074123890vav.png",
    "go2-logo.png",
    "quran-radio-logo-h-rtl.png",
    "logo-ozhsm5mqi0zh2wnf8es5jbyh39ztnqmbbn9tbey0hw.png",
    "dunya-tv-az.png",
    "Persiana-HD.png",
    "Persiana-Rap.png",
    "logod.jpg",
    "qdtv1.jpg",
    "5fc81016d98cab623846a4f3",
    "IMG-20230629-152623.jpg",
    "6rj9aw.jpg",
    "8v2y8m.png",
    "1-210414213-U60-L.jpg",
    "s202038d.png",
    "Picture1111123.png",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "IPTV Browser"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS Configuration
    # Default allows all origins for development; set IPTV_CORS_ORIGINS for production
    cors_origins: list[str] = ["*"]

    # Rate Limiting (relay endpoint only)
    relay_rate_limit_per_minute: int = 30

    # Data Sources (iptv-org playlists)
    playlist_base: str = "https://iptv-org.github.io/iptv"

    # Reference datasets; None means the JSON files bundled with the package
    catalog_dir: Optional[str] = None

    # Browsing
    page_size: int = 50

    # Retrieval
    direct_timeout_seconds: float = 15.0
    relay_timeout_seconds: float = 10.0
    # e.g. "http://localhost:8000/api/relay"; answers {success, content}
    same_origin_relay: Optional[str] = None
    # Raw relays; the URL-encoded target is appended to each prefix
    public_relays: list[str] = [
        "https://api.allorigins.win/raw?url=",
        "https://corsproxy.io/?",
    ]
    # Hosts the same-origin relay endpoint is willing to fetch from
    relay_allowed_hosts: list[str] = ["iptv-org.github.io"]

    # Accessibility heuristics
    host_denylist: list[str] = DEFAULT_HOST_DENYLIST
    logo_blocklist: list[str] = DEFAULT_LOGO_BLOCKLIST
    # Optional plain-text file with extra denylist entries, one per line
    denylist_file: Optional[str] = None

    # Pydantic V2 configuration
    model_config = SettingsConfigDict(env_prefix="IPTV_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
