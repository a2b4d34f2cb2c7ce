"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_server_selection_timeout_ms: int = 5000
    # Site key -> database name (each site also uses its key as collection name)
    mongo_databases: dict[str, str] = {
        "caterchoice": "caterchoice",
        "adams": "adams",
        "metro": "metro",
    }

    # ==========================================================================
    # Output Paths
    # ==========================================================================
    output_dir: str = "LocalStorage"  # JSON result files
    image_root: str = "images"  # Downloaded images, one folder per site
    debug_dir: str = "screenshots"  # Screenshots and raw HTML dumps
    log_dir: str = "logs"

    # ==========================================================================
    # Browser Settings
    # ==========================================================================
    slow_mo_ms: int = 50  # Delay between browser operations
    capture_screenshots: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )

    # ==========================================================================
    # Timeouts (milliseconds unless noted)
    # ==========================================================================
    navigation_timeout_ms: int = 60000
    load_idle_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    grid_timeout_ms: int = 10000
    offset_grid_timeout_ms: int = 20000  # Missing grid ends offset pagination
    detail_page_timeout_ms: int = 30000
    detail_idle_timeout_ms: int = 15000
    login_field_timeout_ms: int = 30000
    login_settle_ms: int = 2000  # Wait after each submit strategy before checking the URL
    login_click_timeout_ms: int = 5000
    image_timeout_seconds: float = 30.0

    # ==========================================================================
    # Traversal Caps
    # ==========================================================================
    max_numbered_pages: int = 30
    offset_page_size: int = 60  # Metro lists 60 items per page
    max_offset_pages: int = 50
    max_load_more_clicks: int = 20
    detail_page_max_reloads: int = 2

    # ==========================================================================
    # Site Credentials
    # ==========================================================================
    caterchoice_email: str = ""
    caterchoice_password: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def credentials_for(self, site: str) -> tuple[str, str]:
        """Return the configured (email, password) pair for a site."""
        email = getattr(self, f"{site}_email", "") or ""
        password = getattr(self, f"{site}_password", "") or ""
        return email, password


settings = Settings()
