from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration.

    Read from ``SUPPLY_*`` environment variables or a local ``.env`` file.
    One instance is built per app and passed around explicitly.
    """

    app_name: str = "Supply Desk API"
    server_host: str = "127.0.0.1"
    server_port: int = 8080

    database_url: str = "sqlite:///./data/applications.db"

    jwt_secret: str = "dev-secret-change-me"
    jwt_ttl_seconds: int = 86400  # 24h

    # static token for machine-to-machine reads and reports
    api_token: str = "default_api_token_change_me"

    ldap_url: str = "https://ldap.example.local/api/auth"
    ldap_timeout_seconds: float = 10.0

    admin_file: str = "./data/admins.env"
    admin_usernames: str = ""  # comma-separated seed, used only if admin_file has no entry

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SUPPLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def seed_admins(self) -> list[str]:
        return [u.strip() for u in self.admin_usernames.split(",") if u.strip()]
