"""
Centralized settings for the jewelry pricing service.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Shop defaults (a shop may override both)
    timezone: str = 'Asia/Kolkata'
    rate_deadline_hour: int = 13

    log_level: str = 'INFO'
    cors_origins: list[str] = field(default_factory=lambda: ['*'])

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from environment variables."""
        root = project_root or get_project_root()

        deadline = int(os.getenv('JEWELRY_PRICING_DEADLINE_HOUR', '13'))
        if not 0 <= deadline <= 23:
            raise ValueError(f"JEWELRY_PRICING_DEADLINE_HOUR must be 0-23, got {deadline}")

        origins = os.getenv('JEWELRY_PRICING_CORS_ORIGINS', '*')

        return cls(
            project_root=root,
            timezone=os.getenv('JEWELRY_PRICING_TIMEZONE', 'Asia/Kolkata'),
            rate_deadline_hour=deadline,
            log_level=os.getenv('JEWELRY_PRICING_LOG_LEVEL', 'INFO').upper(),
            cors_origins=[o.strip() for o in origins.split(',') if o.strip()],
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
