"""Configuration settings for the game."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = Path(__file__).parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define the word data directory from environment variables
WORDS_DIR = Path(os.getenv("WORDS_DIR", str(PACKAGE_DIR / "data")))

# Game defaults
LANGUAGES = ["en", "es", "ru"]  # first one is the base language
DEFAULT_TIMER_MINUTES = 1


def _split_env_list(name: str, default: list[str]) -> list[str]:
    """Read a comma separated list from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    words_dir: Path = WORDS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///describo.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class BotSettings:
    """Bot configuration settings."""
    token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")


def get_languages() -> list[str]:
    """Get configured languages, base language first."""
    return _split_env_list("LANGUAGES", LANGUAGES)


def get_default_categories() -> list[str]:
    """Get categories enabled for a fresh session (empty means all)."""
    return _split_env_list("DEFAULT_CATEGORIES", [])


@dataclass
class GameDefaults:
    """Defaults applied to a fresh or damaged game session."""
    languages: list[str] = field(default_factory=get_languages)
    default_language: str = os.getenv("DEFAULT_LANGUAGE", "")
    default_second_language: str = os.getenv("DEFAULT_SECOND_LANGUAGE", "")
    timer_minutes: int = int(os.getenv("DEFAULT_TIMER_MINUTES", str(DEFAULT_TIMER_MINUTES)))
    tick_seconds: float = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))
    categories: list[str] = field(default_factory=get_default_categories)

    def __post_init__(self) -> None:
        if not self.default_language and self.languages:
            self.default_language = self.languages[0]
        if not self.default_second_language and self.languages:
            others = [lang for lang in self.languages if lang != self.default_language]
            self.default_second_language = others[0] if others else self.default_language

    @property
    def base_language(self) -> str:
        """Language whose text identifies a word for solved tracking."""
        return self.languages[0]


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_bot_settings() -> BotSettings:
    """Get bot settings."""
    return BotSettings()


def get_game_defaults() -> GameDefaults:
    """Get game defaults."""
    return GameDefaults()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    bot: BotSettings = field(default_factory=get_bot_settings)
    game: GameDefaults = field(default_factory=get_game_defaults)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.game.languages:
            raise ValueError("LANGUAGES must list at least one language")

        if self.game.default_language not in self.game.languages:
            raise ValueError("DEFAULT_LANGUAGE must be one of LANGUAGES")

        if self.game.timer_minutes < 1:
            raise ValueError("DEFAULT_TIMER_MINUTES must be positive")

        if self.game.tick_seconds <= 0:
            raise ValueError("TIMER_TICK_SECONDS must be positive")


# Create global settings instance
settings = Settings()
settings.validate()


def ensure_directories() -> None:
    """Ensure the directory of a file-based SQLite database exists."""
    url = settings.database.url
    if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
