"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_USER_AGENT = "PulseFlow/1.0 (+https://pulseflow.app/bot)"


@dataclass
class ScraperConfig:
    """Fetching and politeness settings."""
    delay_seconds: float = 2.0
    max_retries: int = 3
    request_timeout: float = 30.0
    robots_timeout: float = 5.0
    robots_cache_ttl: float = 3600.0
    user_agent: str = DEFAULT_USER_AGENT
    blocked_domains: list = field(default_factory=lambda: [
        "amazon.com",
        "linkedin.com",
        "twitter.com",
        "x.com",
        "facebook.com",
        "instagram.com",
        "tiktok.com",
        "netflix.com",
    ])


@dataclass
class AlertsConfig:
    """Change detection and delivery settings."""
    min_new_items: int = 1
    detect_removals: bool = False
    detect_updates: bool = False
    max_retries: int = 3
    webhook_timeout: float = 10.0
    email_from: str = "PulseFlow <alerts@pulseflow.dev>"


@dataclass
class SmtpConfig:
    """SMTP transport. No host means email delivery is not configured."""
    host: Optional[str] = None
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True


@dataclass
class ClaudeConfig:
    """Claude API settings."""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 500
    temperature: float = 0.3
    max_retries: int = 3


@dataclass
class SummaryConfig:
    """Summarization limits."""
    enabled: bool = True
    max_length: int = 500
    min_content_length: int = 50
    max_input_length: int = 30000


@dataclass
class SchedulerConfig:
    """Sweep settings."""
    tick_seconds: float = 60.0
    max_concurrency: int = 4


@dataclass
class PathsConfig:
    """Path settings."""
    data_dir: Path = Path("data")


@dataclass
class PromptsConfig:
    """Prompts for LLM."""
    summary_system: str = (
        "You are a concise content summarizer. Your task is to extract the most "
        "important information and present it clearly.\n"
        "\n"
        "Guidelines:\n"
        "- Be concise and direct\n"
        "- Focus on key facts, events, and insights\n"
        "- Avoid filler words and redundant phrases\n"
        "- Use bullet points for multiple items\n"
        "- Maintain factual accuracy\n"
        "- Do not add opinions or interpretations"
    )
    content_types: dict = field(default_factory=lambda: {
        "RSS": (
            "This is RSS feed content containing multiple news items or articles.\n"
            "Focus on:\n"
            "- Main headlines and their significance\n"
            "- Key developments or announcements\n"
            "- Trends across multiple items if present"
        ),
        "SOCIAL": (
            "This is social media content (Reddit, Hacker News, etc.).\n"
            "Focus on:\n"
            "- Main topic of discussion\n"
            "- Top-voted or most engaged comments\n"
            "- Community sentiment and consensus\n"
            "- Notable disagreements or debates"
        ),
        "ARTICLE": (
            "This is long-form article content.\n"
            "Focus on:\n"
            "- Main thesis or argument\n"
            "- Key supporting points\n"
            "- Important data or statistics\n"
            "- Conclusions or recommendations"
        ),
        "GENERIC": (
            "This is general web content.\n"
            "Focus on:\n"
            "- Primary topic or purpose\n"
            "- Key information and facts\n"
            "- Actionable insights if any"
        ),
    })


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""

    # Config sections
    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def data_dir(self) -> Path:
        return self.paths.data_dir

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp.host)


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(section: object, values: Optional[dict]) -> None:
    for key, value in (values or {}).items():
        if not hasattr(section, key):
            raise ValueError(f"Unknown setting: {type(section).__name__}.{key}")
        setattr(section, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    # Load YAML config
    config = load_config(config_path)

    # Build settings
    settings = Settings(anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""))

    # Apply YAML config
    for name in ("scraper", "alerts", "smtp", "claude", "summary", "scheduler"):
        if name in config:
            _apply_section(getattr(settings, name), config[name])

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    if "prompts" in config:
        prompts = config["prompts"] or {}
        if "summary_system" in prompts:
            settings.prompts.summary_system = prompts["summary_system"]
        if "content_types" in prompts:
            settings.prompts.content_types.update(prompts["content_types"])

    # Environment overrides for deployment secrets
    settings.smtp.password = os.getenv("SMTP_PASSWORD", settings.smtp.password)
    settings.smtp.host = os.getenv("SMTP_HOST") or settings.smtp.host
    settings.smtp.username = os.getenv("SMTP_USERNAME", settings.smtp.username)
    settings.alerts.email_from = os.getenv("EMAIL_FROM") or settings.alerts.email_from

    return settings
