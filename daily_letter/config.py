"""
Configuration management for the daily letter bot.

Loads settings from environment variables / .env file and provides
typed accessors with validation.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .generator import DEFAULT_PERSONA, GenerationConfig
from .mailer import MailConfig


class ConfigError(Exception):
    """Raised when configuration is invalid or missing required values."""
    pass


@dataclass
class Config:
    """Application configuration container."""

    # Sender identity
    sender_email: str
    recipient_email: str

    # Credentials (may be empty; the step that needs them fails softly)
    openai_api_key: str = ""
    gmail_app_password: str = ""

    # SMTP settings
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_name: str = ""
    email_subject: str = "Please End the Genocide in Gaza"

    # Text generation settings
    openai_model: str = "gpt-4"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_temperature: float = 0.7
    openai_timeout: int = 120

    # Letter content
    letter_persona: str = DEFAULT_PERSONA
    letter_addressee: str = "Senator John Cornyn"
    letter_word_limit: int = 100

    # Paths
    state_file: Path = Path("bin/data.json")
    log_dir: Path = Path("logs")

    def generation_config(self) -> GenerationConfig:
        """Settings handed to the content generator."""
        return GenerationConfig(
            model=self.openai_model,
            temperature=self.openai_temperature,
            base_url=self.openai_base_url,
            persona=self.letter_persona,
            addressee=self.letter_addressee,
            word_limit=self.letter_word_limit,
            timeout=self.openai_timeout,
        )

    def mail_config(self) -> MailConfig:
        """Settings handed to the message dispatcher."""
        return MailConfig(
            smtp_host=self.smtp_host,
            smtp_port=self.smtp_port,
            sender_address=self.sender_email,
            sender_name=self.sender_name,
            recipient=self.recipient_email,
            subject=self.email_subject,
        )


def _get_required_env(key: str) -> str:
    """Get a required environment variable or raise ConfigError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigError(f"Missing required environment variable: {key}")
    return value


def _get_optional_env(key: str, default: str) -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(key) or default


def _get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable or raise ConfigError."""
    value = _get_optional_env(key, str(default))
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got: {value}")


def _get_float_env(key: str, default: float) -> float:
    """Get a numeric environment variable or raise ConfigError."""
    value = _get_optional_env(key, str(default))
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got: {value}")


def load_config(env_path: Optional[Path] = None) -> Config:
    """
    Load configuration from environment variables.

    Credentials (OPENAI_API_KEY, GMAIL_APP_PASSWORD) are not validated
    here: a missing one only disables the step that needs it.

    Args:
        env_path: Optional path to .env file. If not provided,
                  searches for .env in current and parent directories.

    Returns:
        Config object with all settings populated.

    Raises:
        ConfigError: If required settings are missing or malformed.
    """
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    sender_email = _get_required_env("SENDER_EMAIL")

    temperature = _get_float_env("OPENAI_TEMPERATURE", 0.7)
    if not 0.0 <= temperature <= 2.0:
        raise ConfigError(f"OPENAI_TEMPERATURE must be between 0 and 2, got: {temperature}")

    word_limit = _get_int_env("LETTER_WORD_LIMIT", 100)
    if word_limit <= 0:
        raise ConfigError(f"LETTER_WORD_LIMIT must be positive, got: {word_limit}")

    smtp_port = _get_int_env("SMTP_PORT", 587)
    if smtp_port <= 0:
        raise ConfigError(f"SMTP_PORT must be positive, got: {smtp_port}")

    timeout = _get_int_env("OPENAI_TIMEOUT", 120)
    if timeout <= 0:
        raise ConfigError(f"OPENAI_TIMEOUT must be positive, got: {timeout}")

    return Config(
        sender_email=sender_email,
        recipient_email=_get_optional_env("RECIPIENT_EMAIL", sender_email),
        openai_api_key=_get_optional_env("OPENAI_API_KEY", ""),
        gmail_app_password=_get_optional_env("GMAIL_APP_PASSWORD", ""),
        smtp_host=_get_optional_env("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=smtp_port,
        sender_name=_get_optional_env("SENDER_NAME", ""),
        email_subject=_get_optional_env("EMAIL_SUBJECT", "Please End the Genocide in Gaza"),
        openai_model=_get_optional_env("OPENAI_MODEL", "gpt-4"),
        openai_base_url=_get_optional_env("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_temperature=temperature,
        openai_timeout=timeout,
        letter_persona=_get_optional_env("LETTER_PERSONA", DEFAULT_PERSONA),
        letter_addressee=_get_optional_env("LETTER_ADDRESSEE", "Senator John Cornyn"),
        letter_word_limit=word_limit,
        state_file=Path(_get_optional_env("STATE_FILE", "bin/data.json")),
        log_dir=Path(_get_optional_env("LOG_DIR", "logs")),
    )
