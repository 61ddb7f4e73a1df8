"""
Letter generation via an OpenAI-compatible Chat Completions API.

Builds the persona and request prompts from the run state, asks the model
for a JSON reply, and extracts the new email body. Failures never raise:
they come back as a GenerationResult with no body.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

import requests

from .state_store import RunState


logger = logging.getLogger(__name__)


GenerationFailure = Literal["api_error", "malformed_reply", "missing_key", "empty_body"]

# Key the model must return the letter under
BODY_KEY = "email_body"


# =============================================================================
# Prompts
# =============================================================================

DEFAULT_PERSONA = """You are a concerned United States Citizen, living in Arlington Texas.
Your Senator is John Cornyn. You write a letter each day to Senator Cornyn
pleading with him to put a stop to the genocide being carried out by
Israel against the Palestinian people in Gaza."""


USER_PROMPT_TEMPLATE = """{history_block}Total emails sent so far: {count}.

Today, please compose a brand new letter to {addressee}. The letter should be {word_limit} words or less.

IMPORTANT:
1) Do NOT include any extraneous text or explanation outside of the JSON.
2) Only return a JSON object in the format:

{{
  "email_body": "Your new email content here"
}}
"""

# Strips ```json ... ``` wrappers some models add around JSON output
CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass
class GenerationConfig:
    """Configuration for letter generation."""

    model: str = "gpt-4"
    temperature: float = 0.7  # Moderate creativity so letters vary day to day
    base_url: str = "https://api.openai.com/v1"
    persona: str = DEFAULT_PERSONA
    addressee: str = "Senator John Cornyn"
    word_limit: int = 100
    timeout: int = 120


@dataclass
class GenerationResult:
    """Either an extracted body, or the reason no body is available."""

    body: Optional[str] = None
    failure: Optional[GenerationFailure] = None
    detail: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return self.body is not None

    @classmethod
    def success(cls, body: str) -> "GenerationResult":
        return cls(body=body)

    @classmethod
    def failed(cls, failure: GenerationFailure, detail: str) -> "GenerationResult":
        return cls(failure=failure, detail=detail)


def build_system_prompt(config: GenerationConfig) -> str:
    """Return the fixed persona instruction."""
    return config.persona.strip()


def _format_history(bodies: list[str], addressee: str) -> str:
    """
    Format previous letters for the request prompt.

    Returns an empty string when there is no history, otherwise a lead line
    followed by "Email N: <body>" entries in chronological order.
    """
    if not bodies:
        return ""

    entries = "\n\n".join(
        f"Email {i}: {body}" for i, body in enumerate(bodies, 1)
    )
    return (
        f"Below are the most recent emails you have sent to {addressee}:\n\n"
        f"{entries}\n\n"
    )


def build_user_prompt(state: RunState, config: GenerationConfig) -> str:
    """Build the per-run request from the stored count and history."""
    return USER_PROMPT_TEMPLATE.format(
        history_block=_format_history(state.recent_bodies, config.addressee),
        count=state.run_count,
        addressee=config.addressee,
        word_limit=config.word_limit,
    )


def parse_reply(raw_reply: str) -> GenerationResult:
    """
    Extract the email body from the model's JSON reply.

    The raw text is never used as a fallback body: anything other than a
    JSON object with a non-blank string under BODY_KEY is a failure.
    """
    text = raw_reply.strip()
    fenced = CODE_FENCE_PATTERN.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        return GenerationResult.failed("malformed_reply", f"Reply is not valid JSON: {e}")

    if not isinstance(parsed, dict):
        return GenerationResult.failed(
            "malformed_reply", f"Expected a JSON object, got {type(parsed).__name__}"
        )

    body = parsed.get(BODY_KEY)
    if not isinstance(body, str):
        return GenerationResult.failed(
            "missing_key", f"Reply has no string '{BODY_KEY}' field"
        )

    body = body.strip()
    if not body:
        return GenerationResult.failed("empty_body", f"'{BODY_KEY}' is empty")

    return GenerationResult.success(body)


def _request_completion(
    system_prompt: str,
    user_prompt: str,
    config: GenerationConfig,
    api_key: str,
) -> str:
    """
    Send one chat completion request and return the first choice's content.

    Raises:
        requests.RequestException: On transport or HTTP errors.
        ValueError: If the response body is not JSON.
        KeyError, IndexError, TypeError: If the response lacks the message content.
    """
    url = f"{config.base_url.rstrip('/')}/chat/completions"

    payload = {
        "model": config.model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": config.temperature,
    }

    response = requests.post(
        url,
        headers={"Authorization": f"Bearer {api_key}"},
        json=payload,
        timeout=config.timeout,
    )
    response.raise_for_status()

    data = response.json()
    content = data["choices"][0]["message"]["content"]
    if not isinstance(content, str):
        raise TypeError(f"Message content is {type(content).__name__}, not str")
    return content


def generate_email_body(
    state: RunState,
    config: GenerationConfig,
    api_key: str,
) -> GenerationResult:
    """
    Ask the model for today's letter.

    Args:
        state: Loaded run state (count and recent bodies).
        config: Model, prompt and request settings.
        api_key: Bearer token for the generation API.

    Returns:
        GenerationResult with the body on success, or a failure reason.
        Never raises.
    """
    if not api_key:
        logger.error("No API key configured for text generation")
        return GenerationResult.failed("api_error", "Missing API key")

    system_prompt = build_system_prompt(config)
    user_prompt = build_user_prompt(state, config)

    logger.info(f"Requesting letter #{state.run_count + 1} from {config.model}...")
    start_time = datetime.now()

    try:
        raw_reply = _request_completion(system_prompt, user_prompt, config, api_key)
    except requests.Timeout:
        logger.error(f"Generation request timed out after {config.timeout}s")
        return GenerationResult.failed("api_error", "Request timed out")
    except requests.RequestException as e:
        logger.error(f"Error generating new email: {e}")
        return GenerationResult.failed("api_error", str(e))
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"Unexpected response shape from generation API: {e!r}")
        return GenerationResult.failed("api_error", f"Unexpected response: {e!r}")

    duration_ms = (datetime.now() - start_time).total_seconds() * 1000
    logger.debug(
        f">>> SYSTEM >>>\n{system_prompt}\n\n>>> USER >>>\n{user_prompt}\n\n"
        f"<<< REPLY <<<\n{raw_reply}"
    )

    result = parse_reply(raw_reply)
    if result.has_content:
        logger.info(
            f"Letter generated: {len(result.body.split())} words in {duration_ms:.0f}ms"
        )
    else:
        logger.error(f"Error parsing generation reply ({result.failure}): {result.detail}")

    return result
