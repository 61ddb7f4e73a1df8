"""
Persisted run state: how many letters have been written and the last few bodies.

The store is a small JSON file of the form
``{"count": <int>, "recent_emails": [<str>, ...]}``. Loading fails soft
(defaults are substituted); saving raises PersistenceError for the caller to log.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path


logger = logging.getLogger(__name__)


# Number of previous bodies kept as context for the next letter
HISTORY_LIMIT = 3


class StateLoadError(Exception):
    """Raised when stored state is unreadable or has the wrong shape."""
    pass


class PersistenceError(Exception):
    """Raised when the state file cannot be written."""
    pass


@dataclass
class RunState:
    """Count of letters sent so far plus the most recent bodies (oldest first)."""

    run_count: int = 0
    recent_bodies: list[str] = field(default_factory=list)

    @classmethod
    def default(cls) -> "RunState":
        return cls(run_count=0, recent_bodies=[])


def state_from_dict(data: object) -> RunState:
    """
    Validate a decoded store document and build a RunState from it.

    Raises:
        StateLoadError: If the document does not match the store schema.
    """
    if not isinstance(data, dict):
        raise StateLoadError(f"Expected a JSON object, got {type(data).__name__}")

    if "count" not in data or "recent_emails" not in data:
        raise StateLoadError("Missing 'count' or 'recent_emails' key")

    count = data["count"]
    # bool is a subclass of int
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise StateLoadError(f"'count' must be a non-negative integer, got: {count!r}")

    bodies = data["recent_emails"]
    if not isinstance(bodies, list) or not all(isinstance(b, str) for b in bodies):
        raise StateLoadError("'recent_emails' must be a list of strings")

    if len(bodies) > HISTORY_LIMIT:
        logger.warning(
            f"Stored history has {len(bodies)} entries, keeping the newest {HISTORY_LIMIT}"
        )
        bodies = bodies[-HISTORY_LIMIT:]

    return RunState(run_count=count, recent_bodies=list(bodies))


def state_to_dict(state: RunState) -> dict:
    """Convert a RunState to the on-disk document shape."""
    return {
        "count": state.run_count,
        "recent_emails": list(state.recent_bodies),
    }


def load_state(path: Path) -> RunState:
    """
    Read run state from the store.

    Never raises: a missing, unreadable, or malformed store is logged
    and the default state is returned instead.

    Args:
        path: Location of the JSON store.

    Returns:
        The stored RunState, or RunState.default().
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"State file not found at {path}, using default values")
        return RunState.default()
    except OSError as e:
        logger.error(f"Error reading state file {path}: {e}. Using default values")
        return RunState.default()
    except UnicodeDecodeError as e:
        logger.error(f"State file {path} is not valid UTF-8 ({e}). Using default values")
        return RunState.default()

    try:
        state = state_from_dict(json.loads(raw))
    except json.JSONDecodeError as e:
        logger.error(f"State file {path} is not valid JSON ({e}). Using default values")
        return RunState.default()
    except StateLoadError as e:
        logger.error(f"State file {path} has unexpected contents ({e}). Using default values")
        return RunState.default()

    logger.info(
        f"Loaded state: {state.run_count} letters sent, "
        f"{len(state.recent_bodies)} in history"
    )
    return state


def advance_state(state: RunState, body: str) -> RunState:
    """
    Record a newly generated body.

    Returns a new RunState with the count incremented and the body appended,
    evicting the oldest entries beyond HISTORY_LIMIT. The input is not modified.
    """
    bodies = [*state.recent_bodies, body][-HISTORY_LIMIT:]
    return RunState(run_count=state.run_count + 1, recent_bodies=bodies)


def save_state(path: Path, state: RunState) -> None:
    """
    Overwrite the store with the given state as pretty-printed JSON.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    document = json.dumps(state_to_dict(state), indent=2, ensure_ascii=False)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to write state file {path}: {e}")

    logger.info(f"State saved to {path}")
