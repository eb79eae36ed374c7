import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from verse_relay.config import Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    """Relay settings that never touch the real environment."""
    return Settings(
        tiktok_username="somehost",
        admin_token="s3cret",
        _env_file=None,  # pyright: ignore[reportCallIssue]
    )
