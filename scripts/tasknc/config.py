"""Startup configuration for tasknc."""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tasknc.errors import ConfigError
from tasknc.logging import DEFAULT_LOG_FILE

DEFAULT_TITLE_FORMAT = " $program_name ($selected_line/$task_count) $> $date"
DEFAULT_TASK_FORMAT = " $project $description $> ?$due?$due?$-6priority?"
DEFAULT_VIEW_FORMAT = " task info"
DEFAULT_SORT_MODE = "drpu"
DEFAULT_FILTER = "status:pending"


def default_config_file() -> Path:
    """Location of the user command file, honouring XDG_CONFIG_HOME."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "tasknc" / "config"
    return Path.home() / ".config" / "tasknc" / "config"


class Config(BaseModel):
    """
    Pydantic-backed startup configuration loaded from environment variables.

    Key env vars:
    - TASKNC_TASK_BIN (default: task)
    - TASKNC_CONFIG (command file; default: $XDG_CONFIG_HOME/tasknc/config)
    - TASKNC_LOG_LEVEL (default: WARNING) / TASKNC_LOG_FILE / TASKNC_LOG_JSON
    - TASKNC_FILTER (initial filter; default: status:pending)
    - TASKNC_SORT_MODE (default: drpu)
    - TASKNC_COLOR_PAIRS (attribute allocator capacity; default: 256)

    Formats and most runtime options are changed afterwards through the
    command language (`set task_format ...`) rather than the environment.
    """

    task_bin: str = Field(default="task")
    config_file: Path = Field(default_factory=default_config_file)
    log_level: str = Field(default="WARNING")
    log_file: Path = Field(default=DEFAULT_LOG_FILE)
    log_json: bool = Field(default=False)
    filter_string: str = Field(default=DEFAULT_FILTER)
    sort_mode: str = Field(default=DEFAULT_SORT_MODE)
    title_format: str = Field(default=DEFAULT_TITLE_FORMAT)
    task_format: str = Field(default=DEFAULT_TASK_FORMAT)
    view_format: str = Field(default=DEFAULT_VIEW_FORMAT)
    statusbar_timeout: int = Field(default=3)  # seconds
    follow_task: bool = Field(default=True)
    history_max: int = Field(default=50)
    color_pairs: int = Field(default=256)

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)


def load_config() -> Config:
    """
    Load startup configuration from environment.
    """
    config_file = os.environ.get("TASKNC_CONFIG")
    log_file = os.environ.get("TASKNC_LOG_FILE")
    try:
        color_pairs = int(os.environ.get("TASKNC_COLOR_PAIRS", "256"))
    except ValueError as exc:
        raise ConfigError("TASKNC_COLOR_PAIRS must be an integer") from exc
    log_json = os.environ.get("TASKNC_LOG_JSON", "false").lower() in (
        "1",
        "true",
        "yes",
        "on",
    )
    try:
        return Config(
            task_bin=os.environ.get("TASKNC_TASK_BIN", "task"),
            config_file=Path(config_file).expanduser() if config_file else default_config_file(),
            log_level=os.environ.get("TASKNC_LOG_LEVEL", "WARNING"),
            log_file=Path(log_file).expanduser() if log_file else DEFAULT_LOG_FILE,
            log_json=log_json,
            filter_string=os.environ.get("TASKNC_FILTER", DEFAULT_FILTER),
            sort_mode=os.environ.get("TASKNC_SORT_MODE", DEFAULT_SORT_MODE),
            color_pairs=color_pairs,
        )
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
