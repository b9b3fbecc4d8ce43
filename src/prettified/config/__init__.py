"""Configuration — Pydantic models for prettified settings."""

from __future__ import annotations

import json
import os
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from prettified.render.status import SPINNER_COLOR, SPINNER_FRAMES, SPINNER_INTERVAL

_TRUTHY = {"1", "true", "yes", "on"}


class RenderConfig(BaseModel):
    """Formatter and layout settings."""

    default_width: int = Field(
        default=80, gt=0, description="Wrap width used before the terminal reports a size"
    )
    tab_width: int = Field(default=4, ge=0, description="Spaces substituted for a tab")
    code_theme: str = Field(default="monokai", description="Pygments style for code blocks")
    color_system: Literal["auto", "standard", "256", "truecolor", "windows"] | None = (
        Field(default="truecolor")
    )
    hyperlinks: bool = Field(default=True)


class SpinnerConfig(BaseModel):
    """Status line animation."""

    enabled: bool = Field(default=True)
    frames: list[str] = Field(default_factory=lambda: list(SPINNER_FRAMES), min_length=1)
    interval: float = Field(default=SPINNER_INTERVAL, gt=0, description="Seconds per frame")
    color: str = Field(default=SPINNER_COLOR)


class InputConfig(BaseModel):
    """How the input stream is decoded."""

    mode: Literal["raw", "events"] = Field(default="raw")
    chunk_size: int = Field(default=1024, gt=0, description="Bytes per read")


class UIConfig(BaseModel):
    inline: bool = Field(
        default=True, description="Render under the prompt instead of the alternate screen"
    )
    idle_label: str = Field(default="Loading...")


class PrettifiedConfig(BaseModel):
    """Top-level prettified configuration."""

    render: RenderConfig = Field(default_factory=RenderConfig)
    spinner: SpinnerConfig = Field(default_factory=SpinnerConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    ui: UIConfig = Field(default_factory=UIConfig)

    @classmethod
    def load(cls, config_path: str | None = None) -> PrettifiedConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            PRETTIFIED_MODE          - Input mode (raw/events)
            PRETTIFIED_WIDTH         - Wrap width before the first resize
            PRETTIFIED_CODE_THEME    - Pygments style for code blocks
            PRETTIFIED_COLOR_SYSTEM  - auto/standard/256/truecolor/windows/none
            PRETTIFIED_SPINNER       - Enable the spinner (1/0, true/false)
            PRETTIFIED_CHUNK_SIZE    - Bytes per read in raw mode
        """
        load_dotenv()

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        render = config_data.get("render", {})
        spinner = config_data.get("spinner", {})
        input_ = config_data.get("input", {})

        env_mode = os.environ.get("PRETTIFIED_MODE")
        if env_mode:
            input_["mode"] = env_mode.lower()

        env_chunk_size = os.environ.get("PRETTIFIED_CHUNK_SIZE")
        if env_chunk_size:
            input_["chunk_size"] = int(env_chunk_size)

        env_width = os.environ.get("PRETTIFIED_WIDTH")
        if env_width:
            render["default_width"] = int(env_width)

        env_code_theme = os.environ.get("PRETTIFIED_CODE_THEME")
        if env_code_theme:
            render["code_theme"] = env_code_theme

        env_color_system = os.environ.get("PRETTIFIED_COLOR_SYSTEM")
        if env_color_system:
            value = env_color_system.lower()
            render["color_system"] = None if value == "none" else value

        env_spinner = os.environ.get("PRETTIFIED_SPINNER")
        if env_spinner:
            spinner["enabled"] = env_spinner.lower() in _TRUTHY

        if render:
            config_data["render"] = render
        if spinner:
            config_data["spinner"] = spinner
        if input_:
            config_data["input"] = input_

        return cls.model_validate(config_data)
