"""Configuration utilities for infrastructure layer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from calai.domain.analysis.normalizer import DEFAULT_MAX_BYTES
from calai.domain.analysis.prompts import DEFAULT_MODEL
from calai.domain.shared.errors import ConfigurationError


class AnalyzerSettings(BaseModel):
    """
    Externally configurable values of the analysis pipeline.

    Attributes:
        api_key: Bearer credential for the chat-completion endpoint
        model: Model identifier
        max_image_bytes: Size cap for the encoded photo
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field("", repr=False)
    model: str = Field(DEFAULT_MODEL, min_length=1)
    max_image_bytes: int = Field(DEFAULT_MAX_BYTES, gt=0)


def load_settings(env_file: Optional[Union[str, Path]] = None) -> AnalyzerSettings:
    """
    Read settings from the environment (and a .env file, if present).

    Variables:
        OPENAI_API_KEY: API credential (empty is allowed here; the client
            rejects it at request time)
        CALAI_MODEL: Model identifier, defaults to gpt-4.1-mini
        CALAI_MAX_IMAGE_BYTES: Encoded image cap, defaults to 1000000

    Values already in the environment win over the .env file.

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    load_dotenv(env_file)

    raw_max_bytes = os.getenv("CALAI_MAX_IMAGE_BYTES", str(DEFAULT_MAX_BYTES))
    try:
        max_image_bytes = int(raw_max_bytes)
    except ValueError as e:
        raise ConfigurationError(
            f"CALAI_MAX_IMAGE_BYTES must be an integer, got {raw_max_bytes!r}"
        ) from e
    if max_image_bytes <= 0:
        raise ConfigurationError(f"CALAI_MAX_IMAGE_BYTES must be positive, got {max_image_bytes}")

    model = os.getenv("CALAI_MODEL", "").strip() or DEFAULT_MODEL

    return AnalyzerSettings(
        api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        model=model,
        max_image_bytes=max_image_bytes,
    )
