"""Pydantic schemas for application configuration."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_IMAGE_EXTS = {"gif", "jpg", "jpeg", "png", "webp"}
DEFAULT_GENERAL_THRESHOLD = 0.35
DEFAULT_TOKEN_LIMIT = 77


def _default_image_exts() -> set[str]:
    return set(DEFAULT_IMAGE_EXTS)


def _normalise_ext(value: str) -> str:
    return value.strip().lower().lstrip(".")


class TaggerSettings(BaseModel):
    """Where to fetch the auto-tagging model from and how to filter it."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    enabled: bool = True
    repo_id: str = "SmilingWolf/wd-v1-4-vit-tagger-v2"
    revision: str = "main"
    model_filename: str = "model.onnx"
    tags_filename: str = "selected_tags.csv"
    general_threshold: float = DEFAULT_GENERAL_THRESHOLD
    download_timeout: float = 300.0

    @field_validator("general_threshold", mode="before")
    @classmethod
    def _coerce_threshold(cls, value: Any) -> float:
        try:
            threshold = float(value)
        except (TypeError, ValueError):
            return DEFAULT_GENERAL_THRESHOLD
        if not 0.0 <= threshold <= 1.0:
            return DEFAULT_GENERAL_THRESHOLD
        return threshold

    @field_validator("download_timeout", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: Any) -> float:
        try:
            return max(1.0, float(value))
        except (TypeError, ValueError):
            return 300.0

    def file_url(self, filename: str) -> str:
        """Return the Hugging Face download URL for ``filename``."""

        return f"https://huggingface.co/{self.repo_id}/resolve/{self.revision}/{filename}"


class TokenizerSettings(BaseModel):
    """Tokenizer used for the prompt token counter."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    enabled: bool = True
    repo_id: str = "openai/clip-vit-large-patch14"
    token_limit: int = DEFAULT_TOKEN_LIMIT

    @field_validator("token_limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value: Any) -> int:
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return DEFAULT_TOKEN_LIMIT
        return max(1, limit)


class AppSettings(BaseModel):
    """Validated application configuration."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    image_exts: set[str] = Field(default_factory=_default_image_exts)
    tagger: TaggerSettings = Field(default_factory=TaggerSettings)
    tokenizer: TokenizerSettings = Field(default_factory=TokenizerSettings)

    @field_validator("image_exts", mode="before")
    @classmethod
    def _normalise_image_exts(cls, value: Any) -> set[str]:
        if not value or isinstance(value, str):
            return _default_image_exts()
        normalised = {_normalise_ext(str(item)) for item in value}
        normalised.discard("")
        return normalised or _default_image_exts()

    def to_mapping(self) -> dict[str, Any]:
        """Return a serialisable representation of the configuration."""

        payload = self.model_dump()
        payload["image_exts"] = sorted(self.image_exts)
        return payload

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AppSettings":
        if not isinstance(data, Mapping):
            data = {}
        return cls.model_validate(data)


__all__ = [
    "AppSettings",
    "DEFAULT_GENERAL_THRESHOLD",
    "DEFAULT_IMAGE_EXTS",
    "DEFAULT_TOKEN_LIMIT",
    "TaggerSettings",
    "TokenizerSettings",
]
