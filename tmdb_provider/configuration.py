"""
Remote TMDb configuration (`/3/configuration`) and the image URL helper built on it.
"""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from tmdb_provider.client import Client

_SIZE_WIDTH = re.compile(r"^w(\d+)$")


class ImagesConfiguration(BaseModel):
    base_url: str = "http://image.tmdb.org/t/p/"
    secure_base_url: str = "https://image.tmdb.org/t/p/"
    backdrop_sizes: list[str] = Field(default_factory=list)
    logo_sizes: list[str] = Field(default_factory=list)
    poster_sizes: list[str] = Field(default_factory=list)
    profile_sizes: list[str] = Field(default_factory=list)
    still_sizes: list[str] = Field(default_factory=list)


class Configuration(BaseModel):
    images: ImagesConfiguration = Field(default_factory=ImagesConfiguration)
    change_keys: list[str] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Configuration":
        return cls.model_validate(payload)


class ConfigurationRepository:
    def __init__(self, client: "Client") -> None:
        self.client = client

    def load(self) -> Configuration:
        return Configuration.from_payload(self.client.get_configuration())


class ImageHelper:
    """Builds image URLs from a file path and a size (e.g. `w500`, `original`)."""

    def __init__(self, configuration: Configuration, *, secure: bool = True) -> None:
        self.configuration = configuration
        self.secure = secure

    @property
    def base_url(self) -> str:
        images = self.configuration.images
        base = images.secure_base_url if self.secure else images.base_url
        return base if base.endswith("/") else f"{base}/"

    def get_url(self, file_path: str, size: str = "original") -> str:
        path = (file_path or "").strip()
        if not path:
            raise ValueError("Image file path is empty.")
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{size}{path}"

    def nearest_width(self, sizes: list[str], width: int) -> str:
        """Smallest `wNNN` size at least `width` wide, else `original`."""
        widths = sorted(
            int(match.group(1)) for match in (_SIZE_WIDTH.match(s) for s in sizes) if match is not None
        )
        for candidate in widths:
            if candidate >= width:
                return f"w{candidate}"
        return "original"
