"""Theme preset schema.

The core does not interpret theme contents; it only validates the shape a
preset must have and stores it as one document.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ButtonCss(BaseModel):
    """CSS fragments applied to link buttons."""

    model_config = ConfigDict(extra="allow")

    borderRadius: str | None = None
    background: str | None = None
    border: str | None = None
    backdropFilter: str | None = None
    boxShadow: str | None = None


class ButtonStyle(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["solid", "outline", "soft", "gradient", "rounded", "glass"]
    style: ButtonCss = Field(default_factory=ButtonCss)


class BackgroundStyle(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["solid", "gradient", "pattern", "image", "glass"]
    value: str
    overlay: str | None = None
    blur: float | None = None


class ThemePreset(BaseModel):
    """A named bundle of background, button and text styling."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    backgroundColor: str
    cardBackground: str
    textColor: str
    buttonStyle: ButtonStyle
    backgroundStyle: BackgroundStyle
    backgroundImage: str | None = None
