"""Options that drive splitting and packaging."""

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from makeepub.core.context import JobContext

MAX_LEVEL = 6

DEFAULT_TOC_DEPTH = 2
DEFAULT_SPLIT_LEVEL = 1
DEFAULT_EPUB_VERSION = 2


class TriggerMode(str, Enum):
    """How chapter boundaries are detected."""

    HEADING = "heading"  # <h1>..<h6> tags
    MARKER = "marker"  # elements carrying the chapter marker class


class SplitOptions(BaseModel):
    """Validated options for one conversion job."""

    toc_depth: int = Field(default=DEFAULT_TOC_DEPTH, ge=1, le=MAX_LEVEL)
    split_level: int = Field(default=DEFAULT_SPLIT_LEVEL, ge=0, le=MAX_LEVEL)
    trigger: TriggerMode = TriggerMode.HEADING
    epub_version: int = Field(default=DEFAULT_EPUB_VERSION, ge=2, le=3)
    extension: bool = True

    @classmethod
    def clamped(
        cls,
        ctx: "JobContext",
        toc_depth: int | None = None,
        split_level: int | None = None,
        trigger: TriggerMode = TriggerMode.HEADING,
        epub_version: int | None = None,
        extension: bool = True,
    ) -> "SplitOptions":
        """Build options, replacing invalid values with defaults.

        Args:
            ctx: Job context receiving a warning for every replaced value
            toc_depth: Deepest heading level recorded in the TOC (1-6)
            split_level: Deepest heading level that starts a new file (0-6)
            trigger: Boundary detection mode
            epub_version: 2 or 3
            extension: Emit the Duokan fullscreen properties

        Returns:
            SplitOptions that always validate
        """
        return cls(
            toc_depth=_clamp(ctx, "toc", toc_depth, 1, MAX_LEVEL, DEFAULT_TOC_DEPTH),
            split_level=_clamp(
                ctx, "AtLevel", split_level, 0, MAX_LEVEL, DEFAULT_SPLIT_LEVEL
            ),
            trigger=trigger,
            epub_version=_clamp(
                ctx, "version", epub_version, 2, 3, DEFAULT_EPUB_VERSION
            ),
            extension=extension,
        )


def _clamp(
    ctx: "JobContext",
    name: str,
    value: int | None,
    low: int,
    high: int,
    default: int,
) -> int:
    if value is None:
        return default
    if low <= value <= high:
        return value
    ctx.warning("invalid '%s' value %s, reset to '%d'", name, value, default)
    return default
