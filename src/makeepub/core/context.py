"""Per-job diagnostics."""

import logging
from dataclasses import dataclass, field

log = logging.getLogger("makeepub")


class _JobAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"{self.extra['job']}: {msg}", kwargs


@dataclass
class JobContext:
    """Diagnostics for one conversion job.

    Every core call receives the context of the job it works for, so jobs
    running side by side in a batch never mix their messages.
    """

    name: str = "makeepub"
    logger: logging.Logger = field(default=log)
    messages: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._adapter = _JobAdapter(self.logger, {"job": self.name})

    def debug(self, msg: str, *args: object) -> None:
        self._adapter.debug(msg, *args)

    def info(self, msg: str, *args: object) -> None:
        self._adapter.info(msg, *args)

    def warning(self, msg: str, *args: object) -> None:
        """Log a content warning and remember it for the job report."""
        self.messages.append(msg % args if args else msg)
        self._adapter.warning(msg, *args)

    def error(self, msg: str, *args: object) -> None:
        self.messages.append(msg % args if args else msg)
        self._adapter.error(msg, *args)
