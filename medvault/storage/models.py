from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadProgress:
    """Byte-level progress of one blob upload."""

    loaded: int
    total: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 100
        return min(100, round(self.loaded * 100 / self.total))


ProgressCallback = Callable[[UploadProgress], None]


@dataclass(frozen=True)
class StoredBlob:
    """Location of an uploaded blob."""

    url: str
    path: str
