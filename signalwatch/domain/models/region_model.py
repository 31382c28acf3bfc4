# signalwatch/domain/models/region_model.py
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Region:
    """Screen rectangle in physical pixels. Fixed for the lifetime of a monitoring session."""
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        for name in ("x", "y", "width", "height"):
            if not isinstance(getattr(self, name), int):
                raise TypeError(f"Region.{name} must be an int")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Region must have positive dimensions, got {self.width}x{self.height}")

    @classmethod
    def from_tuple(cls, coordinates: Tuple[int, int, int, int]) -> 'Region':
        """Build a region from an (x, y, width, height) tuple."""
        if not coordinates or len(coordinates) != 4:
            raise ValueError(f"Expected (x, y, width, height), got {coordinates!r}")
        x, y, width, height = (int(v) for v in coordinates)
        return cls(x, y, width, height)

    @classmethod
    def parse(cls, text: str) -> 'Region':
        """Parse "X,Y,W,H" as typed on the command line."""
        parts = [p.strip() for p in text.split(",")]
        return cls.from_tuple(tuple(int(p) for p in parts))

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height
