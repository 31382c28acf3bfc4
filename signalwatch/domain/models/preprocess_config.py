# signalwatch/domain/models/preprocess_config.py
from dataclasses import dataclass, replace
from typing import Dict, Tuple


@dataclass(frozen=True)
class PreprocessConfig:
    """Tunables for the image preprocessing pipeline. Pure value type."""
    scale: int = 2
    bilateral_diameter: int = 9
    bilateral_sigma_color: float = 75.0
    bilateral_sigma_space: float = 75.0
    use_clahe: bool = True
    clahe_clip_limit: float = 3.0
    clahe_tile_grid_size: Tuple[int, int] = (8, 8)
    gaussian_kernel: int = 3
    adaptive_block_size: int = 31
    adaptive_c: float = 10.0
    morph_kernel: int = 2
    use_dilate: bool = False
    dilate_iterations: int = 0
    sharpen: bool = False
    sharpen_amount: float = 1.0
    border: int = 1
    is_dark_background: bool = False
    make_outline: bool = False

    def with_overrides(self, **changes) -> 'PreprocessConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


READABLE = PreprocessConfig(
    scale=4,
    adaptive_block_size=31,
    adaptive_c=6.0,
    use_clahe=True,
    morph_kernel=1,  # keeps neighbouring glyphs from merging
    use_dilate=False,
    border=8,
    sharpen=True,
    sharpen_amount=1.0,
)

DEFAULT = PreprocessConfig(
    scale=4,
    adaptive_block_size=31,
    adaptive_c=8.0,
    use_clahe=True,
    morph_kernel=3,
    use_dilate=True,
    dilate_iterations=1,
    border=8,
    sharpen=False,
    sharpen_amount=1.2,
)

CONSERVATIVE = PreprocessConfig(
    scale=5,
    bilateral_sigma_color=100.0,
    bilateral_sigma_space=100.0,
    gaussian_kernel=5,
    adaptive_block_size=41,
    adaptive_c=10.0,
    use_clahe=False,
    morph_kernel=5,
    border=10,
)

# Small-text preset tuned for a single line of trading labels
MONITOR = PreprocessConfig(
    scale=5,
    adaptive_block_size=11,
    adaptive_c=5.0,
    use_clahe=False,
    morph_kernel=2,
    border=8,
    sharpen=True,
)

PRESETS: Dict[str, PreprocessConfig] = {
    "readable": READABLE,
    "default": DEFAULT,
    "conservative": CONSERVATIVE,
    "monitor": MONITOR,
}


def get_preset(name: str) -> PreprocessConfig:
    """Look up a preset by name (case-insensitive)."""
    key = (name or "").strip().lower()
    if key not in PRESETS:
        raise KeyError(f"Unknown preprocessing preset '{name}'. Available: {', '.join(sorted(PRESETS))}")
    return PRESETS[key]
