from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .trials import TokenColor

ASSET_ROOT_DEFAULT = Path(__file__).resolve().parents[1] / "assets"

RGB = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class StudyAssets:
    """Immutable style/asset handle created once by the process owner."""

    root: Path
    token_colors: tuple[tuple[TokenColor, RGB], ...]
    background: RGB = (18, 20, 52)
    globe: RGB = (255, 255, 255)
    machine: RGB = (196, 40, 48)
    text: RGB = (240, 244, 255)
    muted: RGB = (176, 186, 214)
    warning: RGB = (198, 40, 40)
    speaker_green: RGB = (92, 186, 96)
    speaker_yellow: RGB = (230, 200, 60)

    def token_rgb(self, color: TokenColor) -> RGB:
        for key, rgb in self.token_colors:
            if key is color:
                return rgb
        raise KeyError(color)

    def resolve(self, relative: str | None) -> Path | None:
        """Absolute path of an asset, or None if it is not shipped."""

        if not relative:
            return None
        candidate = self.root / relative
        return candidate if candidate.is_file() else None


def load_assets(root: Path | None = None) -> StudyAssets:
    return StudyAssets(
        root=Path(root) if root is not None else ASSET_ROOT_DEFAULT,
        token_colors=(
            (TokenColor.RED, (229, 57, 53)),
            (TokenColor.BLUE, (30, 64, 255)),
        ),
    )
