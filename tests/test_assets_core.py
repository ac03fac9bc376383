from __future__ import annotations

from pathlib import Path

import pytest

from gumball_study.assets import load_assets
from gumball_study.trials import TokenColor


def test_resolve_missing_audio_is_none(tmp_path: Path) -> None:
    assets = load_assets(tmp_path)
    assert assets.resolve("audio/x/none.mp3") is None
    assert assets.resolve(None) is None
    assert assets.resolve("") is None


def test_resolve_shipped_audio(tmp_path: Path) -> None:
    cue = tmp_path / "audio" / "brian" / "might.mp3"
    cue.parent.mkdir(parents=True)
    cue.write_bytes(b"")

    assert load_assets(tmp_path).resolve("audio/brian/might.mp3") == cue


def test_token_colours() -> None:
    assets = load_assets()
    assert assets.token_rgb(TokenColor.RED) == (229, 57, 53)
    assert assets.token_rgb(TokenColor.BLUE) == (30, 64, 255)
    with pytest.raises(KeyError):
        assets.token_rgb("green")  # type: ignore[arg-type]
