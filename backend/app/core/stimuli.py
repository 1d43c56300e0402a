"""
Stimulus catalog for the screening test.

Static, read-only configuration: for each modality the ordered stimuli that
are presented and the palette of candidate colors offered for them. Colors
are opaque hex tokens; nothing in the scoring engine interprets them.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from libs.domain_types import Modality


@dataclass(frozen=True)
class Stimulus:
    """A single presentable item."""

    id: str
    name: str
    audio_url: Optional[str] = None


@dataclass(frozen=True)
class ModalityCatalog:
    """Stimuli and candidate colors for one modality."""

    modality: Modality
    stimuli: Tuple[Stimulus, ...]
    colors: Tuple[str, ...]

    @property
    def stimulus_ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self.stimuli)


_BASE_PALETTE: Tuple[str, ...] = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E9",
    "#F8C471",
    "#82E0AA",
    "#F1948A",
    "#C39BD3",
    "#7FB3D3",
    "#A8A8A8",
    "#FFB3BA",
    "#BAFFC9",
    "#BAE1FF",
    "#FFFFBA",
    "#FFD1DC",
    "#E0BBE4",
    "#957DAD",
    "#FEC89A",
)

_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_DIGITS = "0123456789"

# (id, display name)
_SOUNDS: Tuple[Tuple[str, str], ...] = (
    ("piano-c4", "Piano Note C4"),
    ("violin-a", "Violin A"),
    ("thunder", "Thunder"),
    ("rain", "Rain"),
    ("bell", "Bell"),
    ("guitar-chord", "Guitar Chord"),
    ("flute", "Flute"),
    ("drum-beat", "Drum Beat"),
    ("ocean-waves", "Ocean Waves"),
    ("bird-song", "Bird Song"),
    ("car-horn", "Car Horn"),
    ("wind", "Wind"),
)


STIMULUS_CATALOG: Dict[Modality, ModalityCatalog] = {
    Modality.GRAPHEME: ModalityCatalog(
        modality=Modality.GRAPHEME,
        stimuli=tuple(Stimulus(id=c, name=c) for c in _LETTERS),
        colors=_BASE_PALETTE,
    ),
    Modality.NUMBER: ModalityCatalog(
        modality=Modality.NUMBER,
        stimuli=tuple(Stimulus(id=d, name=d) for d in _DIGITS),
        colors=_BASE_PALETTE[:16],
    ),
    Modality.SOUND: ModalityCatalog(
        modality=Modality.SOUND,
        stimuli=tuple(Stimulus(id=sid, name=name) for sid, name in _SOUNDS),
        colors=_BASE_PALETTE[:12],
    ),
}


def get_catalog(modality: Modality) -> ModalityCatalog:
    """Return the catalog entry for a modality."""
    return STIMULUS_CATALOG[Modality(modality)]


def stimulus_ids(modality: Modality) -> Tuple[str, ...]:
    """Ordered stimulus identifiers presented for a modality."""
    return get_catalog(modality).stimulus_ids


def is_known_stimulus(modality: Modality, stimulus: str) -> bool:
    """Check whether a stimulus identifier belongs to the modality's catalog."""
    return stimulus in get_catalog(modality).stimulus_ids
