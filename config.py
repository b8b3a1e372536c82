"""
Filter design requests, with the input checks the designers themselves skip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from filter import (
    Filter,
    new_band_pass_filter,
    new_high_pass_filter,
    new_low_pass_filter,
)

logger = logging.getLogger(__name__)

FilterKind = Literal["lowpass", "highpass", "bandpass"]
FILTER_KINDS = ("lowpass", "highpass", "bandpass")


@dataclass(frozen=True)
class FilterDesign:
    """
    Physical parameters for one biquad. All frequencies share a unit (Hz).
    """

    kind: FilterKind = "lowpass"
    """Filter family"""

    cutoff_hz: float = 1000.0
    """Cutoff frequency, or centre frequency for band-pass"""

    sample_rate_hz: float = 48000.0
    """Sample rate of the signal the filter will be applied to"""

    bandwidth_hz: Optional[float] = None
    """Bandwidth, band-pass only"""

    @property
    def nyquist_hz(self) -> float:
        return self.sample_rate_hz / 2

    def validate(self) -> None:
        """Raise ValueError if the design would produce meaningless coefficients."""
        if self.kind not in FILTER_KINDS:
            raise ValueError(f"Unknown filter kind {self.kind!r}, expected one of {FILTER_KINDS}")
        if not self.sample_rate_hz > 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate_hz}")
        if not 0 < self.cutoff_hz < self.nyquist_hz:
            raise ValueError(
                f"Cutoff {self.cutoff_hz} Hz must lie strictly between 0 and Nyquist ({self.nyquist_hz} Hz)"
            )
        if self.kind == "bandpass":
            if self.bandwidth_hz is None:
                raise ValueError("Band-pass design requires bandwidth_hz")
            if not self.bandwidth_hz > 0:
                raise ValueError(f"Bandwidth must be positive, got {self.bandwidth_hz}")

    def build(self) -> Filter:
        self.validate()
        if self.kind == "lowpass":
            f = new_low_pass_filter(self.cutoff_hz, self.sample_rate_hz)
        elif self.kind == "highpass":
            f = new_high_pass_filter(self.cutoff_hz, self.sample_rate_hz)
        else:
            f = new_band_pass_filter(
                self.cutoff_hz, self.bandwidth_hz, self.sample_rate_hz
            )
        logger.debug("Designed %s: %s", self, f)
        return f
