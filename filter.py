"""
Second-order (biquad) filter design via the bilinear transform, and the
direct-form recursion that applies a designed filter to a sample sequence.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field

import jax
import jax.numpy as jnp
import jax.lax as lax
import numpy as np

SQRT2 = np.sqrt(2.0)
N_COEFFS = 3

# jax_enable_x64 is process-wide; serialize the windows that flip it
_x64_lock = threading.Lock()


@contextmanager
def _float64():
    """Temporarily enable 64-bit precision, restoring the caller's setting afterwards."""
    with _x64_lock:
        original_x64_state = jax.config.jax_enable_x64
        jax.config.update("jax_enable_x64", True)
        try:
            yield
        finally:
            jax.config.update("jax_enable_x64", original_x64_state)


@dataclass(frozen=True, eq=False)
class Filter:
    """
    Coefficients for a biquad recursion.

    ``b`` multiplies past outputs (the poles) and is normalized so that
    ``b[0] == 1.0``; ``a`` multiplies the input and carries the overall gain.
    Both are read-only float64 arrays of length 3.
    """

    b: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    """Output-side coefficients [b0, b1, b2]"""

    a: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    """Input-side coefficients [a0, a1, a2]"""

    def __post_init__(self):
        for name in ("b", "a"):
            coeffs = np.array(getattr(self, name), dtype=np.float64)
            if coeffs.shape != (N_COEFFS,):
                raise ValueError(
                    f"{name} must hold exactly {N_COEFFS} coefficients, got shape {coeffs.shape}"
                )
            coeffs.setflags(write=False)
            object.__setattr__(self, name, coeffs)

    def filter(self, x) -> np.ndarray:
        """Run the filter over ``x``, starting at rest. Returns a new array of the same length."""
        y = biquad_apply(np.asarray(x, dtype=np.float64), self.b, self.a)
        return np.array(y, dtype=np.float64)

    def __repr__(self) -> str:
        return f"Filter(b={self.b.tolist()}, a={self.a.tolist()})"


def _prewarp(f_c, f_s) -> tuple[float, float]:
    # numpy scalars give IEEE inf/nan instead of ZeroDivisionError
    w_c = 2 * np.pi * np.float64(f_c) / np.float64(f_s)
    k = np.tan(w_c / 2)
    return k, k * k


def new_low_pass_filter(f_c, f_s) -> Filter:
    """Butterworth low-pass with cutoff ``f_c`` at sample rate ``f_s``. Inputs are not validated."""
    k, k2 = _prewarp(f_c, f_s)

    # all coeff denoms are the same
    denom = 1 + SQRT2 * k + k2

    b0 = 1.0
    b1 = 2 * (k2 - 1) / denom
    b2 = (1 - SQRT2 * k + k2) / denom
    a0 = k2 / denom
    a1 = 2 * k2 / denom
    a2 = k2 / denom
    return Filter(b=[b0, b1, b2], a=[a0, a1, a2])


def new_high_pass_filter(f_c, f_s) -> Filter:
    """Butterworth high-pass. Shares its poles (``b``) with the low-pass of the same cutoff."""
    k, k2 = _prewarp(f_c, f_s)

    denom = 1 + SQRT2 * k + k2

    b0 = 1.0
    b1 = 2 * (k2 - 1) / denom
    b2 = (1 - SQRT2 * k + k2) / denom
    a0 = 1 / denom
    a1 = -2 / denom
    a2 = 1 / denom
    return Filter(b=[b0, b1, b2], a=[a0, a1, a2])


def new_band_pass_filter(f_c, bw, f_s) -> Filter:
    """
    Band-pass centred on ``f_c`` with bandwidth ``bw``, using ``Q = f_s / bw``.
    The zeros sit at DC and Nyquist, so ``a[1]`` is exactly zero.
    """
    q = np.float64(f_s) / np.float64(bw)
    k, k2 = _prewarp(f_c, f_s)
    k_q = (1 / q) * k

    denom = 1 + k_q + k2

    b0 = 1.0
    b1 = 2 * (k2 - 1) / denom
    b2 = (1 - k_q + k2) / denom
    a0 = k_q / denom
    a1 = 0.0
    a2 = k_q / denom
    return Filter(b=[b0, b1, b2], a=[a0, a1, a2])


def biquad_apply(x: jnp.ndarray, b, a) -> jnp.ndarray:
    """
    Causal recursion via lax.scan with the delay line ``z`` as the carry:

        y[t]   = a[0]*x[t] + z[0]
        z[i-1] = a[i]*x[t] + z[i] - b[i]*y[t]    for i in 1..n-1

    The last delay slot is never written and stays at zero. Runs in float64
    without changing the process-wide jax precision.
    """
    with _float64():
        x = jnp.asarray(x, dtype=jnp.float64)
        b = jnp.asarray(b, dtype=jnp.float64)
        a = jnp.asarray(a, dtype=jnp.float64)

        def step(z, xn):
            yn = a[0] * xn + z[0]
            z = jnp.concatenate([a[1:] * xn + z[1:] - b[1:] * yn, z[-1:]])
            return z, yn

        init = jnp.zeros(a.shape[0], dtype=jnp.float64)
        _, y = lax.scan(step, init, x)
        y = y.block_until_ready()
    return y


def evaluate(f: Filter, x) -> np.ndarray:
    """Apply ``f`` to ``x``; same as ``f.filter(x)``."""
    return f.filter(x)
