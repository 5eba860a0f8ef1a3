from typing import Sequence

import numpy as np


def make_f_seg(n_days: int, breakpoints: Sequence[int] = (), forecast_days: int = 0) -> np.ndarray:
    """Builds a per day contact segment vector.

    Day 0 is segment 0, which uses the baseline contact fraction ``f0``.
    Every later day is segment 1 until the first breakpoint, from which day
    on it is segment 2, and so on.

    Parameters
    ----------
    n_days
        Number of days with data.
    breakpoints
        Day indices on which a new contact segment starts.
    forecast_days
        Extra days to append. They continue the last segment.

    """
    if n_days < 2:
        raise ValueError(f'At least two days are required to build contact segments. Got {n_days}.')
    breakpoints = sorted(int(b) for b in breakpoints)
    if breakpoints and not (0 < breakpoints[0] and breakpoints[-1] < n_days + forecast_days):
        raise ValueError(f'Breakpoints {breakpoints} must fall inside days 1 to {n_days + forecast_days - 1}.')
    if len(set(breakpoints)) != len(breakpoints):
        raise ValueError(f'Breakpoints must be unique. Got {breakpoints}.')
    days = np.arange(n_days + forecast_days)
    f_seg = 1 + np.searchsorted(breakpoints, days, side='right')
    f_seg[0] = 0
    return f_seg


def validate_f_seg(f_seg: Sequence[int], expected_length: int) -> np.ndarray:
    """Checks a contact segment vector and returns it as an integer array."""
    f_seg = np.asarray(f_seg)
    if f_seg.ndim != 1 or len(f_seg) != expected_length:
        raise ValueError(f'f_seg must have one entry per data and forecast day ({expected_length}). '
                         f'Got shape {f_seg.shape}.')
    if not np.all(np.equal(np.mod(f_seg, 1), 0)):
        raise ValueError('f_seg must contain integer segment ids.')
    f_seg = f_seg.astype(int)
    if f_seg.min() < 0:
        raise ValueError('f_seg ids must be non-negative.')
    segments = np.unique(f_seg[f_seg > 0])
    if segments.size == 0:
        raise ValueError('f_seg must contain at least one estimated segment.')
    if not np.array_equal(segments, np.arange(1, segments.size + 1)):
        raise ValueError(f'f_seg ids must be contiguous from 1. Got {segments.tolist()}.')
    return f_seg


def contact_fraction(t, f_seg, f_s, start_decline, end_decline, f0=1.0, xp=np):
    """Contact rate fraction of the distancing group at times ``t``.

    The fraction is ``f0`` before ``start_decline``, ramps linearly toward
    the target of the current segment until ``end_decline`` and holds the
    segment target afterwards. Segment 0 targets ``f0``; segment ``k``
    targets ``f_s[k - 1]``.

    ``xp`` is the array module, either :mod:`numpy` or :mod:`jax.numpy`,
    so the same function serves the projections and the fit.
    """
    f_seg = xp.asarray(f_seg)
    days = xp.clip(xp.floor(t).astype(int), 0, f_seg.shape[0] - 1)
    targets = xp.concatenate([xp.atleast_1d(xp.asarray(f0, dtype=float)), xp.asarray(f_s, dtype=float)])
    target = targets[f_seg[days]]
    ramp_length = xp.maximum(end_decline - start_decline, 1e-6)
    ramp = xp.clip((t - start_decline) / ramp_length, 0.0, 1.0)
    return f0 + (target - f0) * ramp
