"""Segment interpolation between trajectory keyframes.

Each function receives boundary values of one segment (arrays of the same
shape, one entry per trajectory element) together with the segment duration
and the sample times measured from the segment start. They return position,
velocity and acceleration arrays of shape ``(len(times),) + xi.shape``.
"""

import numpy as np


def minjerk_coefficients(xi, vi, ai, xf, vf, af, total_time):
    """Quintic coefficients of a minimum-jerk segment (Hoff & Arbib).

    Returns
    -------
    coefficients : tuple of numpy.ndarray
        ``(a0, a1, a2, a3, a4, a5)`` with
        ``x(t) = a0 + a1 t + a2 t^2 + a3 t^3 + a4 t^4 + a5 t^5``.
    """
    # A=(gx-(x+v*t+(a/2.0)*t*t))/(t*t*t)
    # B=(gv-(v+a*t))/(t*t)
    # C=(ga-a)/t
    A = (xf - (xi + total_time * vi + (total_time ** 2)
               * 0.5 * ai)) / (total_time ** 3)
    B = (vf - (vi + total_time * ai)) / (total_time ** 2)
    C = (af - ai) / total_time

    a0 = xi
    a1 = vi
    a2 = 0.5 * ai
    a3 = 10 * A - 4 * B + 0.5 * C
    a4 = (-15 * A + 7 * B - C) / total_time
    a5 = (6 * A - 3 * B + 0.5 * C) / (total_time * total_time)
    return a0, a1, a2, a3, a4, a5


def minjerk_interpolation(xi, vi, ai, xf, vf, af, total_time, times):
    """Sample a minimum-jerk segment.

    Parameters
    ----------
    xi, vi, ai : numpy.ndarray
        Position, velocity and acceleration at the segment start.
    xf, vf, af : numpy.ndarray
        Position, velocity and acceleration at the segment end.
    total_time : float
        Segment duration. Must be positive.
    times : numpy.ndarray
        Sample times from the segment start.

    Returns
    -------
    position, velocity, acceleration : numpy.ndarray
    """
    a0, a1, a2, a3, a4, a5 = minjerk_coefficients(
        xi, vi, ai, xf, vf, af, total_time)
    t = np.asarray(times, dtype=np.float64).reshape(
        (-1,) + (1,) * np.ndim(xi))

    position = a0 + t * a1 + t ** 2 * a2 + t ** 3 * a3 \
        + t ** 4 * a4 + t ** 5 * a5
    velocity = a1 + 2 * t * a2 + 3 * t ** 2 * a3 \
        + 4 * t ** 3 * a4 + 5 * t ** 4 * a5
    acceleration = 2 * a2 + 6 * t * a3 + 12 * t ** 2 * a4 \
        + 20 * t ** 3 * a5
    return position, velocity, acceleration


def linear_interpolation(xi, vi, ai, xf, vf, af, total_time, times):
    """Sample a linear segment.

    Velocity and acceleration boundary values are ignored; the sampled
    velocity is the constant slope and the acceleration is zero.
    """
    t = np.asarray(times, dtype=np.float64).reshape(
        (-1,) + (1,) * np.ndim(xi))
    slope = (xf - xi) / total_time
    position = xi + t * slope
    velocity = np.zeros_like(position) + slope
    acceleration = np.zeros_like(position)
    return position, velocity, acceleration


_INTERPOLATORS = {
    'minjerk': minjerk_interpolation,
    'linear': linear_interpolation,
}


def get_interpolation_function(name):
    """Return the segment interpolation function registered as ``name``."""
    try:
        return _INTERPOLATORS[name]
    except KeyError:
        raise ValueError(
            "Unknown interpolation '{}'. Available: {}".format(
                name, sorted(_INTERPOLATORS.keys())))
