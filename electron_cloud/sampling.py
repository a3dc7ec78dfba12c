"""
Electron cloud sampling engine.

Generates point clouds approximating hydrogen orbital probability densities
with accept/reject (importance) sampling:

- radial candidates come from a truncated Gamma distribution
- angular candidates come from an orbital-specific biased distribution
- each candidate is weighted by an approximate density and accepted or rejected
- accepted samples are sorted and resampled to exactly the requested count

The density formulas are qualitative approximations of the hydrogen
wavefunctions, not the normalized Laguerre/Legendre solutions. Every call is
pure given its inputs and the random generator passed in.
"""
import logging
import math
from dataclasses import dataclass
from numbers import Integral
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .coloring import colors_for

logger = logging.getLogger(__name__)


# -- Constants --
a0 = 1.0  # Bohr radius, in orbital-radius units
RADIAL_SCALE = 0.5  # Gamma scale per n^2 Bohr radii
RADIAL_CAP_FACTOR = 3.0  # radial cap as a multiple of the proposal mean
ANGULAR_JITTER = 0.1  # rad
LOBE_SPREAD = 0.3  # rad, spread of d-orbital lobes around their axes
PROBABILITY_EXPONENT = 0.7
EPSILON = 1e-6
ATTEMPT_FACTOR = 10
MIN_ATTEMPTS = 1000
MIN_BATCH = 256
EXTRA_FRACTION = 0.1
PAD_JITTER = 0.1


class SamplingCancelled(Exception):
    """Raised when the caller's cancellation callback asks generation to stop."""


# -- Data types --
@dataclass(frozen=True)
class SamplePoint:
    position: Tuple[float, float, float]
    probability: float
    color: Tuple[int, int, int]

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        return self.position[2]

    def to_dict(self) -> dict:
        """Plain-data form used by the export layer."""
        return {
            'x': self.position[0],
            'y': self.position[1],
            'z': self.position[2],
            'probability': self.probability,
            'color': list(self.color),
        }


@dataclass(frozen=True)
class CloudRequest:
    n: int
    l: int
    m: int
    num_points: int
    probability_cutoff: float = 0.0

    def __post_init__(self):
        validate_quantum_numbers(self.n, self.l, self.m, self.num_points)
        if not 0.0 <= self.probability_cutoff <= 1.0:
            raise ValueError(f"probability_cutoff must be in [0, 1], got {self.probability_cutoff}")


@dataclass(frozen=True)
class OrbitalShape:
    """Design constants steering sampling for one (l, m) family member."""
    axis_weights: Tuple[float, float, float]
    shape_scale: float
    profile: str


ISOTROPIC = OrbitalShape((1.0, 1.0, 1.0), 1.0, 'sphere')

ORBITAL_SHAPES = {
    (1, 0): OrbitalShape((0.7, 0.7, 1.3), 0.95, 'z'),
    (1, 1): OrbitalShape((1.3, 0.7, 0.7), 0.95, 'x'),
    (1, -1): OrbitalShape((0.7, 1.3, 0.7), 0.95, 'y'),
    (2, 0): OrbitalShape((0.8, 0.8, 1.3), 0.9, 'z2'),
    (2, 1): OrbitalShape((1.15, 0.7, 1.15), 0.9, 'xz'),
    (2, -1): OrbitalShape((0.7, 1.15, 1.15), 0.9, 'yz'),
    (2, 2): OrbitalShape((1.15, 1.15, 0.7), 0.9, 'x2-y2'),
    (2, -2): OrbitalShape((1.15, 1.15, 0.7), 0.9, 'xy'),
}

# Four-lobe d orbitals: (in-plane basis e1, e2, plane normal, lobe angle offset)
_PLANAR_LOBES = {
    'x2-y2': (0, 1, 2, 0.0),
    'xy': (0, 1, 2, math.pi / 4),
    'xz': (0, 2, 1, math.pi / 4),
    'yz': (1, 2, 0, math.pi / 4),
}


def validate_quantum_numbers(n, l, m, num_points=1):
    """Fail fast on out-of-domain input; the catalog never produces these."""
    for name, value in (('n', n), ('l', l), ('m', m), ('num_points', num_points)):
        if not isinstance(value, Integral) or isinstance(value, bool):
            raise ValueError(f"{name} must be an integer, got {value!r}")
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if not 0 <= l < n:
        raise ValueError(f"l must satisfy 0 <= l < n, got l={l}, n={n}")
    if abs(m) > l:
        raise ValueError(f"m must satisfy -l <= m <= l, got m={m}, l={l}")
    if num_points <= 0:
        raise ValueError(f"num_points must be positive, got {num_points}")


def sampling_l(l):
    """l used by the sampling path; l >= 3 falls back to the isotropic s case."""
    return l if l in (1, 2) else 0


def orbital_shape(l, m) -> OrbitalShape:
    """Axis weights, shape scale and angular profile for (l, m); unmapped pairs are isotropic."""
    return ORBITAL_SHAPES.get((sampling_l(l), m), ISOTROPIC)


# -- Radial part --
def radial_distribution(n, l):
    """Gamma proposal of shape (n - l) and scale proportional to n^2 a0."""
    return stats.gamma(a=max(n - l, 1), scale=RADIAL_SCALE * n ** 2 * a0)


def radial_cap(n, l):
    return RADIAL_CAP_FACTOR * float(radial_distribution(n, l).mean())


def sample_radii(n, l, size, rng):
    """
    Draw radii from the Gamma proposal truncated at the radial cap

    :param n: principal quantum number
    :param l: angular momentum quantum number (sampling path)
    :param size: number of radii
    :param rng: numpy Generator
    :return: tuple of (radii array, cap)
    """
    dist = radial_distribution(n, l)
    cap = RADIAL_CAP_FACTOR * float(dist.mean())
    u = rng.uniform(0.0, float(dist.cdf(cap)), size)
    return dist.ppf(u), cap


def radial_factor(r, n, l):
    return np.power(r, 2 * l) * np.exp(-r / n)


def normalization_constant(n, l):
    """Peak of the radial factor, reached at r = 2ln (1 at the nucleus for s)."""
    if l == 0:
        return 1.0
    r_peak = 2.0 * l * n
    return float(r_peak ** (2 * l) * math.exp(-r_peak / n))


# -- Angular part --
def _sphere_directions(size, rng):
    u = rng.uniform(-1.0, 1.0, size)
    psi = rng.uniform(0.0, 2 * np.pi, size)
    s = np.sqrt(1.0 - u ** 2)
    return np.column_stack([s * np.cos(psi), s * np.sin(psi), u])


def _axis_directions(axis, size, rng):
    # cos(angle to axis) has density proportional to |u|
    u = np.sqrt(rng.uniform(0.0, 1.0, size)) * rng.choice([-1.0, 1.0], size)
    psi = rng.uniform(0.0, 2 * np.pi, size)
    s = np.sqrt(1.0 - u ** 2)
    local = np.column_stack([s * np.cos(psi), s * np.sin(psi), u])
    return np.roll(local, {'z': 0, 'x': 1, 'y': 2}[axis], axis=1)


def _z2_directions(size, rng):
    lobe = rng.uniform(0.0, 1.0, size) < 0.75
    u = np.where(
        lobe,
        np.cbrt(rng.uniform(0.0, 1.0, size)) * rng.choice([-1.0, 1.0], size),
        rng.uniform(-0.35, 0.35, size),
    )
    psi = rng.uniform(0.0, 2 * np.pi, size)
    s = np.sqrt(1.0 - u ** 2)
    return np.column_stack([s * np.cos(psi), s * np.sin(psi), u])


def _planar_lobe_directions(profile, size, rng):
    e1, e2, normal, offset = _PLANAR_LOBES[profile]
    alpha = offset + rng.integers(0, 4, size) * (np.pi / 2) + rng.normal(0.0, LOBE_SPREAD, size)
    beta = rng.normal(0.0, LOBE_SPREAD, size)
    directions = np.zeros((size, 3))
    directions[:, e1] = np.cos(beta) * np.cos(alpha)
    directions[:, e2] = np.cos(beta) * np.sin(alpha)
    directions[:, normal] = np.sin(beta)
    return directions


def sample_angles(shape, size, rng):
    """
    Draw (theta, phi) biased toward the orbital's lobes, then jitter both

    :param shape: OrbitalShape whose profile selects the distribution
    :param size: number of samples
    :param rng: numpy Generator
    :return: tuple of (theta, phi) arrays
    """
    profile = shape.profile
    if profile in ('x', 'y', 'z'):
        directions = _axis_directions(profile, size, rng)
    elif profile == 'z2':
        directions = _z2_directions(size, rng)
    elif profile in _PLANAR_LOBES:
        directions = _planar_lobe_directions(profile, size, rng)
    else:
        directions = _sphere_directions(size, rng)

    theta = np.arccos(np.clip(directions[:, 2], -1.0, 1.0))
    phi = np.arctan2(directions[:, 1], directions[:, 0])
    theta = theta + rng.uniform(-ANGULAR_JITTER, ANGULAR_JITTER, size)
    phi = phi + rng.uniform(-ANGULAR_JITTER, ANGULAR_JITTER, size)
    return theta, phi


def angular_factor(profile, theta, phi):
    """Approximate |angular part| for a profile, scaled to peak at 1."""
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    if profile == 'z':
        return np.abs(cos_t)
    if profile == 'x':
        return np.abs(sin_t * np.cos(phi))
    if profile == 'y':
        return np.abs(sin_t * np.sin(phi))
    if profile == 'z2':
        return np.abs(3 * cos_t ** 2 - 1) / 2
    if profile == 'xz':
        return 2 * np.abs(sin_t * cos_t * np.cos(phi))
    if profile == 'yz':
        return 2 * np.abs(sin_t * cos_t * np.sin(phi))
    if profile == 'x2-y2':
        return np.abs(sin_t ** 2 * np.cos(2 * phi))
    if profile == 'xy':
        return np.abs(sin_t ** 2 * np.sin(2 * phi))
    return np.ones_like(np.asarray(theta, dtype=float))


# -- Density --
def spherical_to_cartesian(r, theta, phi, axis_weights=(1.0, 1.0, 1.0)):
    sin_t = np.sin(theta)
    xyz = np.column_stack([r * sin_t * np.cos(phi), r * sin_t * np.sin(phi), r * np.cos(theta)])
    return xyz * np.asarray(axis_weights, dtype=float)[None, :]


def probability_density(r, theta, phi, n, l, m):
    """
    Approximate, unnormalized probability density

    :param r: radial distance from nucleus
    :param theta: polar angle
    :param phi: azimuthal angle
    :param n: principal quantum number
    :param l: angular momentum quantum number
    :param m: magnetic quantum number
    :return: radial factor x angular factor x shape scale
    """
    shape = orbital_shape(l, m)
    ls = sampling_l(l)
    return radial_factor(r, n, ls) * angular_factor(shape.profile, theta, phi) * shape.shape_scale


def normalize_probability(density, n, l):
    """Scale into [0, 1] and compress so faint regions stay visible."""
    p = np.asarray(density, dtype=float) / normalization_constant(n, sampling_l(l))
    p = np.where(np.isfinite(p) & (p > 0), p, EPSILON)
    p = np.clip(p, EPSILON, 1.0)
    return np.power(p, PROBABILITY_EXPONENT)


def _sample_batch(n, l, m, size, rng):
    """One vectorized round of steps 2-7; returns accepted positions and probabilities."""
    ls = sampling_l(l)
    shape = orbital_shape(l, m)

    r, cap = sample_radii(n, ls, size, rng)
    theta, phi = sample_angles(shape, size, rng)

    probability = normalize_probability(probability_density(r, theta, phi, n, l, m), n, l)
    damping = 1.0 - 0.5 * np.clip(r / cap, 0.0, 1.0)
    accepted = rng.uniform(0.0, 1.0, size) < probability * damping

    positions = spherical_to_cartesian(r[accepted], theta[accepted], phi[accepted], shape.axis_weights)
    return positions, probability[accepted]


# -- Post-processing --
def _downsample_indices(count, target, rng):
    n_extra = int(target * EXTRA_FRACTION)
    n_stride = target - n_extra
    picked = np.floor(np.arange(n_stride) * (count / n_stride)).astype(int)
    remaining = np.setdiff1d(np.arange(count), picked)
    extra = rng.choice(remaining, size=min(n_extra, len(remaining)), replace=False)
    return np.concatenate([picked, extra])[:target]


def resample_to_target(positions, probabilities, colors, target, rng):
    """
    Sort by descending probability, then downsample or pad to ``target`` rows

    Downsampling keeps evenly spaced samples across the sorted order plus a
    random 10% for diversity. Padding cycles through the samples with a small
    positional jitter.

    :return: tuple of (positions, probabilities, colors)
    """
    order = np.argsort(-probabilities, kind='stable')
    positions, probabilities, colors = positions[order], probabilities[order], colors[order]
    count = len(probabilities)

    if count > target:
        idx = _downsample_indices(count, target, rng)
        return positions[idx], probabilities[idx], colors[idx]

    if count < target:
        src = np.arange(target - count) % count
        jitter = rng.uniform(-PAD_JITTER, PAD_JITTER, (len(src), 3))
        positions = np.vstack([positions, positions[src] + jitter])
        probabilities = np.concatenate([probabilities, probabilities[src]])
        colors = np.vstack([colors, colors[src]])

    return positions, probabilities, colors


# -- Public API --
def generate_electron_cloud_data(n, l, m, num_points, rng=None,
                                 should_cancel: Optional[Callable[[], bool]] = None) -> List[SamplePoint]:
    """
    Generate an electron cloud for the orbital (n, l, m)

    :param n: principal energy level integer (quantum number)
    :param l: azimuthal/angular momentum integer describing shape of orbitals (quantum number)
    :param m: magnetic quantum number describing orientation of orbital in space (quantum number)
    :param num_points: number of points to return
    :param rng: numpy Generator; a fresh unseeded one is used when omitted
    :param should_cancel: optional callback polled once per batch
    :return: list of num_points SamplePoints, or an empty list if nothing was accepted
    """
    validate_quantum_numbers(n, l, m, num_points)
    if rng is None:
        rng = np.random.default_rng()

    budget = max(ATTEMPT_FACTOR * num_points, MIN_ATTEMPTS)
    chunks_pos, chunks_prob = [], []
    accepted = attempts = 0

    while accepted < num_points and attempts < budget:
        if should_cancel is not None and should_cancel():
            raise SamplingCancelled(f"cancelled after {attempts} attempts")
        size = min(budget - attempts, max(2 * (num_points - accepted), MIN_BATCH))
        positions, probabilities = _sample_batch(n, l, m, size, rng)
        attempts += size
        accepted += len(probabilities)
        chunks_pos.append(positions)
        chunks_prob.append(probabilities)

    logger.debug("(n,l,m)=(%d,%d,%d): accepted %d of %d attempts", n, l, m, accepted, attempts)

    if accepted == 0:
        logger.warning("No samples accepted for (n,l,m)=(%d,%d,%d) after %d attempts", n, l, m, attempts)
        return []
    if accepted < num_points:
        logger.info("Padding (n,l,m)=(%d,%d,%d) from %d to %d points", n, l, m, accepted, num_points)

    positions = np.concatenate(chunks_pos)
    probabilities = np.concatenate(chunks_prob)
    colors = colors_for(l, probabilities, positions)

    positions, probabilities, colors = resample_to_target(positions, probabilities, colors, num_points, rng)

    return [
        SamplePoint(tuple(pos), prob, tuple(col))
        for pos, prob, col in zip(positions.tolist(), probabilities.tolist(), colors.tolist())
    ]


def apply_cutoff(points: Sequence[SamplePoint], threshold) -> List[SamplePoint]:
    """Keep points whose probability is at least ``threshold``, preserving order."""
    return [p for p in points if p.probability >= threshold]


def generate_cloud(request: CloudRequest, rng=None, should_cancel=None) -> List[SamplePoint]:
    """Generate the cloud for a request and apply its probability cutoff."""
    points = generate_electron_cloud_data(request.n, request.l, request.m, request.num_points,
                                          rng=rng, should_cancel=should_cancel)
    return apply_cutoff(points, request.probability_cutoff)


def points_to_arrays(points: Sequence[SamplePoint]):
    """
    Split points into numpy arrays for rendering

    :return: tuple of (positions (N, 3) float, probabilities (N,), colors (N, 3) uint8)
    """
    if not points:
        return np.zeros((0, 3)), np.zeros(0), np.zeros((0, 3), dtype=np.uint8)
    positions = np.array([p.position for p in points], dtype=float)
    probabilities = np.array([p.probability for p in points], dtype=float)
    colors = np.array([p.color for p in points], dtype=np.uint8)
    return positions, probabilities, colors


def cloud_extent(points: Sequence[SamplePoint]) -> float:
    """Largest absolute coordinate across all points (0 for an empty cloud)."""
    if not points:
        return 0.0
    positions, _, _ = points_to_arrays(points)
    return float(np.max(np.abs(positions)))
