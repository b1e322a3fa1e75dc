# ------- import libs -------
import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from math import acos, cos, exp, log, pi, sin
from typing import Protocol

import numpy as np
from scipy import integrate

logger = logging.getLogger(__name__)

A0 = 1.0               # Bohr radius
NUM_POINTS = 100000    # candidate budget


# ---------------- Density model ---------------- #
def normalization(a0=A0):
    return 1.0 / (32.0 * pi * a0**5)


def density(r, theta, a0=A0):
    """|psi_2pz|^2 at (r, theta). Accepts scalars or numpy arrays."""
    radial = r * r * np.exp(-r / a0)
    angular = np.cos(theta) ** 2
    return normalization(a0) * radial * angular


def density_bound(a0=A0):
    """
    Rejection envelope: max of r^2 e^(-r/a0) (at r = 2 a0) times max of cos^2.
    Not the joint maximum of the surface, but never below the density.
    """
    return normalization(a0) * (2.0 * a0) ** 2 * exp(-2.0)


def expected_acceptance_rate(a0=A0):
    """
    Probability that a single candidate is accepted, by quadrature over the
    proposal densities. Works out to e^2 / 48 for every a0.
    """
    bound = density_bound(a0)

    # r ~ Exp(a0)
    radial, _ = integrate.quad(
        lambda r: np.exp(-r / a0) / a0 * normalization(a0) * r * r * np.exp(-r / a0),
        0.0, np.inf,
    )
    # cos(theta) ~ U(-1, 1)
    angular, _ = integrate.quad(lambda c: 0.5 * c * c, -1.0, 1.0)

    return radial * angular / bound


# ---------------- Sampling ---------------- #
class UniformSource(Protocol):
    """Anything yielding uniform floats in [0, 1) from random()."""

    def random(self) -> float: ...


class SampleStats(namedtuple("SampleStats", ["candidates", "accepted"])):
    __slots__ = ()

    @property
    def acceptance_rate(self):
        return self.accepted / self.candidates if self.candidates else 0.0


def make_rng(seed=None):
    return np.random.default_rng(seed)


def spherical_to_cartesian(r, theta, phi):
    sin_theta = np.sin(theta)
    x = r * sin_theta * np.cos(phi)
    y = r * sin_theta * np.sin(phi)
    z = r * np.cos(theta)
    return x, y, z


def _check_params(num_points, a0):
    if num_points < 0:
        raise ValueError(f"num_points must be non-negative, got {num_points}")
    if not a0 > 0:
        raise ValueError(f"Bohr radius must be positive, got a0={a0}")


def _freeze(points):
    cloud = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    cloud.flags.writeable = False
    return cloud


def sample_points(num_points=NUM_POINTS, rng=None, a0=A0, return_stats=False):
    """
    Rejection-sample the 2p_z density with exactly `num_points` candidates.

    Each candidate consumes four draws from `rng`, in order: radius, polar
    angle, azimuth, acceptance. `rng` is any UniformSource; a fresh
    numpy Generator is used when omitted.

    Returns a read-only (n, 3) array of accepted Cartesian points,
    n <= num_points, plus SampleStats when `return_stats` is set.
    """
    _check_params(num_points, a0)
    if rng is None:
        rng = make_rng()

    max_density = density_bound(a0)
    points = []

    for _ in range(num_points):
        r = -a0 * log(1.0 - rng.random())
        theta = acos(1.0 - 2.0 * rng.random())
        phi = 2.0 * pi * rng.random()

        probability = density(r, theta, a0)

        # Rejection step
        if rng.random() <= probability / max_density:
            s = sin(theta)
            points.append((r * s * cos(phi), r * s * sin(phi), r * cos(theta)))

    cloud = _freeze(points)
    stats = SampleStats(num_points, len(cloud))
    logger.debug("sampled %d of %d candidates (%.2f%%)",
                 stats.accepted, stats.candidates, 100.0 * stats.acceptance_rate)

    if return_stats:
        return cloud, stats
    return cloud


def sample_points_batched(num_points=NUM_POINTS, rng=None, a0=A0, return_stats=False):
    """
    Same algorithm as sample_points, vectorized. `rng` must be a numpy
    Generator; one row of four uniforms is drawn per candidate.
    """
    _check_params(num_points, a0)
    if rng is None:
        rng = make_rng()

    u = rng.random((num_points, 4))
    r = -a0 * np.log1p(-u[:, 0])
    theta = np.arccos(1.0 - 2.0 * u[:, 1])
    phi = 2.0 * np.pi * u[:, 2]

    accept = u[:, 3] <= density(r, theta, a0) / density_bound(a0)

    x, y, z = spherical_to_cartesian(r[accept], theta[accept], phi[accept])
    cloud = _freeze(np.column_stack((x, y, z)))
    stats = SampleStats(num_points, len(cloud))
    logger.debug("batched: sampled %d of %d candidates", stats.accepted, stats.candidates)

    if return_stats:
        return cloud, stats
    return cloud


def sample_points_parallel(num_points=NUM_POINTS, seed=None, workers=4, a0=A0,
                           return_stats=False):
    """
    Split the candidate budget over `workers` threads. Worker i draws from
    its own stream spawned from SeedSequence(seed); partial clouds are joined
    in worker order, so a fixed (seed, workers) pair is reproducible.
    """
    _check_params(num_points, a0)
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")

    streams = [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(workers)]
    share, extra = divmod(num_points, workers)
    budgets = [share + (1 if i < extra else 0) for i in range(workers)]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        parts = list(pool.map(
            lambda job: sample_points_batched(job[0], rng=job[1], a0=a0),
            zip(budgets, streams),
        ))

    cloud = _freeze(np.concatenate(parts, axis=0))
    stats = SampleStats(num_points, len(cloud))
    logger.debug("parallel (%d workers): sampled %d of %d candidates",
                 workers, stats.accepted, stats.candidates)

    if return_stats:
        return cloud, stats
    return cloud


def print_report(pts, stats):
    print(f"Accepted {stats.accepted} of {stats.candidates} candidates "
          f"({100 * stats.acceptance_rate:.2f}%, expected "
          f"{100 * expected_acceptance_rate():.2f}%)")
    if len(pts):
        print(f"Mean radius: {np.linalg.norm(pts, axis=1).mean():.3f} a0")


def main(num_points=NUM_POINTS, seed=None):
    print("\n=== Hydrogen 2p_z Sampler ===\n")
    pts, stats = sample_points_batched(num_points, rng=make_rng(seed), return_stats=True)
    print_report(pts, stats)


if __name__ == "__main__":
    main()
