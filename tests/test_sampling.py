import json
import logging
import math

import numpy as np
import pytest

from electron_cloud import sampling
from electron_cloud.sampling import (
    EPSILON,
    CloudRequest,
    SamplePoint,
    SamplingCancelled,
    angular_factor,
    apply_cutoff,
    cloud_extent,
    generate_cloud,
    generate_electron_cloud_data,
    normalization_constant,
    normalize_probability,
    orbital_shape,
    points_to_arrays,
    radial_cap,
    radial_factor,
    resample_to_target,
    sample_radii,
)
from electron_cloud.states import get_all_states


def mean_abs(points):
    positions, _, _ = points_to_arrays(points)
    return np.mean(np.abs(positions), axis=0)


def mean_radius(points):
    positions, _, _ = points_to_arrays(points)
    return float(np.mean(np.linalg.norm(positions, axis=1)))


@pytest.mark.parametrize("num_points", [1, 100, 5000])
def test_exact_point_count_for_every_catalog_state(num_points, rng):
    for state in get_all_states():
        points = generate_electron_cloud_data(state.n, state.l, state.m, num_points, rng=rng)
        assert len(points) == num_points, state.label


def test_range_invariants(rng):
    for state in get_all_states():
        for p in generate_electron_cloud_data(state.n, state.l, state.m, 500, rng=rng):
            assert math.isfinite(p.probability)
            assert 0.0 <= p.probability <= 1.0
            assert all(0 <= c <= 255 for c in p.color)
            assert all(isinstance(c, int) for c in p.color)
            assert all(math.isfinite(v) for v in p.position)


def test_s_orbital_radius_grows_with_n(rng):
    radii = [mean_radius(generate_electron_cloud_data(n, 0, 0, 3000, rng=rng)) for n in (1, 2, 3)]
    assert radii[0] < radii[1] < radii[2]
    assert radii[2] > 2 * radii[0]


def test_pz_is_elongated_along_z(rng):
    mx, my, mz = mean_abs(generate_electron_cloud_data(2, 1, 0, 2000, rng=rng))
    assert mz > 1.3 * mx
    assert mz > 1.3 * my


def test_px_is_elongated_along_x(rng):
    mx, my, mz = mean_abs(generate_electron_cloud_data(2, 1, 1, 2000, rng=rng))
    assert mx > 1.3 * my
    assert mx > 1.3 * mz


def test_dxy_lobes_stay_near_xy_plane(rng):
    mx, my, mz = mean_abs(generate_electron_cloud_data(3, 2, -2, 2000, rng=rng))
    assert mx > 1.5 * mz
    assert my > 1.5 * mz


def test_same_seed_is_reproducible():
    a = generate_electron_cloud_data(3, 2, 1, 800, rng=np.random.default_rng(7))
    b = generate_electron_cloud_data(3, 2, 1, 800, rng=np.random.default_rng(7))
    c = generate_electron_cloud_data(3, 2, 1, 800, rng=np.random.default_rng(8))
    assert a == b
    assert a != c


def test_default_generator_used_when_rng_missing():
    assert len(generate_electron_cloud_data(2, 0, 0, 50)) == 50


def test_high_l_falls_back_to_isotropic_with_cyan(rng):
    points = generate_electron_cloud_data(4, 3, 1, 300, rng=rng)
    assert len(points) == 300
    assert orbital_shape(3, 1).profile == 'sphere'
    for p in points:
        r, g, b = p.color
        assert r < g <= b


def test_unmapped_m_defaults_to_isotropic_weights():
    assert orbital_shape(1, 5).axis_weights == (1.0, 1.0, 1.0)
    assert orbital_shape(0, 0).axis_weights == (1.0, 1.0, 1.0)
    assert orbital_shape(1, 0).axis_weights[2] > orbital_shape(1, 0).axis_weights[0]


@pytest.mark.parametrize("args", [
    (0, 0, 0, 10),
    (2, 2, 0, 10),
    (2, 1, 2, 10),
    (2, 1, 0, 0),
    (2, -1, 0, 10),
    (2.0, 1, 0, 10),
])
def test_malformed_input_fails_fast(args):
    with pytest.raises(ValueError):
        generate_electron_cloud_data(*args)


def test_cancellation_is_polled():
    with pytest.raises(SamplingCancelled):
        generate_electron_cloud_data(2, 1, 0, 100, should_cancel=lambda: True)


def test_cancellation_callback_not_triggered(rng):
    calls = []

    def never():
        calls.append(1)
        return False

    points = generate_electron_cloud_data(1, 0, 0, 100, rng=rng, should_cancel=never)
    assert len(points) == 100
    assert calls


# -- Cutoff --
def test_cutoff_zero_keeps_everything_in_order(rng):
    points = generate_electron_cloud_data(2, 1, 0, 300, rng=rng)
    assert apply_cutoff(points, 0.0) == points


def test_cutoff_above_one_is_empty(rng):
    points = generate_electron_cloud_data(2, 1, 0, 300, rng=rng)
    assert apply_cutoff(points, 1.01) == []


def test_cutoff_keeps_order_and_threshold():
    points = [SamplePoint((0.0, 0.0, float(i)), p, (0, 0, 0)) for i, p in enumerate([0.2, 0.9, 0.5, 0.1])]
    kept = apply_cutoff(points, 0.5)
    assert [p.z for p in kept] == [1.0, 2.0]


def test_generate_cloud_applies_request_cutoff(rng):
    request = CloudRequest(3, 1, 0, 1000, 0.3)
    points = generate_cloud(request, rng=rng)
    assert 0 < len(points) <= 1000
    assert all(p.probability >= 0.3 for p in points)


def test_cloud_request_validates():
    with pytest.raises(ValueError):
        CloudRequest(1, 0, 0, 100, 1.5)
    with pytest.raises(ValueError):
        CloudRequest(1, 1, 0, 100)


# -- Building blocks --
def test_radii_respect_cap(rng):
    r, cap = sample_radii(3, 0, 5000, rng)
    assert cap == pytest.approx(radial_cap(3, 0))
    assert np.all(r >= 0)
    assert np.all(r <= cap * (1 + 1e-9))


def test_radial_factor_peaks_at_normalization():
    r = np.linspace(0, 40, 4001)
    for n, l in [(1, 0), (2, 1), (3, 1), (3, 2)]:
        assert np.max(radial_factor(r, n, l)) == pytest.approx(normalization_constant(n, l), rel=1e-4)


@pytest.mark.parametrize("profile", ['z', 'x', 'y', 'z2', 'xz', 'yz', 'x2-y2', 'xy', 'sphere'])
def test_angular_factor_peaks_at_one(profile):
    theta, phi = np.meshgrid(np.linspace(0, np.pi, 181), np.linspace(0, 2 * np.pi, 361))
    values = angular_factor(profile, theta, phi)
    assert np.max(values) == pytest.approx(1.0, abs=1e-6)
    assert np.min(values) >= 0.0


def test_normalize_probability_clamps_bad_values():
    p = normalize_probability(np.array([np.nan, -1.0, np.inf, 0.0, 0.5, 50.0]), 1, 0)
    assert np.all(np.isfinite(p))
    assert np.all(p > 0)
    assert np.all(p <= 1.0)
    assert p[0] == pytest.approx(EPSILON ** 0.7)
    assert p[4] == pytest.approx(0.5 ** 0.7)
    assert p[5] == 1.0


def test_resample_downsamples_with_high_probability_first(rng):
    count = 200
    positions = rng.normal(size=(count, 3))
    probabilities = rng.uniform(size=count)
    colors = np.zeros((count, 3), dtype=np.uint8)

    pos, prob, col = resample_to_target(positions, probabilities, colors, 50, rng)
    assert len(pos) == len(prob) == len(col) == 50
    assert prob[0] == probabilities.max()
    # 45 evenly spaced picks, then 5 random extras
    assert np.all(np.diff(prob[:45]) <= 0)
    assert len({tuple(row) for row in pos}) == 50


def test_resample_pads_with_small_jitter(rng):
    positions = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
    probabilities = np.array([0.1, 0.9, 0.5])
    colors = np.array([[1, 1, 1], [2, 2, 2], [3, 3, 3]], dtype=np.uint8)

    pos, prob, col = resample_to_target(positions, probabilities, colors, 10, rng)
    assert len(pos) == 10
    assert list(prob[:3]) == [0.9, 0.5, 0.1]
    for i in range(3, 10):
        src = (i - 3) % 3
        assert np.all(np.abs(pos[i] - pos[src]) <= 0.1)
        assert prob[i] == prob[src]
        assert np.array_equal(col[i], col[src])


def test_resample_stable_for_ties(rng):
    positions = np.arange(12, dtype=float).reshape(4, 3)
    probabilities = np.array([0.5, 0.5, 0.9, 0.5])
    colors = np.zeros((4, 3), dtype=np.uint8)
    pos, _, _ = resample_to_target(positions, probabilities, colors, 4, rng)
    assert [row[0] for row in pos] == [6.0, 0.0, 3.0, 9.0]


def test_points_are_plain_data(rng):
    points = generate_electron_cloud_data(2, 0, 0, 20, rng=rng)
    encoded = json.dumps([p.to_dict() for p in points])
    assert json.loads(encoded)[0].keys() == {'x', 'y', 'z', 'probability', 'color'}


def test_points_to_arrays_and_extent(rng):
    assert cloud_extent([]) == 0.0
    positions, probabilities, colors = points_to_arrays([])
    assert positions.shape == (0, 3) and probabilities.shape == (0,) and colors.shape == (0, 3)

    points = [SamplePoint((1.0, -3.0, 2.0), 0.5, (1, 2, 3)), SamplePoint((0.0, 0.5, 0.0), 0.2, (4, 5, 6))]
    assert cloud_extent(points) == 3.0
    positions, probabilities, colors = points_to_arrays(points)
    assert positions.shape == (2, 3)
    assert colors.dtype == np.uint8


def test_zero_yield_returns_empty_and_warns(monkeypatch, caplog):
    monkeypatch.setattr(sampling, "_sample_batch", lambda *args: (np.zeros((0, 3)), np.zeros(0)))
    monkeypatch.setattr(logging.getLogger("electron_cloud"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="electron_cloud.sampling"):
        points = generate_electron_cloud_data(2, 1, 0, 10, rng=np.random.default_rng(0))

    assert points == []
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING and r.name == "electron_cloud.sampling"]
    assert len(warnings) == 1
    assert "No samples accepted" in warnings[0].getMessage()
