import numpy as np
import pytest

from luminet.blackhole import BlackHole, ConfigurationError
from luminet.flux import (
    ROTATION,
    FluxInterpolator,
    TriangulationError,
    Zone,
    classify_zones,
    flux_to_luma,
    max_observed_flux,
    pixel_world_coordinates,
    render_flux_image,
    render_flux_image_batch,
    render_flux_image_from_samples,
    samples_range,
)
from luminet.sample import Sample, observer_positions
from luminet.sampling import sample_flux

INCLINATION = np.radians(80)
WIDTH, HEIGHT = 256, 135


@pytest.fixture(scope='module')
def blackhole():
    return BlackHole(mass=1.0, accretion_rate=1e-7, outer_edge=50.0)


@pytest.fixture(scope='module')
def disk_samples(blackhole):
    direct = sample_flux(blackhole, INCLINATION, 5000, 0, workers=1, seed=11)
    ghost = sample_flux(blackhole, INCLINATION, 5000, 1, workers=1, seed=12)
    return direct, ghost


def _sample(alpha, impact_parameter=1.0):
    return Sample(
        radius=1.0, alpha=alpha, impact_parameter=impact_parameter, order=0,
        redshift_factor=0.0, observed_flux=0.0,
    )


def test_samples_range():
    min_pt, max_pt = samples_range([_sample(0.0)])
    np.testing.assert_array_equal(min_pt, [1.0, 0.0])
    np.testing.assert_array_equal(max_pt, [1.0, 0.0])

    min_pt, max_pt = samples_range([_sample(0.0), _sample(np.radians(-180.0))])
    np.testing.assert_allclose(min_pt, [-1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(max_pt, [1.0, 0.0], atol=1e-12)

    with pytest.raises(ValueError):
        samples_range([])


def test_interpolator_reproduces_linear_field():
    rng = np.random.default_rng(0)
    points = rng.uniform(-10, 10, size=(200, 2))
    values = 2.0 * points[:, 0] - 3.0 * points[:, 1] + 1.0
    interpolator = FluxInterpolator(points, values)

    query = rng.uniform(-5, 5, size=(50, 2))
    np.testing.assert_allclose(interpolator(query), 2.0 * query[:, 0] - 3.0 * query[:, 1] + 1.0)
    np.testing.assert_allclose(interpolator(points), values, atol=1e-9)


def test_interpolator_outside_hull():
    interpolator = FluxInterpolator([[0, 0], [1, 0], [0, 1]], [1.0, 2.0, 3.0])
    assert interpolator([[5.0, 5.0]])[0] == 0.0
    assert np.isnan(interpolator([[5.0, 5.0]], fill_value=np.nan)[0])
    assert interpolator([[0.0, 0.0]])[0] == pytest.approx(1.0)


@pytest.mark.parametrize('points', [
    [[0.0, 0.0], [1.0, 1.0]],
    [[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]],
])
def test_interpolator_rejects_degenerate_points(points):
    with pytest.raises(TriangulationError):
        FluxInterpolator(points, np.zeros(len(points)))


def test_pixel_world_coordinates():
    x, y = pixel_world_coordinates(0, 5, 8, 5, 0.5)
    assert x.shape == y.shape == (5, 8)
    assert x[2, 4] == 0.0 and y[2, 4] == 0.0
    assert x[0, 0] == -2.0
    # y grows upwards: the first row is the top of the image
    assert y[0, 0] == 1.0
    assert y[4, 0] == -1.0

    x_band, y_band = pixel_world_coordinates(2, 4, 8, 5, 0.5)
    np.testing.assert_array_equal(y_band, y[2:4])


def test_flux_to_luma():
    flux = np.array([np.nan, 0.0, 0.5, 1.0, 2.0, -1.0])
    np.testing.assert_array_equal(flux_to_luma(flux, (0.0, 1.0)), [0, 0, 32768, 65535, 65535, 0])
    assert flux_to_luma(flux, (0.0, 1.0)).dtype == np.uint16


def test_classify_zones(blackhole):
    x = np.array([0.0, 0.0, 15.0, 200.0])
    y = np.array([0.0, 0.5, 0.0, 0.0])
    zones = classify_zones(blackhole, INCLINATION, x, y)
    assert zones[0] == Zone.SHADOW
    assert zones[1] == Zone.SHADOW
    assert zones[2] == Zone.DIRECT
    assert zones[3] == Zone.GHOST


def test_render_end_to_end(blackhole, disk_samples):
    direct, ghost = disk_samples
    img = render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, WIDTH, HEIGHT, workers=1)
    assert img.shape == (HEIGHT, WIDTH)
    assert img.dtype == np.uint16

    points = observer_positions([s.rotated(ROTATION) for s in direct + ghost])
    units_per_pixel = (points[:, 0].max() - points[:, 0].min()) / WIDTH
    x, y = pixel_world_coordinates(0, HEIGHT, WIDTH, HEIGHT, units_per_pixel)
    zones = classify_zones(blackhole, INCLINATION, x, y)

    assert np.any(zones == Zone.SHADOW)
    assert np.all(img[zones == Zone.SHADOW] == 0)
    assert np.any(img[zones == Zone.DIRECT] > 0)


def test_render_does_not_modify_samples(blackhole, disk_samples):
    direct, ghost = disk_samples
    alphas = [s.alpha for s in direct]
    render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, 32, 16, workers=1)
    assert [s.alpha for s in direct] == alphas


def test_explicit_range_matches_default(blackhole, disk_samples):
    direct, ghost = disk_samples
    default = render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, 64, 34, workers=1)
    explicit = render_flux_image_from_samples(
        blackhole, INCLINATION, direct, ghost, 64, 34, (0.0, max_observed_flux(direct + ghost)), workers=1
    )
    np.testing.assert_array_equal(default, explicit)


def test_render_in_worker_processes(blackhole, disk_samples):
    direct, ghost = disk_samples
    inline = render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, 64, 34, workers=1)
    pooled = render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, 64, 34, workers=2)
    np.testing.assert_array_equal(pooled, inline)


def test_render_flux_image(blackhole):
    img = render_flux_image(blackhole, INCLINATION, 500, 40, 20, workers=1, seed=5)
    assert img.shape == (20, 40)
    assert img.max() > 0


def test_render_flux_image_batch_shares_range(blackhole):
    images = render_flux_image_batch(blackhole, 500, np.radians([30.0, 80.0]), 40, 20, workers=1, seed=5)
    assert len(images) == 2
    assert all(img.shape == (20, 40) and img.dtype == np.uint16 for img in images)
    assert all(img.max() > 0 for img in images)

    with pytest.raises(ConfigurationError):
        render_flux_image_batch(blackhole, 500, [], 40, 20, workers=1)


def test_too_few_samples(blackhole, disk_samples):
    direct, _ = disk_samples
    with pytest.raises(TriangulationError):
        render_flux_image_from_samples(blackhole, INCLINATION, direct, direct[:2], 32, 16, workers=1)


@pytest.mark.parametrize('size', [(0, 10), (10, 0), (-4, 4)])
def test_invalid_image_size(blackhole, disk_samples, size):
    direct, ghost = disk_samples
    with pytest.raises(ConfigurationError):
        render_flux_image_from_samples(blackhole, INCLINATION, direct, ghost, *size, workers=1)


def test_single_frame_batch_matches_render_flux_image(blackhole):
    single = render_flux_image(blackhole, INCLINATION, 400, 40, 20, workers=1, seed=9)
    batch = render_flux_image_batch(blackhole, 400, [INCLINATION], 40, 20, workers=1, seed=9)
    np.testing.assert_array_equal(batch[0], single)
