"""
Tests for the render cache and the strip chart.
"""

import numpy as np
import pytest

from pystrip.stripplot.chart import StripChart
from pystrip.stripplot.render_cache import RenderCache

from conftest import make_series

BOUNDS = (300, 200)


class TestRenderCache:
    def test_repeated_draws_reuse_geometry(self):
        cache = RenderCache(identity=1)
        calls = []

        def producer():
            calls.append(1)
            return object()

        first = cache.draw(producer)
        second = cache.draw(producer)

        assert first is second
        assert len(calls) == 1
        assert cache.builds == 1

    def test_invalidate_forces_rebuild(self):
        cache = RenderCache(identity=1)
        first = cache.draw(object)
        cache.invalidate(2)
        second = cache.draw(object)

        assert first is not second
        assert cache.generation == 1
        assert cache.identity == 2

    def test_bounds_change_forces_rebuild(self):
        cache = RenderCache()
        small = cache.draw(object, bounds=(10, 10))
        large = cache.draw(object, bounds=(20, 10))

        assert small is not large
        assert cache.draw(object, bounds=(20, 10)) is large
        assert not cache.is_valid((10, 10))

    def test_clear_keeps_identity(self):
        cache = RenderCache(identity=5)
        cache.draw(object)
        cache.clear()

        assert not cache.is_valid()
        assert cache.identity == 5
        assert cache.generation == 0


class TestStripChart:
    def test_placeholder_before_install(self):
        chart = StripChart()
        image = chart.draw(BOUNDS)

        assert chart.active_dataset is None
        assert image.shape == (BOUNDS[1], BOUNDS[0], 4)
        assert image.dtype == np.uint8
        assert not image.flags.writeable

    def test_install_invalidates(self):
        chart = StripChart()
        placeholder = chart.draw(BOUNDS)
        chart.install(make_series([60, 70, 65, 80]))

        assert chart.version == 1
        assert chart.cache.generation == 1
        image = chart.draw(BOUNDS)
        assert image is not placeholder
        assert not np.array_equal(image, placeholder)

    def test_draws_between_installs_are_identical(self):
        chart = StripChart()
        chart.install(make_series([1, 5, 3]))
        first = chart.draw(BOUNDS)

        assert chart.draw(BOUNDS) is first
        assert chart.draw(BOUNDS) is first
        assert chart.cache.builds == 1

    def test_flat_series(self):
        chart = StripChart()
        chart.install(make_series([42, 42, 42]))
        assert chart.draw(BOUNDS).shape == (BOUNDS[1], BOUNDS[0], 4)

    def test_empty_install_rejected(self):
        chart = StripChart()
        with pytest.raises(ValueError):
            chart.install([])
        assert chart.version == 0

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            StripChart().draw((0, 100))

    def test_save(self, tmp_path):
        chart = StripChart()
        chart.install(make_series(range(50)))
        path = tmp_path / "chart.png"
        chart.save(str(path), bounds=BOUNDS)

        assert path.exists()
        assert path.stat().st_size > 0
