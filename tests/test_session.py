import pytest

from sextant_mandel.bitgrid import PackedGrid
from sextant_mandel.cache import CoordinateCache
from sextant_mandel.engine import RenderEngine
from sextant_mandel.scaler import Scaler
from sextant_mandel.session import RenderSession


@pytest.fixture
def engine():
    with RenderEngine(workers=2) as eng:
        yield eng


def _session(**kwargs):
    return RenderSession(Scaler(0.0, 8.0, -2.0, 2.0), Scaler(0.0, 8.0, -2.0, 2.0), 40, **kwargs)


def test_default_view_fits_shorter_side(cfg):
    session = RenderSession.for_grid(160, 72, cfg)
    assert session.scaler_x.original_max == 72.0
    assert session.scaler_y.original_max == 72.0
    assert session.window == (-2.0, 0.47, -1.12, 1.12)
    assert session.threshold == 500
    assert isinstance(session.cache, CoordinateCache)


def test_default_view_survives_empty_grid(cfg):
    session = RenderSession.for_grid(0, 0, cfg)
    assert session.scaler_x.original_max == 1.0


def test_cache_disabled_by_config(cfg):
    cfg.update({"render": {"pan_cache": False}})
    assert RenderSession.for_grid(10, 10, cfg).cache is None


def test_pan_moves_by_pixel_steps():
    session = _session()
    step = session.scaler_x.scalar
    session.pan(1, 0)
    assert session.scaler_x.target_min == pytest.approx(-2.0 + step)
    session.pan(0, -1, fast=True)
    assert session.scaler_y.target_min == pytest.approx(-2.0 - 100 * step)


def test_pan_marks_next_frame_only():
    session = _session()
    session.pan(1, 0)
    assert session.snapshot()[3] is True
    assert session.snapshot()[3] is False


def test_zoom_steps():
    session = _session()
    expected = session.scaler_x.zoom_in().zoom_in()
    session.zoom(2)
    assert session.scaler_x == expected

    session = _session()
    session.zoom(-1)
    assert session.scaler_y == Scaler(0.0, 8.0, -2.0, 2.0).zoom_out()

    session = _session()
    session.zoom(1, fast=True)
    expected = Scaler(0.0, 8.0, -2.0, 2.0)
    for _ in range(10):
        expected = expected.zoom_in()
    assert session.scaler_x == expected


def test_zoom_clears_pan_flag():
    session = _session()
    session.pan(1, 0)
    session.zoom(1)
    assert session.snapshot()[3] is False


def test_threshold_saturates_at_zero():
    session = _session()
    assert session.change_threshold(+1) == 41
    assert session.change_threshold(+1, fast=True) == 91
    assert session.change_threshold(-1, fast=True) == 41
    assert session.change_threshold(-1, fast=True) == 0
    assert session.change_threshold(-1) == 0


def test_threshold_change_drops_cached_results():
    session = _session()
    old = session.cache
    old.put((0.0, 0.0), True)
    session.change_threshold(-5)
    assert session.cache is not old
    assert len(session.cache) == 0
    assert session.cache.shards == old.shards


def test_unchanged_threshold_keeps_cache():
    session = RenderSession(Scaler(0.0, 8.0, -2.0, 2.0), Scaler(0.0, 8.0, -2.0, 2.0), 0)
    cache = session.cache
    cache.put((0.0, 0.0), True)
    session.change_threshold(-1)
    assert session.cache is cache
    assert len(cache) == 1


class _ThresholdRaisingEngine:
    """Changes the session threshold while its own frame is being computed."""

    def __init__(self, engine, session, delta):
        self.engine = engine
        self.session = session
        self.delta = delta

    def render_frame(self, grid, scaler_x, scaler_y, threshold, cache=None):
        self.session.change_threshold(self.delta)
        return self.engine.render_frame(grid, scaler_x, scaler_y, threshold, cache)


def test_threshold_change_during_pan_frame_keeps_cache_consistent(engine):
    session = RenderSession(Scaler(0.0, 8.0, -2.0, 2.0), Scaler(0.0, 8.0, -2.0, 2.0), 1)
    grid = PackedGrid(8, 4)
    session.render(grid, engine)

    # this pan frame evaluates at threshold 1 while the session moves to 30
    session.pan(1, 0)
    assert session.render(grid, _ThresholdRaisingEngine(engine, session, 29)).cached
    assert session.threshold == 30

    session.pan(-1, 0)
    stats = session.render(grid, engine)
    assert stats.cached
    assert stats.cache_hits == 0

    expected = PackedGrid(8, 4)
    engine.render_frame(expected, session.scaler_x, session.scaler_y, 30)
    assert (grid.to_array() == expected.to_array()).all()
    assert expected.to_array().any()


def test_render_uses_cache_only_for_pan(engine):
    session = _session()
    grid = PackedGrid(8, 8)

    assert not session.render(grid, engine).cached
    session.pan(1, 0)
    stats = session.render(grid, engine)
    assert stats.cached
    assert len(session.cache) == 64

    session.pan(1, 0)
    stats = session.render(grid, engine)
    assert stats.cache_hits == 7 * 8

    session.zoom(1)
    assert not session.render(grid, engine).cached


def test_invalidate_forces_direct_path(engine):
    session = _session()
    session.pan(0, 1)
    session.invalidate()
    assert not session.render(PackedGrid(8, 8), engine).cached


def test_render_prunes_bounded_cache(engine):
    session = _session(cache=CoordinateCache(shards=1), cache_max_entries=32, cache_prune_watermark=0.5)
    session.pan(1, 0)
    session.render(PackedGrid(8, 8), engine)
    assert len(session.cache) == 16
