import logging
from types import SimpleNamespace

import pytest
from prompt_toolkit.keys import Keys

from sextant_mandel.logging_conf import setup_logging
from sextant_mandel.rendering.sextant_mode import SextantRenderer
from sextant_mandel.styles import make_style
from sextant_mandel.ui.app import FractalApp
from sextant_mandel.ui.fractal_control import FractalControl
from sextant_mandel.ui.state import ViewState
from sextant_mandel.ui.statusbar import StatusBar


@pytest.fixture
def control(cfg):
    cfg.update({"view": {"threshold": 50}, "render": {"workers": 2}})
    ctl = FractalControl(cfg, ViewState(cfg), SextantRenderer())
    yield ctl
    ctl.shutdown()


def test_render_sizes_grid_for_terminal(control):
    frame = control.render(12, 5)
    assert (control.grid.width, control.grid.height) == (24, 15)
    assert len(frame.lines_frag) == 5
    assert all(len(line[0][1]) == 12 for line in frame.lines_frag)
    assert all(line[0][0] == "class:fractal" for line in frame.lines_frag)
    assert control.state.session.threshold == 50
    assert not control.state.busy


def test_render_after_resize_keeps_session(control):
    control.render(12, 5)
    session = control.state.session
    control.pan(1, 0)
    frame = control.render(20, 8)
    assert control.state.session is session
    assert control.grid.area == 40 * 24
    assert len(frame.lines_frag) == 8
    # resize forces the direct path
    assert control.state.last_cache_hits == 0


def test_pan_frame_hits_cache(cfg, control):
    # 4x4 cells -> 8x12 bits; an 8 pixel domain over [-2, 2] gives exact 0.5 steps
    cfg.update({"view": {"x_min": -2.0, "x_max": 2.0, "y_min": -2.0, "y_max": 2.0}})
    control.render(4, 4)
    control.pan(-1, 0)
    control.render(4, 4)
    assert control.state.last_cache_hits == 0
    control.pan(-1, 0)
    control.render(4, 4)
    assert control.state.last_cache_hits == 7 * 12


def test_input_before_first_frame_is_ignored(control):
    control.pan(1, 0)
    control.zoom(1)
    control.change_threshold(1)
    assert control.state.session is None


def test_threshold_input_updates_info(control):
    control.render(4, 2)
    control.change_threshold(-1, fast=True)
    assert control.state.session.threshold == 0
    assert control.state.info_msg == "Threshold 0"


def test_normalize_lines_pads_and_crops(control):
    frame = control.render(3, 2)
    lines = FractalControl._normalize_lines(frame, 5, 3)
    assert [len(line[0][1]) for line in lines] == [5, 5, 5]
    assert lines[2] == [("", "     ")]
    lines = FractalControl._normalize_lines(frame, 2, 1)
    assert lines == [[("class:fractal", frame.lines_frag[0][0][1][:2])]]


def test_statusbar_text(cfg, control):
    bar = StatusBar(control.state, cfg)
    assert bar.text() == " waiting for first frame"
    control.render(6, 3)
    control.state.set_info("Zoom in")
    text = bar.text()
    assert "threshold=50" in text
    assert "x=[-2, 0.47]" in text
    assert text.endswith("  Zoom in")


def test_make_style_themes(cfg, monkeypatch):
    for theme in ("light", "dark", "auto"):
        cfg["ui"]["theme"] = theme
        assert make_style(cfg) is not None
    monkeypatch.setenv("TERM_THEME", "light")
    assert make_style(cfg) is not None


def test_setup_logging_file_handler(cfg, tmp_path):
    log_path = tmp_path / "viewer.log"
    cfg.update({"logging": {"level": "DEBUG", "file": str(log_path)}})
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging(cfg)
        logging.getLogger("sextant_mandel.test").warning("hello")
        for h in root.handlers:
            h.flush()
        assert "hello" in log_path.read_text(encoding="utf-8")
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()


class _RecordingControl:
    def __init__(self):
        self.calls = []

    def pan(self, dx, dy, fast=False):
        self.calls.append(("pan", dx, dy, fast))

    def zoom(self, steps, fast=False):
        self.calls.append(("zoom", steps, fast))

    def change_threshold(self, delta, fast=False):
        self.calls.append(("threshold", delta, fast))


def _key_bindings():
    app = FractalApp.__new__(FractalApp)
    app.fractal_control = _RecordingControl()
    app.help_pane = SimpleNamespace(toggle=lambda: None)
    return app, app._build_key_bindings()


def test_escape_quits_without_shadowing_alt_keys():
    app, kb = _key_bindings()
    (binding,) = kb.get_bindings_for_keys((Keys.Escape,))
    assert not binding.eager()

    exited = []
    binding.handler(SimpleNamespace(app=SimpleNamespace(exit=lambda: exited.append(True))))
    assert exited == [True]

    (alt_w,) = kb.get_bindings_for_keys((Keys.Escape, "w"))
    alt_w.handler(SimpleNamespace(app=None))
    assert app.fractal_control.calls == [("pan", 0, -1, True)]


def test_plain_keys_drive_control():
    app, kb = _key_bindings()
    for key in ("d", "=", Keys.Down):
        (binding,) = kb.get_bindings_for_keys((key,))
        binding.handler(SimpleNamespace(app=None))
    assert app.fractal_control.calls == [
        ("pan", 1, 0, False),
        ("zoom", 1, False),
        ("threshold", -1, False),
    ]
