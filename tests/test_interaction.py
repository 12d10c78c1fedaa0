"""Unit tests for :mod:`sketchpad.commands.interaction`."""

from __future__ import annotations

import logging

import pytest
from PySide6.QtCore import QPointF, QSizeF
from PySide6.QtGui import QColor

from sketchpad.commands.interaction import (
    PINCH_TIMEOUT_MS,
    CanvasContext,
    DefaultState,
    DisabledState,
    DrawingState,
    PanState,
    PointerEvent,
    ScaleOrPanState,
    TouchPanState,
    TouchScaleState,
    WaitForPinchState,
    handle_draw_end,
    handle_draw_move,
    handle_draw_start,
    handle_wheel,
    issue_deferred_points,
    snap_to_edge,
)
from sketchpad.core.coordinate_system import CoordinateSystem, ScaleExtents, ViewState
from sketchpad.core.document import Document
from sketchpad.core.drawing_context import CIRCLE, FLOOD_FILL, RECTANGLE, DrawingContext
from sketchpad.core.lazy_brush import LazyBrush


class RecordingLazyBrush(LazyBrush):
    """Lazy brush that remembers how it was updated."""

    def __init__(self):
        super().__init__(radius=0)
        self.updates = []

    def update(self, point, both=False):
        self.updates.append((QPointF(point), both))
        return super().update(point, both=both)


def make_context(enable_pan_and_zoom=True, extents=(0.1, 10.0)) -> CanvasContext:
    drawing_context = DrawingContext()
    drawing_context.set_enable_pan_and_zoom(enable_pan_and_zoom)
    drawing_context.set_zoom_extents(*extents)
    return CanvasContext(
        coord_system=CoordinateSystem(drawing_context.zoom_extents, QSizeF(100, 100)),
        drawing_context=drawing_context,
        document=Document(100, 100),
        lazy=RecordingLazyBrush(),
    )


def mouse(x, y, ctrl=False, timestamp=0.0):
    return PointerEvent(QPointF(x, y), ctrl=ctrl, timestamp=timestamp)


def touch(*points, timestamp=0.0):
    touches = tuple(QPointF(x, y) for x, y in points)
    return PointerEvent(touches[0], touches=touches, timestamp=timestamp)


def lift(x, y, timestamp=0.0):
    return PointerEvent(QPointF(x, y), touches=(), timestamp=timestamp)


def test_mouse_tap_without_movement_discards_stroke(qapp):
    ctx = make_context(enable_pan_and_zoom=False)

    state = handle_draw_start(DefaultState(), mouse(10, 10), ctx)
    assert isinstance(state, DrawingState)
    assert ctx.document.points == [QPointF(10, 10)]

    state = handle_draw_end(state, mouse(10, 10), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.document.lines == []
    assert ctx.document.points == []


def test_mouse_drag_commits_stroke(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    committed = []
    ctx.document.stroke_committed.connect(lambda stroke: committed.append(stroke))

    state = handle_draw_start(DefaultState(), mouse(10, 10), ctx)
    state = handle_draw_move(state, mouse(20, 15), ctx)
    state = handle_draw_end(state, mouse(30, 20), ctx)

    assert isinstance(state, DefaultState)
    assert len(committed) == 1
    stroke = committed[0]
    assert list(stroke.points) == [QPointF(10, 10), QPointF(20, 15), QPointF(30, 20)]
    assert stroke.color == ctx.drawing_context.brush_color
    assert stroke.radius == ctx.drawing_context.brush_radius
    assert ctx.document.lines == [stroke]


def test_mouse_skips_pinch_wait_even_with_pan_and_zoom(qapp):
    ctx = make_context(enable_pan_and_zoom=True)
    state = handle_draw_start(DefaultState(), mouse(5, 5), ctx)
    assert isinstance(state, DrawingState)


def test_stroke_points_are_in_document_space(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.coord_system.set_view(ViewState(10, 20, 2.0))

    handle_draw_start(DefaultState(), mouse(30, 40), ctx)

    assert ctx.document.points == [QPointF(10, 10)]


def test_modifier_drag_pans_view(qapp):
    ctx = make_context()
    ctx.coord_system.set_view(x=5, y=5)

    state = handle_draw_start(DefaultState(), mouse(10, 10, ctrl=True), ctx)
    assert isinstance(state, PanState)

    state = handle_draw_move(state, mouse(30, 25, ctrl=True), ctx)
    assert ctx.coord_system.view == ViewState(25.0, 20.0, 1.0)

    state = handle_draw_end(state, mouse(30, 25), ctx)
    assert isinstance(state, DefaultState)
    assert ctx.document.points == []


def test_modifier_without_pan_and_zoom_draws(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    state = handle_draw_start(DefaultState(), mouse(10, 10, ctrl=True), ctx)
    assert isinstance(state, DrawingState)


def test_small_quick_touch_moves_keep_waiting(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((50, 50), timestamp=1000), ctx)
    assert isinstance(state, WaitForPinchState)
    state = handle_draw_move(state, touch((53, 54), timestamp=1100), ctx)
    state = handle_draw_move(state, touch((47, 52), timestamp=1200), ctx)

    assert isinstance(state, WaitForPinchState)
    assert ctx.document.points == []


def test_moving_past_slop_replays_buffered_points(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((50, 50), timestamp=1000), ctx)
    state = handle_draw_move(state, touch((53, 54), timestamp=1100), ctx)
    state = handle_draw_move(state, touch((56, 55), timestamp=1200), ctx)

    assert isinstance(state, DrawingState)
    assert ctx.document.points == [QPointF(50, 50), QPointF(53, 54), QPointF(56, 55)]
    # The first replayed point pins the brush to the finger.
    assert ctx.lazy.updates[0] == (QPointF(50, 50), True)


def test_timeout_replays_buffered_points(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((50, 50), timestamp=1000), ctx)
    state = handle_draw_move(state, touch((51, 50), timestamp=1000 + PINCH_TIMEOUT_MS), ctx)

    assert isinstance(state, DrawingState)
    assert ctx.document.points == [QPointF(50, 50), QPointF(51, 50)]


def test_replay_matches_live_drawing(qapp):
    path = [(50, 50), (53, 54), (60, 58), (70, 61)]

    live = make_context(enable_pan_and_zoom=False)
    state = handle_draw_start(DefaultState(), touch(path[0]), live)
    for point in path[1:]:
        state = handle_draw_move(state, touch(point), live)
    handle_draw_end(state, lift(*path[-1]), live)

    replayed = make_context(enable_pan_and_zoom=True)
    state = handle_draw_start(DefaultState(), touch(path[0], timestamp=0), replayed)
    for i, point in enumerate(path[1:], start=1):
        state = handle_draw_move(state, touch(point, timestamp=i * 10), replayed)
    handle_draw_end(state, lift(*path[-1], timestamp=100), replayed)

    assert len(live.document.lines) == 1
    assert len(replayed.document.lines) == 1
    assert list(replayed.document.lines[0].points) == list(live.document.lines[0].points)


def test_touch_released_before_decision_draws_a_tap(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((50, 50), timestamp=0), ctx)
    state = handle_draw_end(state, lift(50, 50, timestamp=50), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.document.lines == []


def test_empty_replay_is_a_fresh_drawing_state(qapp):
    ctx = make_context()

    state = issue_deferred_points(WaitForPinchState(), ctx)

    assert isinstance(state, DrawingState)
    assert ctx.document.points == []


def test_second_touch_while_waiting_moves_to_scale_or_pan(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((50, 50)), ctx)
    state = handle_draw_move(state, touch((50, 50), (80, 50)), ctx)

    assert isinstance(state, ScaleOrPanState)
    assert state.start.distance == pytest.approx(30)
    assert ctx.document.points == []


def test_two_touch_spread_scales_around_centroid(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((0, 0), (10, 0)), ctx)
    assert isinstance(state, ScaleOrPanState)

    state = handle_draw_move(state, touch((0, 0), (30, 0)), ctx)

    assert isinstance(state, TouchScaleState)
    assert ctx.coord_system.scale == pytest.approx(1.0 * (30 / 10))
    # The centroid (15, 0) stays over the same document point.
    anchor = ctx.coord_system.client_point_to_view_point(QPointF(15, 0))
    assert anchor.x() == pytest.approx(15)
    assert anchor.y() == pytest.approx(0)


def test_two_touch_drag_pans_by_centroid(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((0, 0), (10, 0)), ctx)
    state = handle_draw_move(state, touch((12, 3), (22, 3)), ctx)

    assert isinstance(state, TouchPanState)
    assert ctx.coord_system.view == ViewState(12.0, 3.0, 1.0)

    state = handle_draw_move(state, touch((20, 5), (30, 5)), ctx)
    assert ctx.coord_system.view == ViewState(20.0, 5.0, 1.0)


def test_small_two_touch_motion_stays_undecided(qapp):
    ctx = make_context()

    state = handle_draw_start(DefaultState(), touch((0, 0), (10, 0)), ctx)
    state = handle_draw_move(state, touch((2, 1), (14, 1)), ctx)

    assert isinstance(state, ScaleOrPanState)
    assert ctx.coord_system.view == ViewState(0.0, 0.0, 1.0)


@pytest.mark.parametrize(
    "second_move",
    [
        [(0, 0), (30, 0)],
        [(12, 3), (22, 3)],
        [(2, 1), (14, 1)],
    ],
)
def test_losing_a_touch_falls_back_to_default(qapp, second_move):
    ctx = make_context()
    state = handle_draw_start(DefaultState(), touch((0, 0), (10, 0)), ctx)
    state = handle_draw_move(state, touch(*second_move), ctx)

    state = handle_draw_move(state, touch(second_move[0]), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.document.points == []


def test_ctrl_wheel_zooms_at_cursor(qapp):
    ctx = make_context()
    event = PointerEvent(QPointF(40, 40), ctrl=True, delta_y=15)

    state = handle_wheel(DefaultState(), event, ctx)

    assert isinstance(state, DefaultState)
    assert event.accepted
    assert ctx.coord_system.scale == pytest.approx(1.0 + 0.01 * 15)
    anchor = ctx.coord_system.client_point_to_view_point(QPointF(40, 40))
    assert anchor.x() == pytest.approx(40)


def test_wheel_without_modifier_is_left_alone(qapp):
    ctx = make_context()
    event = PointerEvent(QPointF(40, 40), delta_y=15)

    handle_wheel(DefaultState(), event, ctx)

    assert not event.accepted
    assert ctx.coord_system.scale == 1.0


@pytest.mark.parametrize(
    "state",
    [PanState(), WaitForPinchState(), ScaleOrPanState(), DrawingState()],
)
def test_wheel_is_swallowed_during_gestures(qapp, state):
    ctx = make_context()
    event = PointerEvent(QPointF(40, 40), ctrl=True, delta_y=15)

    next_state = handle_wheel(state, event, ctx)

    assert next_state is state
    assert event.accepted
    assert ctx.coord_system.scale == 1.0


def test_disabled_flag_is_checked_on_every_event(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_disabled(True)

    state = handle_draw_start(DefaultState(), mouse(10, 10), ctx)
    assert isinstance(state, DisabledState)
    state = handle_draw_move(state, mouse(20, 20), ctx)
    state = handle_draw_end(state, mouse(20, 20), ctx)
    assert isinstance(state, DisabledState)
    assert ctx.document.points == []

    ctx.drawing_context.set_disabled(False)
    state = handle_draw_start(state, mouse(10, 10), ctx)

    assert isinstance(state, DrawingState)


def test_disabled_state_ignores_wheel_until_enabled(qapp):
    ctx = make_context()
    ctx.drawing_context.set_disabled(True)
    event = PointerEvent(QPointF(0, 0), ctrl=True, delta_y=15)

    state = handle_wheel(DefaultState(), event, ctx)
    assert isinstance(state, DisabledState)
    state = handle_wheel(state, event, ctx)
    assert isinstance(state, DisabledState)
    assert ctx.coord_system.scale == 1.0

    ctx.drawing_context.set_disabled(False)
    state = handle_wheel(state, PointerEvent(QPointF(0, 0), ctrl=True, delta_y=15), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.coord_system.scale == pytest.approx(1.15)


def test_default_move_feeds_smoothing_filter(qapp):
    ctx = make_context()

    state = handle_draw_move(DefaultState(), mouse(33, 44), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.lazy.get_pointer_coordinates() == QPointF(33, 44)
    assert ctx.document.points == []


def test_bucket_tool_fills_instead_of_drawing(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_tool(FLOOD_FILL)
    ctx.drawing_context.set_brush_color("red")

    state = handle_draw_start(DefaultState(), mouse(5.4, 5.6), ctx)

    assert isinstance(state, DrawingState)
    assert ctx.document.points == []
    assert ctx.document.image.pixelColor(0, 0) == QColor("red")
    assert ctx.document.image.pixelColor(99, 99) == QColor("red")

    state = handle_draw_end(state, mouse(5.4, 5.6), ctx)
    assert isinstance(state, DefaultState)
    assert ctx.document.lines == []


def test_bucket_outside_document_is_ignored(qapp, caplog):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_tool(FLOOD_FILL)

    with caplog.at_level(logging.WARNING):
        state = handle_draw_start(DefaultState(), mouse(-5, -5), ctx)

    assert isinstance(state, DrawingState)
    assert "Ignoring flood fill" in caplog.text
    assert ctx.document.image.pixelColor(0, 0).alpha() == 0


def test_clamp_lines_to_document(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.clamp_lines_to_document = True

    state = handle_draw_start(DefaultState(), mouse(-20, 50), ctx)
    handle_draw_move(state, mouse(150, 130), ctx)

    assert ctx.document.points == [QPointF(0, 50), QPointF(100, 100)]


def test_start_at_edge_snaps_reentry_point(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    handle_draw_move(DefaultState(), mouse(-10, 50), ctx)

    handle_draw_start(DefaultState(), mouse(6, 50), ctx, should_start_at_edge=True)

    assert ctx.document.points == [QPointF(0, 50)]


def test_snap_to_edge_only_moves_points_near_the_entered_edge():
    point = snap_to_edge(QPointF(395, 50), QPointF(420, 50), 400, 400)
    assert point == QPointF(400, 50)

    point = snap_to_edge(QPointF(50, 50), QPointF(420, 50), 400, 400)
    assert point == QPointF(50, 50)

    point = snap_to_edge(QPointF(50, 4), QPointF(50, -3), 400, 400)
    assert point == QPointF(50, 0)

    point = snap_to_edge(QPointF(50, 50), QPointF(200, 200), 400, 400)
    assert point == QPointF(50, 50)


def test_rectangle_tool_previews_then_commits_shape(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_tool(RECTANGLE)
    ctx.drawing_context.set_brush_color("#0000ff")
    ctx.drawing_context.set_brush_radius(4)
    committed = []
    ctx.document.shape_committed.connect(committed.append)

    state = handle_draw_start(DefaultState(), mouse(10, 10), ctx)
    state = handle_draw_move(state, mouse(30, 20), ctx)
    assert state.shape_start == QPointF(10, 10)
    assert ctx.document.preview_shape.end == QPointF(30, 20)
    assert ctx.document.points == []

    state = handle_draw_end(state, mouse(60, 50), ctx)

    assert isinstance(state, DefaultState)
    assert ctx.document.preview_shape is None
    assert ctx.document.lines == []
    assert committed == ctx.document.shapes
    shape = committed[0]
    assert shape.kind == RECTANGLE
    assert (shape.start, shape.end) == (QPointF(10, 10), QPointF(60, 50))
    assert shape.line_width == 4
    buffer = ctx.document.read_buffer()
    assert buffer.pixel(10, 30) == 0xFF0000FF
    assert buffer.pixel(35, 30) == 0


def test_filled_circle_paints_its_interior(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_tool(CIRCLE)
    ctx.drawing_context.set_brush_color("#00ff00")
    ctx.drawing_context.set_fill_shape(True)

    state = handle_draw_start(DefaultState(), mouse(20, 20), ctx)
    handle_draw_end(state, mouse(40, 20), ctx)

    shape = ctx.document.shapes[0]
    assert shape.filled
    # Radius 20 around (30, 30).
    assert shape.rect.center() == QPointF(30, 30)
    assert ctx.document.read_buffer().pixel(30, 30) == 0xFF00FF00


def test_shape_without_extent_is_discarded(qapp):
    ctx = make_context(enable_pan_and_zoom=False)
    ctx.drawing_context.set_tool(RECTANGLE)

    state = handle_draw_start(DefaultState(), mouse(10, 10), ctx)
    handle_draw_end(state, mouse(10, 10), ctx)

    assert ctx.document.shapes == []
    assert ctx.document.preview_shape is None
