"""
Gesture classification for the drawing canvas.

Each gesture state is a small dataclass carrying only what that state needs
(drag origin, deferred points, touch baselines). The ``handle_*`` functions
take the current state, a normalized :class:`PointerEvent` and the
:class:`CanvasContext`, and return the next state. The host keeps whatever
state they return and passes it to the next call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math

from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor

from sketchpad.core.coordinate_system import CoordinateSystem
from sketchpad.core.document import Document, Shape
from sketchpad.core.drawing_context import FLOOD_FILL, SHAPE_TOOLS, DrawingContext
from sketchpad.core.flood_fill import SeedOutOfBoundsError
from sketchpad.core.lazy_brush import LazyBrush

logger = logging.getLogger(__name__)

# Client-space units, measured as Manhattan distance.
TOUCH_SLOP = 10
PINCH_TIMEOUT_MS = 250
# Document-space distance from an edge within which a re-entering stroke snaps to it.
EDGE_SNAP_DISTANCE = 80


@dataclass
class PointerEvent:
    """
    A mouse, touch or wheel event reduced to what the state machine reads.

    ``client_pos`` is the primary pointer position (the first changed touch
    for touch events). ``touches`` lists every active touch point and is
    empty for mouse and wheel input. ``timestamp`` is in milliseconds.
    """

    client_pos: QPointF
    touches: tuple[QPointF, ...] = ()
    ctrl: bool = False
    timestamp: float = 0.0
    delta_y: float = 0.0
    accepted: bool = False

    def accept(self):
        self.accepted = True


@dataclass
class CanvasContext:
    """Everything a transition may read or act on."""

    coord_system: CoordinateSystem
    drawing_context: DrawingContext
    document: Document
    lazy: LazyBrush
    last_point: QPointF | None = None


@dataclass(frozen=True)
class TouchMetrics:
    t1: QPointF
    t2: QPointF
    distance: float
    centroid: QPointF

    @classmethod
    def from_touches(cls, touches) -> "TouchMetrics":
        t1, t2 = touches[0], touches[1]
        dx = t2.x() - t1.x()
        dy = t2.y() - t1.y()
        return cls(
            t1=QPointF(t1),
            t2=QPointF(t2),
            distance=math.sqrt(dx * dx + dy * dy),
            centroid=QPointF((t1.x() + t2.x()) / 2.0, (t1.y() + t2.y()) / 2.0),
        )


@dataclass
class DefaultState:
    pass


@dataclass
class DisabledState:
    pass


@dataclass
class PanState:
    drag_start: QPointF | None = None
    pan_start: QPointF | None = None


@dataclass
class WaitForPinchState:
    start_client_point: QPointF | None = None
    start_timestamp: float | None = None
    deferred_points: list[QPointF] = field(default_factory=list)


@dataclass
class ScaleOrPanState:
    start: TouchMetrics | None = None
    pan_start: QPointF | None = None
    scale_start: float = 1.0
    recent_metrics: TouchMetrics | None = None


@dataclass
class TouchPanState:
    baseline: ScaleOrPanState


@dataclass
class TouchScaleState:
    baseline: ScaleOrPanState


@dataclass
class DrawingState:
    # Document-space anchor of a rectangle or circle being dragged out.
    shape_start: QPointF | None = None


GestureState = (
    DefaultState
    | DisabledState
    | PanState
    | WaitForPinchState
    | ScaleOrPanState
    | TouchPanState
    | TouchScaleState
    | DrawingState
)


def manhattan_distance(p1: QPointF, p2: QPointF) -> float:
    return abs(p2.x() - p1.x()) + abs(p2.y() - p1.y())


def view_point_from_event(coord_system: CoordinateSystem, event: PointerEvent) -> QPointF:
    return coord_system.client_point_to_view_point(event.client_pos)


def snap_to_edge(point: QPointF, previous: QPointF, width: float, height: float) -> QPointF:
    """Moves *point* onto the edge the pointer came back in through."""
    x = point.x()
    y = point.y()
    if previous.x() < 0 and x < EDGE_SNAP_DISTANCE:
        x = 0.0
    elif previous.x() >= width and x >= width - EDGE_SNAP_DISTANCE:
        x = float(width)
    if previous.y() < 0 and y < EDGE_SNAP_DISTANCE:
        y = 0.0
    elif previous.y() >= height and y >= height - EDGE_SNAP_DISTANCE:
        y = float(height)
    return QPointF(x, y)


def _suppress_wheel(state, event, ctx):
    # No zooming mid-gesture, but the scroll is still swallowed.
    event.accept()
    return state


# ----------------------------------------------------------------------
# Default / Disabled
# ----------------------------------------------------------------------
def _default_wheel(state, event, ctx):
    context = ctx.drawing_context
    if context.disabled:
        return DisabledState()
    if context.enable_pan_and_zoom and event.ctrl:
        event.accept()
        ctx.coord_system.scale_at_client_point(
            context.mouse_zoom_factor * event.delta_y, event.client_pos
        )
    return state


def _default_draw_start(state, event, ctx, should_start_at_edge=False):
    context = ctx.drawing_context
    if context.disabled:
        return DisabledState()
    if event.ctrl and context.enable_pan_and_zoom:
        return _pan_draw_start(PanState(), event, ctx)
    return _wait_draw_start(WaitForPinchState(), event, ctx, should_start_at_edge)


def _default_draw_move(state, event, ctx):
    if ctx.drawing_context.disabled:
        return DisabledState()
    doc_pos = view_point_from_event(ctx.coord_system, event)
    ctx.last_point = QPointF(doc_pos)
    ctx.lazy.update(doc_pos)
    return state


def _default_draw_end(state, event, ctx):
    if ctx.drawing_context.disabled:
        return DisabledState()
    return state


def _disabled_wheel(state, event, ctx):
    if ctx.drawing_context.disabled:
        return state
    return _default_wheel(DefaultState(), event, ctx)


def _disabled_draw_start(state, event, ctx, should_start_at_edge=False):
    if ctx.drawing_context.disabled:
        return state
    return _default_draw_start(DefaultState(), event, ctx, should_start_at_edge)


def _disabled_draw_move(state, event, ctx):
    if ctx.drawing_context.disabled:
        return state
    return _default_draw_move(DefaultState(), event, ctx)


def _disabled_draw_end(state, event, ctx):
    if ctx.drawing_context.disabled:
        return state
    return _default_draw_end(DefaultState(), event, ctx)


# ----------------------------------------------------------------------
# Pan (modifier + drag)
# ----------------------------------------------------------------------
def _pan_draw_start(state, event, ctx, should_start_at_edge=False):
    event.accept()
    state.drag_start = QPointF(event.client_pos)
    state.pan_start = QPointF(ctx.coord_system.x, ctx.coord_system.y)
    return state


def _pan_draw_move(state, event, ctx):
    event.accept()
    if state.drag_start is None:
        return _pan_draw_start(state, event, ctx)
    dx = event.client_pos.x() - state.drag_start.x()
    dy = event.client_pos.y() - state.drag_start.y()
    ctx.coord_system.set_view(x=state.pan_start.x() + dx, y=state.pan_start.y() + dy)
    return state


def _to_default(state, event, ctx):
    return DefaultState()


def _ignore_draw_start(state, event, ctx, should_start_at_edge=False):
    return state


# ----------------------------------------------------------------------
# WaitForPinch
# ----------------------------------------------------------------------
def _wait_draw_start(state, event, ctx, should_start_at_edge=False):
    event.accept()
    # Mouse input, or touch without pan/zoom, draws right away.
    if not event.touches or not ctx.drawing_context.enable_pan_and_zoom:
        return _drawing_draw_start(DrawingState(), event, ctx, should_start_at_edge)
    if len(event.touches) >= 2:
        return _scale_or_pan_draw_start(ScaleOrPanState(), event, ctx)
    return _wait_draw_move(state, event, ctx)


def _wait_draw_move(state, event, ctx):
    event.accept()
    if len(event.touches) >= 2:
        return _scale_or_pan_draw_start(ScaleOrPanState(), event, ctx)

    client_pos = QPointF(event.client_pos)
    state.deferred_points.append(client_pos)
    if state.start_timestamp is None:
        state.start_timestamp = event.timestamp

    if event.timestamp - state.start_timestamp < PINCH_TIMEOUT_MS:
        if state.start_client_point is None:
            state.start_client_point = client_pos
        if manhattan_distance(state.start_client_point, client_pos) < TOUCH_SLOP:
            return state

    return issue_deferred_points(state, ctx)


def _wait_draw_end(state, event, ctx):
    # Stopped before we could tell; treat it as drawing all along.
    return _drawing_draw_end(issue_deferred_points(state, ctx), event, ctx)


def issue_deferred_points(state: WaitForPinchState, ctx: CanvasContext):
    """
    Replays the buffered touch points into a fresh drawing state, in order.

    The first point starts the stroke, the rest extend it. With nothing
    buffered this is just a new :class:`DrawingState`.
    """
    logger.debug("Giving up on pinch, replaying %d point(s)", len(state.deferred_points))
    next_state = DrawingState()
    for i, client_pos in enumerate(state.deferred_points):
        if i == 0:
            next_state = drawing_start_at(next_state, client_pos, ctx, touched=True)
        else:
            next_state = drawing_move_to(next_state, client_pos, ctx)
    state.deferred_points = []
    return next_state


# ----------------------------------------------------------------------
# Two-finger gestures
# ----------------------------------------------------------------------
def _scale_or_pan_draw_start(state, event, ctx, should_start_at_edge=False):
    event.accept()
    if len(event.touches) < 2:
        return DefaultState()
    state.start = TouchMetrics.from_touches(event.touches)
    state.recent_metrics = state.start
    state.pan_start = QPointF(ctx.coord_system.x, ctx.coord_system.y)
    state.scale_start = ctx.coord_system.scale
    return state


def _scale_or_pan_draw_move(state, event, ctx):
    event.accept()
    if len(event.touches) < 2:
        return DefaultState()
    if state.start is None:
        return _scale_or_pan_draw_start(state, event, ctx)

    metrics = state.recent_metrics = TouchMetrics.from_touches(event.touches)
    if abs(metrics.distance - state.start.distance) >= TOUCH_SLOP:
        return _touch_scale_draw_move(TouchScaleState(state), event, ctx)
    if manhattan_distance(state.start.centroid, metrics.centroid) >= TOUCH_SLOP:
        return _touch_pan_draw_move(TouchPanState(state), event, ctx)
    return state


def _touch_pan_draw_move(state, event, ctx):
    event.accept()
    if len(event.touches) < 2:
        return DefaultState()
    ref = state.baseline
    metrics = ref.recent_metrics = TouchMetrics.from_touches(event.touches)
    dx = metrics.centroid.x() - ref.start.centroid.x()
    dy = metrics.centroid.y() - ref.start.centroid.y()
    ctx.coord_system.set_view(x=ref.pan_start.x() + dx, y=ref.pan_start.y() + dy)
    return state


def _touch_scale_draw_move(state, event, ctx):
    event.accept()
    if len(event.touches) < 2:
        return DefaultState()
    ref = state.baseline
    metrics = ref.recent_metrics = TouchMetrics.from_touches(event.touches)
    if ref.start.distance == 0:
        # Fingers started on the same spot; measure from here instead.
        _scale_or_pan_draw_start(ref, event, ctx)
        return state
    target_scale = ref.scale_start * (metrics.distance / ref.start.distance)
    delta_scale = target_scale - ctx.coord_system.scale
    ctx.coord_system.scale_at_client_point(delta_scale, metrics.centroid)
    return state


# ----------------------------------------------------------------------
# Drawing
# ----------------------------------------------------------------------
def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _fill_at(doc_pos: QPointF, ctx: CanvasContext):
    x = _round_half_up(doc_pos.x())
    y = _round_half_up(doc_pos.y())
    try:
        ctx.document.fill(x, y, ctx.drawing_context.brush_color, ctx.drawing_context.fill_tolerance)
    except SeedOutOfBoundsError as e:
        logger.warning("Ignoring flood fill: %s", e)


def drawing_move_to(state: DrawingState, client_pos: QPointF, ctx: CanvasContext, should_start_at_edge=False):
    doc_pos = ctx.coord_system.client_point_to_view_point(client_pos)
    previous = ctx.last_point
    ctx.last_point = QPointF(doc_pos)

    if ctx.drawing_context.tool == FLOOD_FILL:
        _fill_at(doc_pos, ctx)
        return state

    if should_start_at_edge and previous is not None:
        doc_pos = snap_to_edge(doc_pos, previous, ctx.document.width, ctx.document.height)

    ctx.lazy.update(doc_pos)
    if ctx.drawing_context.tool in SHAPE_TOOLS:
        _drag_shape_to(state, doc_pos, ctx)
        return state

    brush = ctx.lazy.get_brush_coordinates()
    if ctx.drawing_context.clamp_lines_to_document:
        brush = ctx.document.clamp_point(brush)
    ctx.document.add_point(brush)
    return state


def _drag_shape_to(state: DrawingState, doc_pos: QPointF, ctx: CanvasContext):
    if ctx.drawing_context.clamp_lines_to_document:
        doc_pos = ctx.document.clamp_point(doc_pos)
    if state.shape_start is None:
        state.shape_start = QPointF(doc_pos)
    context = ctx.drawing_context
    ctx.document.set_preview_shape(
        Shape(
            kind=context.tool,
            start=QPointF(state.shape_start),
            end=QPointF(doc_pos),
            color=QColor(context.brush_color),
            line_width=context.brush_radius,
            filled=context.fill_shape,
        )
    )


def drawing_start_at(state: DrawingState, client_pos: QPointF, ctx: CanvasContext, touched=False, should_start_at_edge=False):
    if touched:
        # Pin the brush to the finger so the stroke starts under it.
        doc_pos = ctx.coord_system.client_point_to_view_point(client_pos)
        ctx.lazy.update(doc_pos, both=True)
    return drawing_move_to(state, client_pos, ctx, should_start_at_edge)


def _drawing_draw_start(state, event, ctx, should_start_at_edge=False):
    event.accept()
    return drawing_start_at(
        state, event.client_pos, ctx, touched=bool(event.touches), should_start_at_edge=should_start_at_edge
    )


def _drawing_draw_move(state, event, ctx):
    event.accept()
    return drawing_move_to(state, event.client_pos, ctx)


def _drawing_draw_end(state, event, ctx):
    event.accept()
    drawing_move_to(state, event.client_pos, ctx)
    context = ctx.drawing_context
    if ctx.document.preview_shape is not None:
        ctx.document.commit_shape(ctx.document.preview_shape)
    else:
        ctx.document.commit_stroke(context.stroke_color, context.brush_radius)
    return DefaultState()


# ----------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------
_WHEEL = {
    DefaultState: _default_wheel,
    DisabledState: _disabled_wheel,
    PanState: _suppress_wheel,
    WaitForPinchState: _suppress_wheel,
    ScaleOrPanState: _suppress_wheel,
    TouchPanState: _suppress_wheel,
    TouchScaleState: _suppress_wheel,
    DrawingState: _suppress_wheel,
}

_DRAW_START = {
    DefaultState: _default_draw_start,
    DisabledState: _disabled_draw_start,
    PanState: _pan_draw_start,
    WaitForPinchState: _wait_draw_start,
    ScaleOrPanState: _scale_or_pan_draw_start,
    TouchPanState: _ignore_draw_start,
    TouchScaleState: _ignore_draw_start,
    DrawingState: _drawing_draw_start,
}

_DRAW_MOVE = {
    DefaultState: _default_draw_move,
    DisabledState: _disabled_draw_move,
    PanState: _pan_draw_move,
    WaitForPinchState: _wait_draw_move,
    ScaleOrPanState: _scale_or_pan_draw_move,
    TouchPanState: _touch_pan_draw_move,
    TouchScaleState: _touch_scale_draw_move,
    DrawingState: _drawing_draw_move,
}

_DRAW_END = {
    DefaultState: _default_draw_end,
    DisabledState: _disabled_draw_end,
    PanState: _to_default,
    WaitForPinchState: _wait_draw_end,
    ScaleOrPanState: _to_default,
    TouchPanState: _to_default,
    TouchScaleState: _to_default,
    DrawingState: _drawing_draw_end,
}


def _log_transition(kind: str, before, after):
    if type(before) is not type(after):
        logger.debug("%s: %s -> %s", kind, type(before).__name__, type(after).__name__)
    return after


def handle_wheel(state, event: PointerEvent, ctx: CanvasContext):
    return _log_transition("wheel", state, _WHEEL[type(state)](state, event, ctx))


def handle_draw_start(state, event: PointerEvent, ctx: CanvasContext, should_start_at_edge: bool = False):
    next_state = _DRAW_START[type(state)](state, event, ctx, should_start_at_edge)
    return _log_transition("draw start", state, next_state)


def handle_draw_move(state, event: PointerEvent, ctx: CanvasContext):
    return _log_transition("draw move", state, _DRAW_MOVE[type(state)](state, event, ctx))


def handle_draw_end(state, event: PointerEvent, ctx: CanvasContext):
    return _log_transition("draw end", state, _DRAW_END[type(state)](state, event, ctx))
