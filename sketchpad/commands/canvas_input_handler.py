from __future__ import annotations

from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QEventPoint, QGuiApplication, QWheelEvent

from sketchpad.commands.interaction import (
    DefaultState,
    DisabledState,
    PointerEvent,
    handle_draw_end,
    handle_draw_move,
    handle_draw_start,
    handle_wheel,
)


class CanvasInputHandler:
    """Feeds the canvas's Qt input events through the gesture state machine."""

    def __init__(self, canvas):
        self.canvas = canvas
        self.context = canvas.canvas_context
        self.state = DefaultState()
        self._last_client_pos = QPointF()
        self._pointer_inside = True

    def _mouse_event(self, event) -> PointerEvent:
        pos = QPointF(event.position())
        self._last_client_pos = pos
        return PointerEvent(
            client_pos=pos,
            ctrl=bool(event.modifiers() & Qt.ControlModifier),
            timestamp=float(event.timestamp()),
        )

    def _touch_event(self, event) -> PointerEvent:
        points = list(event.points())
        touches = tuple(
            QPointF(p.position()) for p in points if p.state() != QEventPoint.State.Released
        )
        changed = [p for p in points if p.state() != QEventPoint.State.Stationary]
        primary = changed[0] if changed else points[0]
        pos = QPointF(primary.position())
        self._last_client_pos = pos
        return PointerEvent(
            client_pos=pos,
            touches=touches,
            ctrl=bool(event.modifiers() & Qt.ControlModifier),
            timestamp=float(event.timestamp()),
        )

    def _contains(self, client_pos: QPointF) -> bool:
        return self.canvas.rect().contains(client_pos.toPoint())

    @staticmethod
    def _is_synthesized(event) -> bool:
        return event.source() != Qt.MouseEventNotSynthesized

    def _finish(self, qt_event, pointer_event: PointerEvent):
        if pointer_event.accepted:
            qt_event.accept()
        self.canvas.update()

    def is_idle(self) -> bool:
        return isinstance(self.state, (DefaultState, DisabledState))

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton or self._is_synthesized(event):
            return
        self._pointer_inside = True
        pointer_event = self._mouse_event(event)
        self.state = handle_draw_start(self.state, pointer_event, self.context)
        self._finish(event, pointer_event)

    def mouseMoveEvent(self, event):
        if self._is_synthesized(event):
            return
        pointer_event = self._mouse_event(event)
        self.canvas.cursor_pos_changed.emit(
            self.context.coord_system.client_point_to_view_point(pointer_event.client_pos)
        )
        # While the button is held the canvas keeps the mouse grab and gets
        # no enter/leave events, so crossing its border is detected here.
        was_inside = self._pointer_inside
        self._pointer_inside = self._contains(pointer_event.client_pos)
        if event.buttons() & Qt.LeftButton and was_inside != self._pointer_inside:
            if self._pointer_inside:
                self.state = handle_draw_start(
                    self.state, pointer_event, self.context, should_start_at_edge=True
                )
            else:
                self.state = handle_draw_end(self.state, pointer_event, self.context)
        else:
            self.state = handle_draw_move(self.state, pointer_event, self.context)
        self._finish(event, pointer_event)

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton or self._is_synthesized(event):
            return
        pointer_event = self._mouse_event(event)
        self.state = handle_draw_end(self.state, pointer_event, self.context)
        self._finish(event, pointer_event)

    def wheelEvent(self, event: QWheelEvent):
        pos = QPointF(event.position())
        pointer_event = PointerEvent(
            client_pos=pos,
            ctrl=bool(event.modifiers() & Qt.ControlModifier),
            timestamp=float(event.timestamp()),
            # Degrees, positive when the wheel turns away from the user.
            delta_y=event.angleDelta().y() / 8.0,
        )
        self.state = handle_wheel(self.state, pointer_event, self.context)
        if pointer_event.accepted:
            event.accept()
        else:
            event.ignore()
        self.canvas.update()

    def touchEvent(self, event) -> bool:
        event_type = event.type()
        if event_type == QEvent.TouchCancel:
            # Cancelled sequences carry no points; end at the last known spot.
            pointer_event = PointerEvent(client_pos=QPointF(self._last_client_pos))
            self.state = handle_draw_end(self.state, pointer_event, self.context)
        elif not event.points():
            return False
        elif event_type == QEvent.TouchBegin:
            self.state = handle_draw_start(self.state, self._touch_event(event), self.context)
        elif event_type == QEvent.TouchUpdate:
            self.state = handle_draw_move(self.state, self._touch_event(event), self.context)
        elif event_type == QEvent.TouchEnd:
            self.state = handle_draw_end(self.state, self._touch_event(event), self.context)
        else:
            return False
        # Always take touches so Qt does not synthesize mouse events from them.
        event.accept()
        self.canvas.update()
        return True

    def leaveEvent(self, event):
        self._pointer_inside = False
        pointer_event = PointerEvent(client_pos=QPointF(self._last_client_pos))
        self.state = handle_draw_end(self.state, pointer_event, self.context)
        self.canvas.update()

    def enterEvent(self, event):
        """Resumes a stroke when the pointer comes back in with the button held."""
        pos = QPointF(event.position())
        self._last_client_pos = pos
        self._pointer_inside = True
        if not self.is_idle():
            return
        if not (QGuiApplication.mouseButtons() & Qt.LeftButton):
            return
        pointer_event = PointerEvent(
            client_pos=pos,
            ctrl=bool(QGuiApplication.keyboardModifiers() & Qt.ControlModifier),
        )
        self.state = handle_draw_start(
            self.state, pointer_event, self.context, should_start_at_edge=True
        )
        self.canvas.update()
