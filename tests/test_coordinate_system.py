import pytest
from PySide6.QtCore import QPointF, QSizeF

from sketchpad.core.coordinate_system import CoordinateSystem, ScaleExtents, ViewState


@pytest.fixture
def coord_system():
    return CoordinateSystem(ScaleExtents(0.1, 10.0), QSizeF(200, 100))


def test_starts_at_identity(coord_system):
    assert coord_system.view == ViewState(0.0, 0.0, 1.0)
    point = coord_system.client_point_to_view_point(QPointF(12, 34))
    assert point.x() == pytest.approx(12)
    assert point.y() == pytest.approx(34)


def test_client_point_maps_through_inverse_transform(coord_system):
    coord_system.set_view(x=20, y=10, scale=2)

    point = coord_system.client_point_to_view_point(QPointF(60, 30))

    assert point.x() == pytest.approx(20)
    assert point.y() == pytest.approx(10)
    back = coord_system.view_point_to_client_point(point)
    assert back.x() == pytest.approx(60)
    assert back.y() == pytest.approx(30)


@pytest.mark.parametrize(
    "start, delta, anchor",
    [
        (ViewState(0, 0, 1.0), 0.5, QPointF(50, 50)),
        (ViewState(13, -7, 1.5), 0.8, QPointF(120, 45)),
        (ViewState(-40, 22, 3.0), -2.5, QPointF(3, 97)),
    ],
)
def test_scale_keeps_anchor_point_fixed(coord_system, start, delta, anchor):
    coord_system.set_view(start)
    before = coord_system.client_point_to_view_point(anchor)

    coord_system.scale_at_client_point(delta, anchor)

    after = coord_system.client_point_to_view_point(anchor)
    assert coord_system.scale == pytest.approx(start.scale + delta)
    assert after.x() == pytest.approx(before.x())
    assert after.y() == pytest.approx(before.y())


def test_scale_is_clamped_to_extents(coord_system):
    coord_system.set_view(scale=50)
    assert coord_system.scale == 10.0

    coord_system.set_view(scale=0.001)
    assert coord_system.scale == pytest.approx(0.1)


def test_scale_at_limit_leaves_view_unchanged(coord_system):
    coord_system.set_view(ViewState(5, 6, 10.0))
    calls = []
    coord_system.view_changed.connect(lambda view: calls.append(view))

    coord_system.scale_at_client_point(1.0, QPointF(40, 40))

    assert coord_system.view == ViewState(5.0, 6.0, 10.0)
    assert len(calls) == 1


def test_pan_is_not_bounds_checked(coord_system):
    coord_system.set_view(x=-5000, y=9000)
    assert coord_system.view == ViewState(-5000.0, 9000.0, 1.0)


def test_set_view_then_restore_gives_original_transform(coord_system):
    coord_system.set_view(ViewState(3, 4, 1.25))
    original = coord_system.view
    original_matrix = coord_system.transform_matrix

    coord_system.set_view(ViewState(-80, 12.5, 4.0))
    coord_system.set_view(original)

    assert coord_system.view == original
    assert coord_system.transform_matrix == original_matrix


def test_set_view_keeps_unspecified_components(coord_system):
    coord_system.set_view(ViewState(1, 2, 3))
    coord_system.set_view(x=9)
    assert coord_system.view == ViewState(9.0, 2.0, 3.0)


def test_reset_view_restores_identity(coord_system):
    coord_system.set_view(ViewState(1, 2, 3))
    coord_system.reset_view()
    assert coord_system.view == ViewState(0.0, 0.0, 1.0)


def test_every_mutation_notifies_once(coord_system):
    calls = []
    coord_system.view_changed.connect(lambda view: calls.append(view))

    coord_system.set_view(x=1)
    coord_system.set_view(x=1)
    coord_system.scale_at_client_point(0.5, QPointF(0, 0))
    coord_system.reset_view()

    assert len(calls) == 4
    assert calls[-1] == ViewState(0.0, 0.0, 1.0)


def test_canvas_bounds_cover_visible_document_area(coord_system):
    coord_system.set_view(ViewState(20, 10, 2.0))

    bounds = coord_system.canvas_bounds

    assert bounds.canvas_width == 200
    assert bounds.canvas_height == 100
    assert bounds.view_min.x() == pytest.approx(-10)
    assert bounds.view_min.y() == pytest.approx(-5)
    assert bounds.view_max.x() == pytest.approx(90)
    assert bounds.view_max.y() == pytest.approx(45)


def test_invalid_extents_are_rejected():
    with pytest.raises(ValueError):
        ScaleExtents(0, 1)
    with pytest.raises(ValueError):
        ScaleExtents(2, 1)
