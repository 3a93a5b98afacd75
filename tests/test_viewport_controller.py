from health_portal.services.viewport_controller import ViewportController


def test_zoom_in_stops_at_maximum():
    vc = ViewportController()
    for _ in range(20):
        vc.zoom_in()

    assert vc.state.zoom == 3.0


def test_zoom_out_stops_at_minimum():
    vc = ViewportController()
    for _ in range(20):
        vc.zoom_out()

    assert vc.state.zoom == 0.5


def test_zoom_steps_by_quarter():
    vc = ViewportController()

    assert vc.zoom_in().scale == 1.25
    assert vc.zoom_out().scale == 1.0
    assert vc.zoom_out().scale == 0.75


def test_four_rotations_return_to_start():
    vc = ViewportController()
    angles = [vc.rotate().rotation_degrees for _ in range(4)]

    assert angles == [90, 180, 270, 0]


def test_fullscreen_keeps_zoom_and_rotation():
    vc = ViewportController()
    vc.zoom_in()
    vc.rotate()
    before = vc.transform

    assert vc.toggle_fullscreen() is True
    assert vc.transform == before
    assert vc.toggle_fullscreen() is False
    assert vc.transform == before


def test_css_transform():
    vc = ViewportController()
    vc.zoom_in()
    vc.rotate()

    assert vc.transform.css() == "scale(1.25) rotate(90deg)"


def test_reset():
    vc = ViewportController()
    vc.zoom_in()
    vc.rotate()
    vc.toggle_fullscreen()
    vc.reset()

    assert (vc.state.zoom, vc.state.rotation_degrees, vc.state.is_fullscreen) == (1.0, 0, False)
