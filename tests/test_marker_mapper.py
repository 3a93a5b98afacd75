from datetime import datetime

from health_portal.models.finding_model import Finding, RadiologicalAnalysis
from health_portal.services.marker_mapper import base_position, map_findings_to_markers, report_urgency
from factories import make_report


def _finding(location, category="normal", description="Reperto"):
    return Finding(category=category, description=description, location=location)


def test_keyword_positions():
    assert base_position("Lobo superiore destro") == (70.0, 25.0)
    assert base_position("base polmonare sinistra") == (30.0, 75.0)
    assert base_position("regione media") == (50.0, 50.0)
    assert base_position("ilo") == (50.0, 50.0)
    assert base_position("left lower zone") == (30.0, 75.0)


def test_right_upper_finding_is_marked_at_right_upper_quadrant():
    markers = map_findings_to_markers([_finding("lobo superiore destro")])

    assert len(markers) == 1
    assert (markers[0].x, markers[0].y) == (70.0, 25.0)
    assert markers[0].id == "marker-0"


def test_findings_without_location_get_no_marker():
    findings = [_finding(None), _finding("apice destro"), _finding("")]
    markers = map_findings_to_markers(findings)

    assert [m.id for m in markers] == ["marker-0"]
    assert markers[0].finding is findings[1]


def test_colliding_markers_are_offset():
    markers = map_findings_to_markers([
        _finding("superiore destro"),
        _finding("apice destro"),
        _finding("lobo superiore destro"),
    ])

    assert [(m.x, m.y) for m in markers] == [(70.0, 25.0), (75.0, 30.0), (80.0, 35.0)]


def test_distant_markers_are_not_offset():
    markers = map_findings_to_markers([_finding("superiore destro"), _finding("inferiore sinistro")])

    assert [(m.x, m.y) for m in markers] == [(70.0, 25.0), (30.0, 75.0)]


def test_offset_counts_only_markers_near_the_base_position():
    markers = map_findings_to_markers([_finding("inferiore destro") for _ in range(5)])

    # (80, 85)는 기준점 (70, 75)에서 10 떨어져 있어 이웃으로 세지 않는다
    assert [(m.x, m.y) for m in markers] == [
        (70.0, 75.0), (75.0, 80.0), (80.0, 85.0), (80.0, 85.0), (80.0, 85.0),
    ]


def test_markers_follow_new_finding_list():
    first = map_findings_to_markers([_finding("apice destro"), _finding("base sinistra")])
    second = map_findings_to_markers([_finding("base sinistra")])

    assert len(first) == 2
    assert [(m.x, m.y, m.id) for m in second] == [(30.0, 75.0, "marker-0")]


def test_legacy_string_findings_upgrade_to_normal():
    analysis = RadiologicalAnalysis.model_validate({"findings": ["Nessuna anomalia"]})

    assert analysis.findings[0].category == "normal"
    assert analysis.findings[0].location is None


def test_report_urgency():
    created = datetime(2024, 1, 1)
    urgent = make_report("a", created, radiologicalAnalysis={"findings": [
        {"category": "attention", "description": "x"},
        {"category": "urgent", "description": "y"},
    ]})
    attention = make_report("b", created, radiologicalAnalysis={"findings": [
        {"category": "attention", "description": "x"},
    ]})

    assert report_urgency(urgent) == "urgent"
    assert report_urgency(attention) == "attention"
    assert report_urgency(make_report("c", created)) == "none"
