import pytest

from health_portal.models.report_model import ReportQuery
from health_portal.services.report_view import (
    clamp_page, filter_reports, matches_search, page_count, paginate, sort_reports, view_reports,
)


def test_search_glucosio_matches_value_name(reports):
    found = filter_reports(reports, ReportQuery(search_text="GLUCOSIO"))

    assert [r.id for r in found] == ["r3"]


def test_search_matches_file_name_summary_and_value(reports):
    assert matches_search(reports[1], "torace")
    assert matches_search(reports[3], "ecg")
    assert matches_search(reports[0], "14.2")
    assert matches_search(reports[0], "g/dl")
    assert not matches_search(reports[0], "glucosio")
    assert matches_search(reports[0], "   ")


def test_type_filter(reports):
    assert [r.id for r in filter_reports(reports, ReportQuery(type_filter="radiology"))] == ["r2"]
    assert len(filter_reports(reports, ReportQuery(type_filter="all"))) == 4
    assert len(filter_reports(reports, ReportQuery())) == 4


def test_sort_modes(reports):
    assert [r.id for r in sort_reports(reports, "recent")] == ["r4", "r3", "r2", "r1"]
    assert [r.id for r in sort_reports(reports, "oldest")] == ["r1", "r2", "r3", "r4"]
    # 같은 유형끼리는 원래 순서 유지
    assert [r.id for r in sort_reports(reports, "type")] == ["r1", "r3", "r4", "r2"]


def test_view_reports_filters_then_sorts(reports):
    query = ReportQuery(type_filter="blood_test", sort_mode="recent")

    assert [r.id for r in view_reports(reports, query)] == ["r3", "r1"]


def test_paginate(reports):
    page = paginate(sort_reports(reports, "oldest"), 2, 3)

    assert [r.id for r in page.items] == ["r4"]
    assert (page.page, page.page_count, page.total) == (2, 2, 4)


def test_deleting_only_item_on_last_page_clamps_to_new_last_page(reports):
    ordered = sort_reports(reports, "oldest")
    assert paginate(ordered, 2, 3).page == 2

    remaining = [r for r in ordered if r.id != "r4"]
    page = paginate(remaining, 2, 3)

    assert page.page == 1
    assert page.page_count == 1
    assert [r.id for r in page.items] == ["r1", "r2", "r3"]


def test_empty_result_is_empty_state():
    page = paginate([], 5, 3)

    assert page.is_empty
    assert (page.page, page.page_count, page.items) == (1, 0, [])


def test_clamp_page_bounds():
    assert clamp_page(0, 10, 3) == 1
    assert clamp_page(9, 10, 3) == 4
    assert page_count(10, 2) == 5

    with pytest.raises(ValueError):
        page_count(3, 0)
