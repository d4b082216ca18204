"""Tests for request filtering and sorting."""

from datetime import datetime

import pytest
from pydantic import ValidationError as SchemaValidationError

from komuniteti.schemas.common.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
    RequestSortOption,
)
from komuniteti.schemas.maintenance import MaintenanceFilterParams
from komuniteti.services.maintenance import filter_requests, sort_requests
from tests.factories import make_draft, make_snapshot


@pytest.fixture
def catalogue():
    return [
        make_snapshot(id="r1", title="Leaky faucet", created_at=datetime(2024, 1, 10)),
        make_snapshot(
            id="r2",
            title="Broken light",
            description="Hallway light flickers",
            location="Hallway",
            type=MaintenanceType.ELECTRICAL,
            status=MaintenanceStatus.IN_PROGRESS,
            priority=MaintenancePriority.URGENT,
            created_at=datetime(2024, 2, 5),
        ),
        make_snapshot(
            id="r3",
            title="Roof LEAK",
            description="Water in attic",
            location="Attic",
            building_id="b2",
            building_name="Tower B",
            unit_id="unit-3",
            unit_number="3",
            type=MaintenanceType.STRUCTURAL,
            priority=MaintenancePriority.HIGH,
            created_at=datetime(2024, 3, 1),
        ),
        make_snapshot(
            id="r4",
            title="Elevator noise",
            description="Grinding sound",
            location="Lobby",
            type=MaintenanceType.COMMON_AREA,
            status=MaintenanceStatus.RESOLVED,
            priority=MaintenancePriority.LOW,
            resolution_details="Lubricated",
            created_at=datetime(2024, 3, 20),
        ),
    ]


def ids(requests):
    return [r.id for r in requests]


class TestFilter:
    def test_default_criteria_keep_everything(self, catalogue):
        assert ids(filter_requests(catalogue)) == ["r1", "r2", "r3", "r4"]

    def test_query_is_case_insensitive(self, catalogue):
        found = filter_requests(catalogue, MaintenanceFilterParams(query="leak"))
        assert ids(found) == ["r1", "r3"]

    def test_query_searches_location_and_submitter(self, catalogue):
        assert ids(filter_requests(catalogue, MaintenanceFilterParams(query="hallway"))) == ["r2"]
        assert len(filter_requests(catalogue, MaintenanceFilterParams(query="KRASNIQI"))) == 4

    def test_query_keeps_surrounding_whitespace(self, catalogue):
        criteria = MaintenanceFilterParams(query="leak ")

        assert criteria.query == "leak "
        assert ids(filter_requests(catalogue, criteria)) == []
        assert ids(filter_requests(catalogue, MaintenanceFilterParams(query="faucet "))) == ["r1"]

    def test_blank_query_is_ignored(self, catalogue):
        criteria = MaintenanceFilterParams(query="   ")
        assert criteria.query is None
        assert len(filter_requests(catalogue, criteria)) == 4

    def test_status_exact_match(self, catalogue):
        found = filter_requests(catalogue, MaintenanceFilterParams(status="in-progress"))
        assert ids(found) == ["r2"]

    def test_type_exact_match(self, catalogue):
        found = filter_requests(catalogue, MaintenanceFilterParams(type=MaintenanceType.STRUCTURAL))
        assert ids(found) == ["r3"]

    def test_all_disables_status_and_type(self, catalogue):
        criteria = MaintenanceFilterParams(status="all", type="all")
        assert len(filter_requests(catalogue, criteria)) == 4

    def test_unknown_status_is_rejected(self):
        with pytest.raises(SchemaValidationError):
            MaintenanceFilterParams(status="pending")

    def test_building_and_unit(self, catalogue):
        assert ids(filter_requests(catalogue, MaintenanceFilterParams(building_id="b2"))) == ["r3"]
        assert ids(filter_requests(catalogue, MaintenanceFilterParams(unit_id="unit-12"))) == [
            "r1",
            "r2",
            "r4",
        ]

    def test_date_range_is_inclusive(self, catalogue):
        criteria = MaintenanceFilterParams(
            start_date=datetime(2024, 2, 5),
            end_date=datetime(2024, 3, 1),
        )
        assert ids(filter_requests(catalogue, criteria)) == ["r2", "r3"]

    def test_start_after_end_is_rejected(self):
        with pytest.raises(SchemaValidationError):
            MaintenanceFilterParams(
                start_date=datetime(2024, 3, 1),
                end_date=datetime(2024, 2, 1),
            )

    def test_predicates_are_combined(self, catalogue):
        criteria = MaintenanceFilterParams(query="leak", building_id="b1", status="open")
        assert ids(filter_requests(catalogue, criteria)) == ["r1"]

    def test_filtering_is_idempotent(self, catalogue):
        criteria = MaintenanceFilterParams(query="l", status="open")
        once = filter_requests(catalogue, criteria)
        assert filter_requests(once, criteria) == once

    def test_input_is_not_modified(self, catalogue):
        before = list(catalogue)
        result = filter_requests(catalogue, MaintenanceFilterParams(building_id="b2"))
        assert catalogue == before
        assert result is not catalogue


class TestSort:
    def test_newest_first(self, catalogue):
        assert ids(sort_requests(catalogue, RequestSortOption.NEWEST)) == ["r4", "r3", "r2", "r1"]

    def test_oldest_first(self, catalogue):
        assert ids(sort_requests(list(reversed(catalogue)), "oldest")) == ["r1", "r2", "r3", "r4"]

    def test_priority_order(self, catalogue):
        assert ids(sort_requests(catalogue, RequestSortOption.PRIORITY)) == ["r2", "r3", "r1", "r4"]

    def test_priority_sort_is_stable(self):
        same = [
            make_snapshot(id=f"m{i}", priority=MaintenancePriority.MEDIUM) for i in range(3)
        ]
        urgent = make_snapshot(id="u", priority=MaintenancePriority.URGENT)

        ordered = sort_requests(same[:2] + [urgent] + same[2:], RequestSortOption.PRIORITY)

        assert ids(ordered) == ["u", "m0", "m1", "m2"]

    def test_newest_keeps_input_order_on_ties(self):
        tied = [make_snapshot(id=f"t{i}") for i in range(3)]
        assert ids(sort_requests(tied, RequestSortOption.NEWEST)) == ["t0", "t1", "t2"]

    def test_sort_returns_new_list(self, catalogue):
        result = sort_requests(catalogue)
        assert result is not catalogue
        assert ids(catalogue) == ["r1", "r2", "r3", "r4"]


def test_search_service_filters_store(services):
    store = services.requests()
    store.create_request(make_draft(title="Leaky faucet")).unwrap()
    store.create_request(make_draft(title="Roof leak", building_id="b2")).unwrap()
    store.create_request(make_draft(title="Broken light", type=MaintenanceType.ELECTRICAL)).unwrap()

    result = services.search().search(MaintenanceFilterParams(query="LEAK", building_id="b1"))

    assert [r.title for r in result.unwrap()] == ["Leaky faucet"]
    assert result.metadata["total"] == 1
