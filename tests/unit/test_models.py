"""Unit tests for the search data model."""
import pytest
from pydantic import ValidationError

from linkd.core.models import (
    IntroductionRequest,
    ProfileRecord,
    SearchOutcome,
    SearchQuery,
    SearchResult,
)


# ---------------------------------------------------------------------------
# SearchQuery
# ---------------------------------------------------------------------------

def test_search_query_defaults():
    q = SearchQuery(query="data scientists")
    assert q.max_results == 10
    assert q.include_details is True
    assert q.filters == {}
    assert q.sort_by is None
    assert q.sort_order is None


def test_search_query_is_immutable():
    q = SearchQuery(query="data scientists")
    with pytest.raises(ValidationError):
        q.max_results = 50


def test_search_query_strips_and_rejects_blank():
    assert SearchQuery(query="  founders  ").query == "founders"
    with pytest.raises(ValidationError):
        SearchQuery(query="   ")


def test_search_query_rejects_non_positive_limit():
    with pytest.raises(ValidationError):
        SearchQuery(query="x", max_results=0)


def test_search_query_rejects_unknown_sort_order():
    with pytest.raises(ValidationError):
        SearchQuery(query="x", sort_order="sideways")


def test_to_params_spreads_filters_and_repeats_lists():
    q = SearchQuery(
        query="engineers",
        filters={"school": ["UCLA", "USC"], "location": "Los Angeles"},
        max_results=5,
        sort_by="relevance",
        sort_order="desc",
    )
    params = q.to_params()
    assert params[0] == ("query", "engineers")
    assert ("school", "UCLA") in params
    assert ("school", "USC") in params
    assert ("location", "Los Angeles") in params
    assert ("limit", 5) in params
    assert ("include_details", "true") in params
    assert ("sort_by", "relevance") in params
    assert ("sort_order", "desc") in params


def test_to_params_omits_unset_sort():
    keys = [k for k, _ in SearchQuery(query="x").to_params()]
    assert "sort_by" not in keys
    assert "sort_order" not in keys


def test_to_stream_payload_nests_filters():
    q = SearchQuery(query="x", filters={"school": "UCLA"}, max_results=3)
    payload = q.to_stream_payload()
    assert payload == {
        "query": "x",
        "filters": {"school": "UCLA"},
        "limit": 3,
        "include_details": True,
        "sort_by": None,
        "sort_order": None,
    }


# ---------------------------------------------------------------------------
# ProfileRecord
# ---------------------------------------------------------------------------

def test_profile_accepts_camel_case_keys():
    p = ProfileRecord.model_validate({
        "id": "p1",
        "name": "Sarah Johnson",
        "profileUrl": "https://linkedin.com/in/sarah",
        "graduationYear": 2018,
        "volunteerWork": ["Code.org"],
    })
    assert p.profile_url == "https://linkedin.com/in/sarah"
    assert p.graduation_year == 2018
    assert p.volunteer_work == ["Code.org"]


def test_profile_accepts_snake_case_keys():
    p = ProfileRecord.model_validate({
        "id": "p1",
        "name": "Sarah Johnson",
        "profile_url": "https://linkedin.com/in/sarah",
        "connections_count": 500,
    })
    assert p.profile_url == "https://linkedin.com/in/sarah"
    assert p.connections_count == 500


def test_profile_defaults_and_int_id():
    p = ProfileRecord.model_validate({"id": 42, "name": "Michael Chen"})
    assert p.id == "42"
    assert p.affiliation == ""
    assert p.education == []
    assert p.skills == []
    assert p.location is None


def test_profile_keeps_unknown_keys():
    p = ProfileRecord.model_validate({"id": "1", "name": "A", "mutualConnections": ["B"]})
    assert p.model_dump()["mutualConnections"] == ["B"]


def test_profile_requires_name():
    with pytest.raises(ValidationError):
        ProfileRecord.model_validate({"id": "1"})


# ---------------------------------------------------------------------------
# SearchResult
# ---------------------------------------------------------------------------

def test_result_total_is_lifted_to_profile_count():
    profiles = [ProfileRecord(id=str(i), name=f"n{i}") for i in range(3)]
    r = SearchResult(profiles=profiles, total_count=1)
    assert r.total_count == 3


def test_result_keeps_larger_server_total():
    r = SearchResult(profiles=[ProfileRecord(id="1", name="a")], total_count=250)
    assert r.total_count == 250


def test_empty_result():
    r = SearchResult.empty(SearchOutcome.AUTH_FAILED)
    assert r.profiles == []
    assert r.total_count == 0
    assert r.query_execution_time == 0.0
    assert r.outcome == SearchOutcome.AUTH_FAILED
    assert r.failed


@pytest.mark.parametrize("outcome,failed", [
    (SearchOutcome.OK, False),
    (SearchOutcome.TIMED_OUT, False),
    (SearchOutcome.AUTH_FAILED, True),
    (SearchOutcome.TRANSPORT_FAILED, True),
    (SearchOutcome.HTTP_ERROR, True),
])
def test_failed_flag(outcome, failed):
    assert SearchResult.empty(outcome).failed is failed


# ---------------------------------------------------------------------------
# IntroductionRequest
# ---------------------------------------------------------------------------

def test_introduction_payload_uses_wire_keys():
    req = IntroductionRequest(from_id="a", to_id="b", message="hi", context="same club")
    assert req.to_payload() == {
        "fromId": "a",
        "toId": "b",
        "message": "hi",
        "context": "same club",
    }
