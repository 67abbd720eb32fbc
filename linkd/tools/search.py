"""Profile search tools for LangChain agents."""
from langchain_core.tools import tool
from pydantic import ValidationError

from linkd.core.errors import LinkdError
from linkd.core.models import IntroductionRequest, SearchOutcome, SearchQuery, SearchResult
from linkd.tools import clients


def result_payload(result: SearchResult, query: str) -> dict:
    """Agent-facing dict for a SearchResult.

    status: ok | partial (deadline hit) | no_results | error
    """
    if result.failed:
        status = "error"
    elif not result.profiles:
        status = "no_results"
    elif result.outcome == SearchOutcome.TIMED_OUT:
        status = "partial"
    else:
        status = "ok"
    return {
        "status": status,
        "outcome": result.outcome.value,
        "query": query,
        "total_count": result.total_count,
        "execution_time": result.query_execution_time,
        "profiles": [p.model_dump(exclude_none=True) for p in result.profiles],
    }


def error_payload(query: str, exc: Exception) -> dict:
    return {"status": "error", "query": query, "error": str(exc), "profiles": []}


@tool
async def search_profiles(query: str, max_results: int = 10, school: list[str] | None = None) -> dict:
    """Search the Linkd professional network for matching profiles.

    Args:
        query: Natural language search, e.g. "ML engineers who studied at UCLA"
        max_results: Maximum number of profiles to return (default 10)
        school: Optional list of schools to restrict results to

    Returns:
        Dict with status, outcome, total_count and a list of profiles
    """
    filters = {"school": school} if school else {}
    try:
        search_query = SearchQuery(query=query, max_results=max_results, filters=filters)
        result = await clients.get_linkd_client().search(search_query)
    except (LinkdError, ValidationError) as exc:
        return error_payload(query, exc)
    return result_payload(result, query)


@tool
async def stream_search_profiles(query: str, max_results: int = 10) -> dict:
    """Search the Linkd network over the streaming endpoint (partial results on timeout).

    Args:
        query: Natural language search
        max_results: Maximum number of profiles to return (default 10)

    Returns:
        Dict with status, outcome, total_count and a list of profiles
    """
    try:
        search_query = SearchQuery(
            query=query, max_results=max_results, sort_by="relevance", sort_order="desc"
        )
        result = await clients.get_linkd_client().search_stream(search_query)
    except (LinkdError, ValidationError) as exc:
        return error_payload(query, exc)
    return result_payload(result, query)


@tool
async def get_profile_details(profile_id: str) -> dict:
    """Get the full profile for a Linkd profile id.

    Args:
        profile_id: Profile id from a previous search

    Returns:
        Dict with status and the profile (status=not_found when unavailable)
    """
    profile = await clients.get_linkd_client().get_profile(profile_id)
    if profile is None:
        return {"status": "not_found", "profile_id": profile_id}
    return {"status": "ok", "profile": profile.model_dump(exclude_none=True)}


@tool
async def find_mutual_connections(profile_id: str, other_profile_id: str) -> dict:
    """List mutual connections between two profiles.

    Args:
        profile_id: First profile id
        other_profile_id: Second profile id

    Returns:
        Dict with the connection names and their count
    """
    names = await clients.get_linkd_client().find_mutual_connections(profile_id, other_profile_id)
    return {"connections": names, "count": len(names)}


@tool
async def request_introduction(from_id: str, to_id: str, message: str, context: str = "") -> dict:
    """Ask the Linkd network to broker a warm introduction.

    Args:
        from_id: Profile id of the person asking
        to_id: Profile id of the person to be introduced to
        message: Note passed along with the request
        context: Why the introduction is relevant

    Returns:
        Dict with success flag
    """
    request = IntroductionRequest(from_id=from_id, to_id=to_id, message=message, context=context)
    success = await clients.get_linkd_client().request_introduction(request)
    return {"success": success, "from_id": from_id, "to_id": to_id}
