"""Alumni networking tools: recommendations, ask-an-alum, icebreakers and warm-intro discovery."""
import asyncio
import re

from langchain_core.tools import tool
from pydantic import ValidationError

from linkd.core.errors import LinkdError
from linkd.core.models import ProfileRecord, SearchQuery
from linkd.tools import clients
from linkd.tools.search import error_payload, result_payload


def _school(school: str | None) -> str:
    if school:
        return school
    from config.settings import get_settings
    return get_settings().default_school


def build_alumni_query(
    school: str,
    interests: str,
    classes: str | None = None,
    career: str | None = None,
    clubs: str | None = None,
    location: str | None = None,
) -> str:
    query = f"Find {school} alumni who match with interests in {interests}"
    if classes:
        query += f", took classes in {classes}"
    if career:
        query += f", working in {career}"
    if clubs:
        query += f", were part of {clubs}"
    if location:
        query += f", located in {location}"
    return query


def match_terms(profile: ProfileRecord, terms: list[str]) -> list[str]:
    """Terms that appear in the profile's interests, skills, experience or education."""
    haystack = " | ".join(
        profile.interests + profile.skills + profile.experience + profile.education + profile.clubs
    ).lower()
    return [t for t in terms if t.lower() in haystack]


def _split_terms(*values: str | None) -> list[str]:
    terms: list[str] = []
    for value in values:
        if value:
            terms.extend(t.strip() for t in value.split(",") if t.strip())
    return terms


@tool
async def recommend_alumni(
    interests: str,
    classes: str | None = None,
    career: str | None = None,
    clubs: str | None = None,
    location: str | None = None,
    school: str | None = None,
    max_results: int = 5,
) -> dict:
    """Recommend alumni to connect with based on shared interests, classes and career goals.

    Args:
        interests: Student's interests separated by commas
        classes: Classes taken by the student
        career: Career goals or aspirations
        clubs: Clubs or organizations the student is part of
        location: Student's location
        school: School whose alumni to search (defaults to the configured school)
        max_results: Maximum number of recommendations (default 5)

    Returns:
        Dict with status and a list of recommendations (name, affiliation,
        match_reason, connection_strength 0-1)
    """
    query = build_alumni_query(_school(school), interests, classes, career, clubs, location)
    try:
        search_query = SearchQuery(
            query=query, max_results=max_results, sort_by="relevance", sort_order="desc"
        )
        result = await clients.get_linkd_client().search_stream(search_query)
    except (LinkdError, ValidationError) as exc:
        return {**error_payload(query, exc), "recommendations": []}

    terms = _split_terms(interests, classes, career, clubs)
    recommendations = []
    for profile in result.profiles:
        matched = match_terms(profile, terms)
        if matched:
            reason = f"Shared interests: {', '.join(matched)}"
        else:
            reason = f"Relevant to your search: {profile.affiliation or profile.name}"
        recommendations.append({
            "id": profile.id,
            "name": profile.name,
            "affiliation": profile.affiliation,
            "match_reason": reason,
            "connection_strength": round(len(matched) / len(terms), 2) if terms else 0.0,
            "profile_url": profile.profile_url,
        })
    recommendations.sort(key=lambda r: r["connection_strength"], reverse=True)

    payload = result_payload(result, query)
    payload.pop("profiles")
    payload["recommendations"] = recommendations
    return payload


@tool
async def find_company_alumni(
    company: str,
    school: str | None = None,
    profile_id: str | None = None,
    max_results: int = 10,
) -> dict:
    """Find alumni at a company and the mutual connections who could introduce you.

    Args:
        company: Company name to find alumni at
        school: School whose alumni to search (defaults to the configured school)
        profile_id: Your own profile id; enables mutual-connection lookup
        max_results: Maximum number of alumni (default 10)

    Returns:
        Dict with status and a list of alumni (name, role, mutual_connections)
    """
    client = clients.get_linkd_client()
    query = f"Find {_school(school)} alumni working at {company}"
    try:
        result = await client.search_stream(
            SearchQuery(query=query, max_results=max_results, sort_by="relevance")
        )
    except (LinkdError, ValidationError) as exc:
        return {**error_payload(query, exc), "alumni": []}

    if profile_id:
        mutuals = await asyncio.gather(
            *(client.find_mutual_connections(profile_id, p.id) for p in result.profiles)
        )
    else:
        mutuals = [[] for _ in result.profiles]

    alumni = [
        {
            "id": profile.id,
            "name": profile.name,
            "role": (profile.experience[0] if profile.experience else None)
            or profile.affiliation
            or f"Employee at {company}",
            "mutual_connections": names,
        }
        for profile, names in zip(result.profiles, mutuals)
    ]

    payload = result_payload(result, query)
    payload.pop("profiles")
    payload["company"] = company
    payload["alumni"] = alumni
    return payload


def _keywords(*texts: str) -> set[str]:
    return {w for text in texts for w in re.findall(r"[a-z0-9+#]+", text.lower()) if len(w) > 3}


def question_match_score(profile: ProfileRecord, question: str, context: str) -> int:
    """Percentage (0-100) of question/context keywords found in the profile's
    skills, interests and experience."""
    keywords = _keywords(question, context)
    if not keywords:
        return 0
    found = _keywords(*(profile.skills + profile.interests + profile.experience))
    return round(100 * len(keywords & found) / len(keywords))


def relevance_description(profile: ProfileRecord) -> str:
    if profile.skills:
        return f"Has expertise in {', '.join(profile.skills[:2])} relevant to your question"
    return f"Background relevant to your question: {profile.affiliation or profile.name}"


@tool
async def ask_alum(question: str, context: str, school: str | None = None) -> dict:
    """Find alumni who could answer a quick question, ranked by how well their profile fits it.

    Args:
        question: The question to ask an alum
        context: Your background, interests and goals
        school: School whose alumni to search (defaults to the configured school)

    Returns:
        Dict with status and a list of matches (name, role, relevance, match_score 0-100)
    """
    query = f'Find {_school(school)} alumni who can answer: "{question}" with expertise related to {context}'
    try:
        search_query = SearchQuery(query=query, max_results=5, sort_by="relevance")
        result = await clients.get_linkd_client().search_stream(search_query)
    except (LinkdError, ValidationError) as exc:
        return {**error_payload(query, exc), "matches": []}

    matches = [
        {
            "id": profile.id,
            "name": profile.name,
            "role": profile.experience[0] if profile.experience else "Professional",
            "relevance": relevance_description(profile),
            "match_score": question_match_score(profile, question, context),
        }
        for profile in result.profiles
    ]
    matches.sort(key=lambda m: m["match_score"], reverse=True)

    payload = result_payload(result, query)
    payload.pop("profiles")
    payload["question"] = question
    payload["matches"] = matches
    return payload


def shared_interests(profile: ProfileRecord, interests: list[str]) -> list[str]:
    """Profile interests containing any of the given interests (case-insensitive), at most 3."""
    wanted = [i.lower() for i in interests]
    return [p for p in profile.interests if any(w in p.lower() for w in wanted)][:3]


def icebreaker(shared: list[str], background: str, school: str, purpose: str | None = None) -> str:
    interest = shared[0] if shared else school
    text = (
        f"I noticed you're interested in {interest}! I'm currently {background}. "
        f"Would love to hear about your experience with {interest}."
    )
    if purpose:
        text += f" I'm hoping to {purpose}."
    return text


@tool
async def bruin_icebreaker(
    interests: str,
    background: str,
    purpose: str | None = None,
    school: str | None = None,
) -> dict:
    """Find fellow students or alumni with shared interests and suggest a conversation starter.

    Args:
        interests: Your interests separated by commas
        background: Brief academic or professional background, e.g. "a CS junior"
        purpose: What you hope to gain from the connection
        school: School to search (defaults to the configured school)

    Returns:
        Dict with status and a list of matches (name, shared_interests, icebreaker)
    """
    school = _school(school)
    interest_list = _split_terms(interests)
    query = (
        f"Find {school} alumni or students with shared interests in {interests} "
        f"and background in {background}"
    )
    try:
        search_query = SearchQuery(
            query=query,
            max_results=3,
            filters={"school": school, "interests": interest_list},
        )
        result = await clients.get_linkd_client().search_stream(search_query)
    except (LinkdError, ValidationError) as exc:
        return {**error_payload(query, exc), "matches": []}

    matches = []
    for profile in result.profiles:
        shared = shared_interests(profile, interest_list)
        matches.append({
            "id": profile.id,
            "name": profile.name,
            "shared_interests": shared,
            "icebreaker": icebreaker(shared, background, school, purpose),
        })

    payload = result_payload(result, query)
    payload.pop("profiles")
    payload["matches"] = matches
    return payload
