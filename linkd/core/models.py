"""Search data model — queries, profile records and search results.

Every value here lives for one request only. Nothing is cached and no
identity is reconciled across calls.
"""
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

FilterValue = Union[str, int, float, bool]

DEFAULT_MAX_RESULTS = 10


class SearchOutcome(str, Enum):
    OK = "ok"
    AUTH_FAILED = "auth_failed"
    TRANSPORT_FAILED = "transport_failed"
    HTTP_ERROR = "http_error"
    TIMED_OUT = "timed_out"


class SearchQuery(BaseModel):
    """A query issued to the profile search service. Immutable."""

    model_config = ConfigDict(frozen=True)

    query: str
    filters: dict[str, Union[FilterValue, list[FilterValue]]] = Field(default_factory=dict)
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)
    include_details: bool = True
    sort_by: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be empty")
        return v

    def to_params(self) -> list[tuple[str, Any]]:
        """HTTP query parameters. Filters are spread as top-level params;
        list filters become repeated params (school=A&school=B)."""
        params: list[tuple[str, Any]] = [("query", self.query)]
        for key, value in self.filters.items():
            if isinstance(value, list):
                params.extend((key, _param_value(v)) for v in value)
            else:
                params.append((key, _param_value(value)))
        params.append(("limit", self.max_results))
        params.append(("include_details", _param_value(self.include_details)))
        if self.sort_by:
            params.append(("sort_by", self.sort_by))
        if self.sort_order:
            params.append(("sort_order", self.sort_order))
        return params

    def to_stream_payload(self) -> dict[str, Any]:
        """The `data` body of the streamed `query` message."""
        return {
            "query": self.query,
            "filters": dict(self.filters),
            "limit": self.max_results,
            "include_details": self.include_details,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }


class Recommendation(BaseModel):
    name: str
    text: str


class ProfileRecord(BaseModel):
    """One professional profile as returned by the search service.

    Accepts snake_case or camelCase keys. Unknown keys are kept as extras.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    name: str
    affiliation: str = ""
    education: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    location: Optional[str] = None
    bio: Optional[str] = None
    profile_url: Optional[str] = None
    graduation_year: Optional[int] = None
    major: Optional[str] = None
    connections_count: Optional[int] = None
    contacts: list[str] = Field(default_factory=list)
    clubs: list[str] = Field(default_factory=list)
    volunteer_work: list[str] = Field(default_factory=list)
    awards: list[str] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class SearchResult(BaseModel):
    profiles: list[ProfileRecord] = Field(default_factory=list)
    total_count: int = 0
    query_execution_time: float = 0.0
    outcome: SearchOutcome = SearchOutcome.OK

    @model_validator(mode="after")
    def _total_covers_profiles(self) -> "SearchResult":
        if self.total_count < len(self.profiles):
            self.total_count = len(self.profiles)
        return self

    @classmethod
    def empty(cls, outcome: SearchOutcome = SearchOutcome.OK) -> "SearchResult":
        return cls(profiles=[], total_count=0, query_execution_time=0.0, outcome=outcome)

    @property
    def failed(self) -> bool:
        return self.outcome not in (SearchOutcome.OK, SearchOutcome.TIMED_OUT)


class IntroductionRequest(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    from_id: str
    to_id: str
    message: str
    context: str = ""

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


def _param_value(value: FilterValue) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
