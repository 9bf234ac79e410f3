# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows between the MCP tools and the Tiben backend.  They carry no behavior.
#
# DESIGN PRINCIPLE — "Always Present":
#   Every field the tools expose has a value.  When the backend leaves a
#   field out, the normalizer (core/normalize.py) fills in a zero value
#   ("" / 0.0 / []) so nothing downstream has to guess.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional, Union


# -----------------------------------------------------------------------------
# ImageReference — where the problem image lives
# -----------------------------------------------------------------------------
# Two variants, picked by a prefix test in core/images.py:
#   - LocalPath  →  uploaded as multipart/form-data
#   - RemoteUrl  →  sent to the backend inside a JSON body
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LocalPath:
    """An image on the local filesystem (``file://`` prefix already removed)."""

    path: str


@dataclass(frozen=True)
class RemoteUrl:
    """An image the backend fetches itself (http(s) URL, data URI, ...)."""

    url: str


ImageReference = Union[LocalPath, RemoteUrl]


# -----------------------------------------------------------------------------
# Backend results
# -----------------------------------------------------------------------------
@dataclass
class SolveResult:
    """Step-by-step solution returned by /v1/solve-image."""

    solution: str
    raw_response: Optional[Any] = None  # parsed JSON, kept for debugging


@dataclass
class Problem:
    """One practice problem from the similar-problems endpoints."""

    id: str = ""
    title: str = ""
    content: str = ""
    similarity: float = 0.0            # 0.0 – 1.0


@dataclass
class Resource:
    """One learning resource from /v1/recommended-resources."""

    name: str = ""
    type: str = ""                     # "video", "article", "exercise", ...
    description: str = ""


@dataclass
class SimilarProblemsResult:
    """Problems list, plus the failure message when the lookup was swallowed."""

    problems: list[Problem] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RecommendedResourcesResult:
    """Resources list returned by the recommendation endpoint."""

    resources: list[Resource] = field(default_factory=list)
    error: Optional[str] = None
