"""policy_search — look up HR policies.

Queries the Vectorize index when it is configured and falls back to the
built-in policy set on any remote failure, so callers always get results
from one source or the other.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import Field

from hrbot.config import settings
from hrbot.errors import UpstreamError
from hrbot.tools.base import BaseTool, ToolParams, ToolResult

logger = logging.getLogger(__name__)

POLICIES: tuple[dict[str, Any], ...] = (
    {
        "id": "policy-001",
        "title": "Remote Work Policy",
        "section": "Work Arrangements",
        "content": (
            "TechCorp supports flexible work arrangements including remote work. Employees may "
            "work remotely up to 3 days per week with manager approval. Full-time remote work "
            "requires director approval and annual review."
        ),
        "keywords": ["remote", "work from home", "flexible", "telecommute", "hybrid"],
        "last_updated": "2024-01-15",
        "effective_date": "2024-02-01",
    },
    {
        "id": "policy-002",
        "title": "Vacation and Time Off Policy",
        "section": "Benefits",
        "content": (
            "Full-time employees accrue vacation time at 1.67 days per month (20 days annually). "
            "Vacation must be requested at least 2 weeks in advance. Maximum carryover is 5 days. "
            "Sick leave accrues at 1 day per month."
        ),
        "keywords": ["vacation", "pto", "time off", "sick leave", "holidays"],
        "last_updated": "2024-01-10",
        "effective_date": "2024-01-01",
    },
    {
        "id": "policy-003",
        "title": "Performance Review Process",
        "section": "Performance Management",
        "content": (
            "Annual performance reviews are conducted each January. Reviews include goal "
            "assessment, competency evaluation, and development planning. Employees receive "
            "ratings of Exceeds Expectations, Meets Expectations, or Needs Improvement."
        ),
        "keywords": ["performance", "review", "evaluation", "goals", "rating"],
        "last_updated": "2023-12-01",
        "effective_date": "2024-01-01",
    },
    {
        "id": "policy-004",
        "title": "Health Insurance Benefits",
        "section": "Benefits",
        "content": (
            "TechCorp provides comprehensive health insurance including medical, dental, and "
            "vision coverage. Company pays 80% of premiums for employee coverage, 60% for family "
            "coverage. Open enrollment occurs annually in November."
        ),
        "keywords": ["health", "insurance", "medical", "dental", "vision", "benefits"],
        "last_updated": "2024-01-20",
        "effective_date": "2024-01-01",
    },
    {
        "id": "policy-005",
        "title": "Professional Development Policy",
        "section": "Career Development",
        "content": (
            "Employees are allocated $2,000 annually for professional development including "
            "conferences, training, and certifications. Development plans are created during "
            "annual reviews. Tuition reimbursement available for relevant degree programs."
        ),
        "keywords": [
            "development", "training", "education", "conference", "certification", "tuition",
        ],
        "last_updated": "2024-01-05",
        "effective_date": "2024-01-01",
    },
    {
        "id": "policy-006",
        "title": "Code of Conduct",
        "section": "Workplace Standards",
        "content": (
            "All employees must maintain professional conduct and adhere to company values. "
            "Harassment, discrimination, and unethical behavior are prohibited. Violations may "
            "result in disciplinary action up to and including termination."
        ),
        "keywords": ["conduct", "ethics", "harassment", "discrimination", "behavior", "standards"],
        "last_updated": "2023-11-15",
        "effective_date": "2024-01-01",
    },
)


class PolicySearchParams(ToolParams):
    query: str = Field(min_length=1, description="Search query for finding relevant HR policies")
    section: str | None = Field(
        default=None,
        description='Optional: Filter results by policy section (e.g., "Benefits", "Work Arrangements")',
    )
    limit: int = Field(
        default=5, ge=1, le=10, description="Maximum number of results to return (default: 5)"
    )


def score_policy(policy: dict[str, Any], query: str) -> int:
    """Keyword relevance of one policy for a lower-cased query."""
    score = 10 * sum(1 for keyword in policy["keywords"] if keyword.lower() in query)
    if query in policy["title"].lower():
        score += 15
    if query in policy["content"].lower():
        score += 5
    if query in policy["section"].lower():
        score += 8
    return score


def search_local(
    query: str,
    section: str | None = None,
    limit: int = 5,
    policies: tuple[dict[str, Any], ...] = POLICIES,
) -> list[dict[str, Any]]:
    """Score the built-in policies against the query; best first."""
    query_lower = query.lower()
    results = []
    for policy in policies:
        if section and section.lower() not in policy["section"].lower():
            continue
        score = score_policy(policy, query_lower)
        if score > 0:
            results.append({**policy, "relevance_score": score})
    results.sort(key=lambda p: p["relevance_score"], reverse=True)
    return results[:limit]


class PolicySearchTool(BaseTool):
    name = "policy_search"
    description = "Searches HR policies and procedures using vector search for relevant information"
    params_model = PolicySearchParams

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        index_name: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = settings.vectorize_api_key if api_key is None else api_key
        self.endpoint = (settings.vectorize_endpoint if endpoint is None else endpoint).rstrip("/")
        self.index_name = index_name or settings.vectorize_index_name
        self.timeout = timeout or settings.policy_search_timeout

    @property
    def remote_configured(self) -> bool:
        return bool(self.api_key and self.endpoint)

    async def execute(self, query: str, section: str | None = None, limit: int = 5) -> ToolResult:
        source = "local"
        if self.remote_configured:
            try:
                results = await self.search_remote(query, section, limit)
                source = "vectorize"
            except UpstreamError as exc:
                logger.warning("Vectorize search failed, falling back to local policies: %s", exc)
                results = search_local(query, section, limit)
        else:
            results = search_local(query, section, limit)

        return ToolResult(
            data={
                "results": results,
                "query": query,
                "section": section,
                "count": len(results),
                "source": source,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    async def search_remote(
        self, query: str, section: str | None, limit: int
    ) -> list[dict[str, Any]]:
        """Query the Vectorize index. Raises UpstreamError on any failure."""
        payload: dict[str, Any] = {
            "query": query,
            "index": self.index_name,
            "limit": limit,
            "include_metadata": True,
        }
        if section:
            payload["filter"] = {"section": section}

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.endpoint}/search", json=payload, headers=headers)
            resp.raise_for_status()
            return [
                {
                    "id": item["id"],
                    "title": item["metadata"]["title"],
                    "section": item["metadata"]["section"],
                    "content": item["metadata"]["content"],
                    "relevance_score": item.get("score"),
                    "last_updated": item["metadata"].get("last_updated"),
                    "effective_date": item["metadata"].get("effective_date"),
                }
                for item in resp.json()["results"]
            ]
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise UpstreamError("vectorize", type(exc).__name__) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError("vectorize", "unexpected response shape") from exc

    # -- Direct helpers --------------------------------------------------------

    @staticmethod
    def get_sections() -> list[str]:
        return list(dict.fromkeys(p["section"] for p in POLICIES))

    @staticmethod
    def get_policies_by_section(section: str) -> list[dict[str, Any]]:
        return [p for p in POLICIES if section.lower() in p["section"].lower()]

    @staticmethod
    def get_policy_by_id(policy_id: str) -> dict[str, Any] | None:
        return next((p for p in POLICIES if p["id"] == policy_id), None)

    @staticmethod
    def format_policy_results(results: list[dict[str, Any]]) -> str:
        """Plain-text listing of policy hits."""
        if not results:
            return "No relevant policies found for your query."

        lines = [f"Found {len(results)} relevant policy/policies:", ""]
        for index, policy in enumerate(results, start=1):
            lines.append(f"{index}. **{policy['title']}** ({policy['section']})")
            lines.append(f"   {policy['content']}")
            lines.append(f"   *Last updated: {policy['last_updated']}*")
            lines.append("")
        return "\n".join(lines)
