"""
Slack Work Objects for Linear tickets mentioned in outgoing messages.

When a message mentions Linear identifiers (e.g. ENG-1475), ticket data is
fetched from the Linear GraphQL API and attached to the Slack message as
Work Object metadata for rich rendering.

Requires ``LINEAR_API_KEY`` and "Work Object Previews" enabled on the Slack
app with the Task entity type.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import structlog

from slack_relay.config.constants import (
    DEFAULT_TAG_COLOR,
    LINEAR_PRODUCT_NAME,
    PRIORITY_COLORS,
    STATE_TYPE_COLORS,
    WORK_OBJECT_DEFAULT_LIMIT,
    WORK_OBJECT_DESCRIPTION_LIMIT,
    WORK_OBJECT_ENTITY_TYPE,
    WORK_OBJECT_USER_TYPE,
)
from slack_relay.config.settings import Settings, get_settings
from slack_relay.core.exceptions import ExternalServiceError
from slack_relay.models.types import LinearIssue, WorkObjectMetadata

logger = structlog.get_logger(__name__)

IDENTIFIER_PATTERN = re.compile(r"\b([A-Z]{2,10}-\d{1,6})\b")

ISSUE_QUERY = """
query IssueByIdentifier($id: String!) {
  issue(id: $id) {
    id
    identifier
    title
    description
    priority
    priorityLabel
    createdAt
    updatedAt
    url
    state { name color type }
    assignee { name email }
    project { name }
  }
}
"""


def extract_identifiers(text: str) -> List[str]:
    """Unique Linear-style identifiers (``ABC-123``) in order of appearance."""
    return list(dict.fromkeys(IDENTIFIER_PATTERN.findall(text)))


def _epoch_seconds(value: str) -> Optional[int]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def build_task_entity(issue: LinearIssue) -> Dict[str, Any]:
    """Map a Linear issue onto a ``slack#/entities/task`` Work Object."""
    state_type = issue.state.type if issue.state else None
    state_color = STATE_TYPE_COLORS.get(state_type or "", DEFAULT_TAG_COLOR)
    priority_color = PRIORITY_COLORS.get(issue.priority, DEFAULT_TAG_COLOR)
    created = _epoch_seconds(issue.created_at)
    updated = _epoch_seconds(issue.updated_at)

    fields: Dict[str, Any] = {
        "description": {
            "value": (issue.description or "")[:WORK_OBJECT_DESCRIPTION_LIMIT],
            "format": "markdown",
        },
        "status": {
            "value": issue.state.name if issue.state else "Unknown",
            "tag_color": state_color,
            "link": issue.url,
        },
        "priority": {
            "value": issue.priority_label or "No priority",
            "tag_color": priority_color,
        },
    }
    if created is not None:
        fields["date_created"] = {"value": created}
    if updated is not None:
        fields["date_updated"] = {"value": updated}

    if issue.assignee:
        user: Dict[str, str] = {"text": issue.assignee.name}
        if issue.assignee.email:
            user["email"] = issue.assignee.email
        fields["assignee"] = {"user": user, "type": WORK_OBJECT_USER_TYPE}

    attributes: Dict[str, Any] = {
        "title": {"text": f"{issue.identifier}: {issue.title}"},
        "display_id": issue.identifier,
        "display_type": "Issue",
        "product_name": LINEAR_PRODUCT_NAME,
    }
    if updated is not None:
        attributes["metadata_last_modified"] = updated

    return {
        "url": issue.url,
        "external_ref": {"id": issue.id, "type": "issue"},
        "entity_type": WORK_OBJECT_ENTITY_TYPE,
        "entity_payload": {"attributes": attributes, "fields": fields},
    }


class LinearWorkObjectBuilder:
    """Fetches Linear issues (with a TTL cache) and builds Work Object metadata."""

    def __init__(
            self,
            api_key: str,
            api_url: str,
            cache_ttl_seconds: float = 60,
            http_client: Optional[httpx.AsyncClient] = None,
            clock: Callable[[], float] = time.monotonic
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.cache_ttl_seconds = cache_ttl_seconds
        self._http_client = http_client
        self._clock = clock
        self._cache: Dict[str, Tuple[Optional[LinearIssue], float]] = {}
        self.logger = structlog.get_logger(self.__class__.__name__)

    def _cached(self, identifier: str) -> Tuple[bool, Optional[LinearIssue]]:
        entry = self._cache.get(identifier)
        if entry is None:
            return False, None
        issue, stored_at = entry
        if self._clock() - stored_at >= self.cache_ttl_seconds:
            del self._cache[identifier]
            return False, None
        return True, issue

    async def _post(self, identifier: str) -> httpx.Response:
        payload = {"query": ISSUE_QUERY, "variables": {"id": identifier}}
        headers = {"Content-Type": "application/json", "Authorization": self.api_key}
        if self._http_client is not None:
            return await self._http_client.post(self.api_url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=10) as client:
            return await client.post(self.api_url, json=payload, headers=headers)

    async def _request_issue(self, identifier: str) -> Optional[LinearIssue]:
        response = await self._post(identifier)
        if response.is_error:
            raise ExternalServiceError(
                service="linear",
                operation="issue",
                error_message=f"HTTP {response.status_code}",
                status_code=response.status_code,
                is_retryable=response.status_code >= 500
            )
        issue_data = (response.json().get("data") or {}).get("issue")
        return LinearIssue.model_validate(issue_data) if issue_data else None

    async def fetch_issue(self, identifier: str) -> Optional[LinearIssue]:
        """
        Fetch one issue. API errors are cached as misses; transport and
        decoding failures are not cached.
        """
        hit, issue = self._cached(identifier)
        if hit:
            return issue

        try:
            issue = await self._request_issue(identifier)
        except ExternalServiceError as e:
            self.logger.debug(
                "Linear API error",
                identifier=identifier,
                status_code=e.status_code
            )
            self._cache[identifier] = (None, self._clock())
            return None
        except (httpx.HTTPError, ValueError) as e:
            self.logger.debug(
                "Linear fetch failed",
                identifier=identifier,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

        self._cache[identifier] = (issue, self._clock())
        return issue

    async def build(self, text: str, limit: Optional[int] = None) -> Optional[WorkObjectMetadata]:
        """
        Build Work Object metadata for up to ``limit`` tickets mentioned in text.

        Returns:
            WorkObjectMetadata, or None when no ticket could be resolved
        """
        identifiers = extract_identifiers(text)
        if not identifiers:
            return None

        entities = []
        for identifier in identifiers[:limit or WORK_OBJECT_DEFAULT_LIMIT]:
            issue = await self.fetch_issue(identifier)
            if issue is not None:
                entities.append(build_task_entity(issue))

        if not entities:
            return None

        self.logger.debug(
            "Built Linear task entities",
            count=len(entities),
            identifiers=identifiers[:limit or WORK_OBJECT_DEFAULT_LIMIT]
        )
        return WorkObjectMetadata(entities=entities)


_default_builder: Optional[LinearWorkObjectBuilder] = None


def get_work_object_builder(settings: Optional[Settings] = None) -> Optional[LinearWorkObjectBuilder]:
    """Process-wide builder for the configured key; None when Linear is disabled."""
    global _default_builder
    settings = settings or get_settings()
    if not settings.LINEAR_API_KEY:
        return None

    if (
        _default_builder is None
        or _default_builder.api_key != settings.LINEAR_API_KEY
        or _default_builder.api_url != settings.LINEAR_API_URL
    ):
        _default_builder = LinearWorkObjectBuilder(
            api_key=settings.LINEAR_API_KEY,
            api_url=settings.LINEAR_API_URL,
            cache_ttl_seconds=settings.LINEAR_CACHE_TTL_SECONDS,
        )
    return _default_builder


async def build_linear_work_objects(
        text: str,
        limit: Optional[int] = None,
        settings: Optional[Settings] = None
) -> Optional[WorkObjectMetadata]:
    """Scan text for Linear identifiers and build Work Object metadata."""
    settings = settings or get_settings()
    builder = get_work_object_builder(settings)
    if builder is None:
        return None
    return await builder.build(text, limit or settings.WORK_OBJECT_LIMIT)
