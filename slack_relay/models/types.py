"""
Common type definitions used across the relay.

Block Kit table models serialize straight to the Slack payload shape via
``to_slack()``; send-path models carry options and results between the
channel and its collaborators.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from slack_relay.config.constants import TargetKind


# ============================================================================
# BLOCK KIT TABLE MODELS
# ============================================================================

class RunStyle(BaseModel):
    """Inline style flags of a rich text run. Unset flags are omitted."""
    model_config = ConfigDict(frozen=True)

    bold: Optional[bool] = None
    italic: Optional[bool] = None
    strike: Optional[bool] = None
    code: Optional[bool] = None


class StyledRun(BaseModel):
    """One contiguous span of cell text: plain/styled text or a link."""
    model_config = ConfigDict(frozen=True)

    type: Literal["text", "link"] = "text"
    text: str
    url: Optional[str] = None
    style: Optional[RunStyle] = None

    @model_validator(mode="after")
    def check_kind(self):
        if self.type == "link":
            if not self.url:
                raise ValueError("link runs require a url")
            if self.style is not None:
                raise ValueError("link runs do not carry style")
        elif self.url is not None:
            raise ValueError("text runs do not carry a url")
        return self

    @classmethod
    def plain(cls, text: str) -> "StyledRun":
        return cls(text=text)

    @classmethod
    def styled(cls, text: str, **flags: bool) -> "StyledRun":
        return cls(text=text, style=RunStyle(**flags))

    @classmethod
    def link(cls, text: str, url: str) -> "StyledRun":
        return cls(type="link", text=text, url=url)


class RichTextSection(BaseModel):
    type: Literal["rich_text_section"] = "rich_text_section"
    elements: List[StyledRun]


class PlainCell(BaseModel):
    """Cell without inline formatting."""
    type: Literal["raw_text"] = "raw_text"
    text: str


class StyledCell(BaseModel):
    """Cell rendered as rich text; always a single section."""
    type: Literal["rich_text"] = "rich_text"
    elements: List[RichTextSection]

    @property
    def runs(self) -> List[StyledRun]:
        return [run for section in self.elements for run in section.elements]


TableCell = Annotated[Union[PlainCell, StyledCell], Field(discriminator="type")]


class ColumnSetting(BaseModel):
    is_wrapped: bool = True


class TableBlock(BaseModel):
    """Slack Block Kit ``table`` block. The first row holds the headers."""
    type: Literal["table"] = "table"
    column_settings: List[ColumnSetting]
    rows: List[List[TableCell]]

    def to_slack(self) -> Dict[str, Any]:
        """Serialize to the Block Kit payload, omitting unset fields."""
        return self.model_dump(exclude_none=True)


class TableExtraction(BaseModel):
    """Residual text with the first table removed plus its block, if any."""
    text: str
    table_block: Optional[TableBlock] = None


# ============================================================================
# SEND PATH MODELS
# ============================================================================

class SlackTarget(BaseModel):
    """Parsed recipient."""
    kind: TargetKind
    id: str = Field(..., min_length=1)


class SlackSendIdentity(BaseModel):
    """Custom bot identity; requires the chat:write.customize scope."""
    username: Optional[str] = None
    icon_url: Optional[str] = None
    icon_emoji: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return bool(self.username or self.icon_url or self.icon_emoji)

    def to_payload(self) -> Dict[str, str]:
        """icon_url and icon_emoji are mutually exclusive; icon_url wins."""
        payload: Dict[str, str] = {}
        if self.username:
            payload["username"] = self.username
        if self.icon_url:
            payload["icon_url"] = self.icon_url
        elif self.icon_emoji:
            payload["icon_emoji"] = self.icon_emoji
        return payload


class SlackSendOptions(BaseModel):
    """Optional inputs to a send."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    token: Optional[str] = None
    account_id: Optional[str] = None
    media_url: Optional[str] = None
    media_local_roots: Sequence[str] = ()
    client: Optional[Any] = None
    thread_ts: Optional[str] = None
    identity: Optional[SlackSendIdentity] = None
    blocks: Optional[List[Dict[str, Any]]] = None


class SlackSendResult(BaseModel):
    message_id: str
    channel_id: str


class LoadedMedia(BaseModel):
    buffer: bytes
    content_type: Optional[str] = None
    file_name: str


# ============================================================================
# LINEAR / WORK OBJECT MODELS
# ============================================================================

class LinearIssueState(BaseModel):
    name: str
    color: Optional[str] = None
    type: Optional[str] = None


class LinearUser(BaseModel):
    name: str
    email: Optional[str] = None


class LinearProject(BaseModel):
    name: str


class LinearIssue(BaseModel):
    """Subset of the Linear ``Issue`` GraphQL type used for Work Objects."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    identifier: str
    title: str
    description: Optional[str] = None
    priority: int = 0
    priority_label: Optional[str] = Field(default=None, alias="priorityLabel")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    url: str
    state: Optional[LinearIssueState] = None
    assignee: Optional[LinearUser] = None
    project: Optional[LinearProject] = None


class WorkObjectMetadata(BaseModel):
    """``metadata`` payload for chat.postMessage carrying Work Object entities."""
    entities: List[Dict[str, Any]]
