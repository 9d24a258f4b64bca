"""
Slack channel implementation.

Sends messages through the Slack Web API (``slack_sdk`` async client):
resolves the account token and recipient, renders markdown to mrkdwn
chunks, lifts the first markdown table into a Block Kit table block,
uploads media and attaches Linear Work Object metadata.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from slack_relay.config.constants import (
    BLANK_MESSAGE_TEXT,
    CUSTOMIZE_SCOPE,
    SLACK_TEXT_LIMIT,
    UNKNOWN_MESSAGE_ID,
    ChunkMode,
    MarkdownTableMode,
    TargetKind,
)
from slack_relay.config.settings import (
    ResolvedSlackAccount,
    Settings,
    get_settings,
    resolve_slack_account,
)
from slack_relay.core.blocks import build_slack_blocks_fallback_text, validate_slack_blocks_array
from slack_relay.core.channels.base_channel import BaseChannel
from slack_relay.core.exceptions import (
    ChannelConfigurationError,
    ChannelDeliveryError,
    CoreError,
    ValidationError,
)
from slack_relay.core.formatters.mrkdwn import chunk_markdown_text, markdown_to_slack_mrkdwn_chunks
from slack_relay.core.formatters.table_blocks import extract_slack_table_block
from slack_relay.core.media import load_web_media
from slack_relay.core.targets import parse_slack_target, resolve_slack_bot_token
from slack_relay.core.work_objects import LinearWorkObjectBuilder, get_work_object_builder
from slack_relay.models.types import (
    SlackSendIdentity,
    SlackSendOptions,
    SlackSendResult,
    SlackTarget,
    WorkObjectMetadata,
)


def is_customize_scope_error(error: Exception) -> bool:
    """True when Slack rejected a post for lack of ``chat:write.customize``."""
    response = getattr(error, "response", None)
    if response is None:
        return False
    data = response.data if hasattr(response, "data") else response
    if not isinstance(data, dict):
        return False

    if str(data.get("error") or "").lower() != "missing_scope":
        return False
    if CUSTOMIZE_SCOPE in str(data.get("needed") or "").lower():
        return True

    metadata = data.get("response_metadata") or {}
    scopes = [
        *(metadata.get("scopes") or []),
        *(metadata.get("acceptedScopes") or []),
        *(metadata.get("accepted_scopes") or []),
    ]
    return CUSTOMIZE_SCOPE in [str(scope).lower() for scope in scopes]


def _uploaded_file_id(response: Any) -> str:
    files = response.get("files") or []
    first = files[0] if files else {}
    single = response.get("file") or {}
    return (
        first.get("id")
        or single.get("id")
        or first.get("name")
        or single.get("name")
        or UNKNOWN_MESSAGE_ID
    )


class SlackChannel(BaseChannel):
    """Slack Web API channel."""

    def __init__(
            self,
            settings: Optional[Settings] = None,
            work_objects: Optional[LinearWorkObjectBuilder] = None,
            client_factory: Optional[Callable[[str], Any]] = None
    ):
        super().__init__()
        self.settings = settings or get_settings()
        self._work_objects = work_objects
        self._client_factory = client_factory or self._create_client

    @property
    def channel_name(self) -> str:
        return "slack"

    def _create_client(self, token: str) -> AsyncWebClient:
        return AsyncWebClient(token=token, timeout=self.settings.SLACK_TIMEOUT_SECONDS)

    async def validate_recipient(self, recipient: str) -> bool:
        return parse_slack_target(recipient) is not None

    def _resolve_token(self, explicit: Optional[str], account: ResolvedSlackAccount) -> str:
        token = resolve_slack_bot_token(explicit) or resolve_slack_bot_token(account.bot_token)
        if token:
            return token

        self.logger.debug(
            "Missing Slack bot token",
            account_id=account.account_id,
            explicit=bool(explicit),
            source=account.bot_token_source
        )
        raise ChannelConfigurationError(
            channel=self.channel_name,
            config_issue=(
                f'Slack bot token missing for account "{account.account_id}" '
                f'(set SLACK_ACCOUNTS["{account.account_id}"].bot_token '
                f"or SLACK_BOT_TOKEN for the default account)"
            ),
            account_id=account.account_id
        )

    async def resolve_channel_id(self, client: Any, target: SlackTarget) -> str:
        """Channel ids pass through; users get a DM channel opened."""
        if target.kind == TargetKind.CHANNEL:
            return target.id

        response = await client.conversations_open(users=target.id)
        channel_id = (response.get("channel") or {}).get("id")
        if not channel_id:
            raise ChannelDeliveryError(
                channel=self.channel_name,
                recipient=target.id,
                delivery_error="Failed to open Slack DM channel",
                is_permanent=False
            )
        return channel_id

    async def post_message_best_effort(
            self,
            client: Any,
            channel_id: str,
            text: str,
            thread_ts: Optional[str] = None,
            identity: Optional[SlackSendIdentity] = None,
            blocks: Optional[List[Dict[str, Any]]] = None,
            work_object_metadata: Optional[WorkObjectMetadata] = None
    ) -> Any:
        """
        Post one message, retrying once without the custom identity when the
        app lacks ``chat:write.customize``.
        """
        base_payload: Dict[str, Any] = {"channel": channel_id, "text": text}
        if thread_ts:
            base_payload["thread_ts"] = thread_ts
        if blocks:
            base_payload["blocks"] = blocks
        identity_payload = identity.to_payload() if identity else {}

        try:
            if work_object_metadata is not None:
                # metadata is sent through the generic call so it reaches Slack unmodified
                return await client.api_call(
                    "chat.postMessage",
                    json={
                        **base_payload,
                        **identity_payload,
                        "metadata": work_object_metadata.model_dump(),
                    }
                )
            return await client.chat_postMessage(**base_payload, **identity_payload)

        except SlackApiError as e:
            if identity is None or not identity.is_custom or not is_customize_scope_error(e):
                raise
            self.logger.debug(
                "Missing chat:write.customize, retrying without custom identity",
                channel_id=channel_id
            )
            return await client.chat_postMessage(**base_payload)

    async def upload_file(
            self,
            client: Any,
            channel_id: str,
            media_url: str,
            local_roots=(),
            caption: Optional[str] = None,
            thread_ts: Optional[str] = None,
            max_bytes: Optional[int] = None
    ) -> str:
        """Upload media with ``files_upload_v2``; returns the Slack file id."""
        media = await load_web_media(media_url, max_bytes=max_bytes, local_roots=local_roots)

        payload: Dict[str, Any] = {
            "channel": channel_id,
            "file": media.buffer,
            "filename": media.file_name,
        }
        if caption:
            payload["initial_comment"] = caption
        if thread_ts:
            payload["thread_ts"] = thread_ts

        response = await client.files_upload_v2(**payload)
        return _uploaded_file_id(response)

    async def _build_work_objects(self, text: str) -> Optional[WorkObjectMetadata]:
        builder = self._work_objects or get_work_object_builder(self.settings)
        if builder is None:
            return None
        try:
            return await builder.build(text, self.settings.WORK_OBJECT_LIMIT)
        except Exception as e:
            self.logger.warning(
                "Work Object enrichment failed",
                error=str(e),
                error_type=type(e).__name__
            )
            return None

    def _render_chunks(self, text: str, account: ResolvedSlackAccount, table_mode: MarkdownTableMode) -> List[str]:
        chunk_limit = min(account.text_chunk_limit, SLACK_TEXT_LIMIT)
        markdown_chunks = (
            chunk_markdown_text(text, chunk_limit)
            if account.chunk_mode == ChunkMode.NEWLINE
            else [text]
        )
        chunks = [
            chunk
            for markdown in markdown_chunks
            for chunk in markdown_to_slack_mrkdwn_chunks(markdown, chunk_limit, table_mode)
        ]
        if not chunks and text:
            chunks.append(text)
        return chunks

    async def send_message(
            self,
            to: str,
            message: str,
            options: Optional[SlackSendOptions] = None
    ) -> SlackSendResult:
        """
        Send a message to a Slack user or channel.

        Args:
            to: Recipient (``user:U123``, ``<@U123>``, ``#C123``, ``C123`` ...)
            message: Markdown text
            options: Token, account, media, thread, identity and block overrides

        Returns:
            SlackSendResult with the last posted message ts (or file id)

        Raises:
            ValidationError: Empty send, bad blocks, blocks with media or bad recipient
            ChannelConfigurationError: No bot token for the account
            ChannelDeliveryError: DM channel could not be opened
            MediaLoadError: Media could not be loaded
            SlackApiError: Slack rejected a call
        """
        start_time = datetime.now(timezone.utc)
        try:
            result = await self._send(to, message, options or SlackSendOptions())
        except (CoreError, SlackApiError) as e:
            error_code = (
                e.error_code if isinstance(e, CoreError)
                else str(e.response.get("error") or "SLACK_API_ERROR")
            )
            self.update_metrics(False, self._calculate_processing_time(start_time), error_code)
            self.logger.error(
                "Slack send failed",
                recipient=to,
                error_code=error_code,
                error=e.to_dict() if isinstance(e, CoreError) else str(e)
            )
            raise

        processing_time = self._calculate_processing_time(start_time)
        self.update_metrics(True, processing_time)
        self.logger.info(
            "Slack message sent",
            channel_id=result.channel_id,
            message_id=result.message_id,
            processing_time_ms=processing_time
        )
        return result

    async def _send(self, to: str, message: str, options: SlackSendOptions) -> SlackSendResult:
        trimmed_message = (message or "").strip()
        blocks = (
            validate_slack_blocks_array(options.blocks)
            if options.blocks is not None
            else None
        )
        if not trimmed_message and not options.media_url and not blocks:
            raise ValidationError(
                field="message",
                value=message,
                validation_rule="Slack send requires text, blocks, or media"
            )
        if blocks and options.media_url:
            raise ValidationError(
                field="blocks",
                value=options.media_url,
                validation_rule="Slack send does not support blocks with media_url"
            )

        account = resolve_slack_account(self.settings, options.account_id)
        token = self._resolve_token(options.token, account)
        client = options.client or self._client_factory(token)

        target = parse_slack_target(to)
        if target is None:
            raise ValidationError(
                field="to",
                value=to,
                validation_rule="Recipient is required for Slack sends",
                expected_format="user:U123, <@U123>, #C123 or a channel id"
            )
        channel_id = await self.resolve_channel_id(client, target)

        if blocks:
            response = await self.post_message_best_effort(
                client,
                channel_id,
                trimmed_message or build_slack_blocks_fallback_text(blocks),
                thread_ts=options.thread_ts,
                identity=options.identity,
                blocks=blocks
            )
            return SlackSendResult(
                message_id=response.get("ts") or UNKNOWN_MESSAGE_ID,
                channel_id=channel_id
            )

        # slack-blocks: first table becomes a table block, any others render as code
        table_mode = account.markdown_table_mode
        table_block: Optional[Dict[str, Any]] = None
        message_for_chunking = trimmed_message
        if table_mode == MarkdownTableMode.SLACK_BLOCKS:
            extraction = extract_slack_table_block(trimmed_message)
            if extraction.table_block is not None:
                table_block = extraction.table_block.to_slack()
                message_for_chunking = extraction.text

        effective_table_mode = (
            MarkdownTableMode.CODE if table_mode == MarkdownTableMode.SLACK_BLOCKS else table_mode
        )
        chunks = self._render_chunks(message_for_chunking, account, effective_table_mode)

        work_objects = (
            await self._build_work_objects(trimmed_message)
            if table_mode == MarkdownTableMode.SLACK_BLOCKS
            else None
        )

        self.logger.debug(
            "Prepared Slack message",
            channel_id=channel_id,
            chunks=len(chunks),
            has_table=table_block is not None,
            work_objects=len(work_objects.entities) if work_objects else 0,
            has_media=bool(options.media_url)
        )

        last_message_id = ""
        if options.media_url:
            first_chunk = chunks[0] if chunks else None
            last_message_id = await self.upload_file(
                client,
                channel_id,
                options.media_url,
                local_roots=options.media_local_roots,
                caption=first_chunk,
                thread_ts=options.thread_ts,
                max_bytes=account.media_max_bytes
            )
            for chunk in chunks[1:]:
                response = await self.post_message_best_effort(
                    client,
                    channel_id,
                    chunk,
                    thread_ts=options.thread_ts,
                    identity=options.identity
                )
                last_message_id = response.get("ts") or last_message_id

            if table_block is not None or work_objects is not None:
                response = await self.post_message_best_effort(
                    client,
                    channel_id,
                    BLANK_MESSAGE_TEXT,
                    thread_ts=options.thread_ts,
                    identity=options.identity,
                    blocks=[table_block] if table_block is not None else None,
                    work_object_metadata=work_objects
                )
                last_message_id = response.get("ts") or last_message_id
        else:
            # table block and Work Objects ride on the last chunk
            chunk_list = chunks or [""]
            for index, chunk in enumerate(chunk_list):
                is_last = index == len(chunk_list) - 1
                response = await self.post_message_best_effort(
                    client,
                    channel_id,
                    chunk,
                    thread_ts=options.thread_ts,
                    identity=options.identity,
                    blocks=[table_block] if is_last and table_block is not None else None,
                    work_object_metadata=work_objects if is_last else None
                )
                last_message_id = response.get("ts") or last_message_id

        return SlackSendResult(
            message_id=last_message_id or UNKNOWN_MESSAGE_ID,
            channel_id=channel_id
        )
