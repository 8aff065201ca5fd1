"""Tests for Slack message formatting and posting."""
from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from conftest import make_pr
from slack_sdk.errors import SlackApiError

from scripts.recap import (
    SLACK_BLOCK_TEXT_LIMIT,
    SlackPostError,
    SlackTargetNotFoundError,
    build_slack_blocks,
    build_slack_header_text,
    format_slack_block,
    post_to_slack,
    resolve_slack_channel,
)


def _slack_client(members: list[dict] | None = None) -> MagicMock:
    client = MagicMock()
    client.users_list.return_value = [{"members": members or []}]
    client.chat_postMessage.return_value = {"ok": True, "ts": "1760616000.000100"}
    return client


def _slack_error(code: str) -> SlackApiError:
    return SlackApiError("The request to the Slack API failed.", {"ok": False, "error": code})


class TestFormatSlackBlock:
    def test_link_with_clean_title(self):
        block = format_slack_block(make_pr(number=4, title="[WEB-4] Fix login"))
        assert block == {
            "type": "section",
            "text": {"type": "mrkdwn", "text": "• <https://github.com/acme/app/pull/4|Fix login>"},
        }

    def test_summary_on_following_line(self):
        block = format_slack_block(make_pr(number=4, title="Fix login", summary="Alice fixed login."))
        assert block["text"]["text"] == (
            "• <https://github.com/acme/app/pull/4|Fix login>\nAlice fixed login."
        )

    def test_escapes_control_characters(self):
        block = format_slack_block(make_pr(title="Use <Foo> & bar"))
        assert "Use &lt;Foo&gt; &amp; bar>" in block["text"]["text"]

    def test_long_text_trimmed(self):
        block = format_slack_block(make_pr(title="Fix", summary="x" * 5000))
        text = block["text"]["text"]
        assert len(text) == SLACK_BLOCK_TEXT_LIMIT
        assert text.endswith("...")


class TestBuildSlackBlocks:
    def test_header_then_one_block_per_pr(self):
        blocks = build_slack_blocks([make_pr(number=1), make_pr(number=2)])
        assert blocks[0] == {
            "type": "header",
            "text": {"type": "plain_text", "text": "PR Details", "emoji": True},
        }
        assert [block["type"] for block in blocks[1:]] == ["section", "section"]

    def test_empty_window_message(self):
        blocks = build_slack_blocks([])
        assert len(blocks) == 2
        assert blocks[1]["text"]["text"] == "No merged PRs in this window."


class TestHeaderText:
    def test_daily(self, now):
        assert build_slack_header_text("daily", now) == (
            "Daily PR Summary: October 15, 2026 to October 16, 2026"
        )

    def test_weekly(self, now):
        assert build_slack_header_text("weekly", now) == (
            "Weekly PR Summary: October 09, 2026 to October 16, 2026"
        )

    def test_dates_follow_local_timezone(self, local_timezone):
        local_timezone("America/Los_Angeles")
        late_utc = datetime(2026, 10, 17, 1, 0, tzinfo=UTC)
        assert build_slack_header_text("daily", late_utc) == (
            "Daily PR Summary: October 15, 2026 to October 16, 2026"
        )


class TestResolveSlackChannel:
    def test_channel_used_verbatim(self):
        client = _slack_client()
        assert resolve_slack_channel(client, "#general") == "#general"
        client.users_list.assert_not_called()

    @pytest.mark.parametrize("target", ["@alice", "alice"])
    def test_username_resolves_to_id(self, target):
        client = _slack_client([{"id": "U2", "name": "alicia"}, {"id": "U1", "name": "alice"}])
        assert resolve_slack_channel(client, target) == "U1"

    def test_searches_every_page(self):
        client = MagicMock()
        client.users_list.return_value = [
            {"members": [{"id": "U1", "name": "bob"}]},
            {"members": [{"id": "U9", "name": "alice"}]},
        ]
        assert resolve_slack_channel(client, "@alice") == "U9"

    def test_unknown_user_names_original_target(self):
        client = _slack_client([{"id": "U1", "name": "bob"}])
        with pytest.raises(SlackTargetNotFoundError, match="'@alice'"):
            resolve_slack_channel(client, "@alice")


class TestPostToSlack:
    def test_header_then_threaded_details(self, now):
        client = _slack_client([{"id": "U1", "name": "alice"}])
        prs = [make_pr(number=1, summary="Alice fixed login."), make_pr(number=2)]

        post_to_slack(client, "@alice", prs, "daily", now)

        header_call, reply_call = client.chat_postMessage.call_args_list
        assert header_call.kwargs == {
            "channel": "U1",
            "text": "Daily PR Summary: October 15, 2026 to October 16, 2026",
        }
        assert reply_call.kwargs["channel"] == "U1"
        assert reply_call.kwargs["thread_ts"] == "1760616000.000100"
        assert reply_call.kwargs["text"] == "PR Details"
        assert reply_call.kwargs["unfurl_links"] is False
        assert reply_call.kwargs["blocks"] == build_slack_blocks(prs)

    def test_large_recap_split_across_replies(self, now):
        client = _slack_client()
        prs = [make_pr(number=number) for number in range(1, 61)]

        post_to_slack(client, "#dev", prs, "weekly", now)

        calls = client.chat_postMessage.call_args_list
        assert len(calls) == 3
        assert len(calls[1].kwargs["blocks"]) == 50
        assert len(calls[2].kwargs["blocks"]) == 11
        assert all(call.kwargs["thread_ts"] == "1760616000.000100" for call in calls[1:])

    @pytest.mark.parametrize(
        ("code", "message"),
        [
            ("not_in_channel", "Please invite the bot to #dev and try again."),
            ("channel_not_found", "Channel #dev not found. Please check the channel name"),
            ("user_not_found", "User #dev not found. Please check the username"),
            ("invalid_auth", "Error posting to Slack: invalid_auth"),
        ],
    )
    def test_slack_errors_mapped_to_guidance(self, now, code, message):
        client = _slack_client()
        client.chat_postMessage.side_effect = _slack_error(code)
        with pytest.raises(SlackPostError) as excinfo:
            post_to_slack(client, "#dev", [make_pr()], "daily", now)
        assert message in str(excinfo.value)
        assert excinfo.value.code == code

    def test_user_lookup_error_mapped(self, now):
        client = MagicMock()
        client.users_list.side_effect = _slack_error("missing_scope")
        with pytest.raises(SlackPostError, match="Error posting to Slack: missing_scope"):
            post_to_slack(client, "@alice", [], "daily", now)
