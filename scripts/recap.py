#!/usr/bin/env python3
"""Summarize recently merged PRs as Markdown or RTF and optionally post them to Slack."""
from __future__ import annotations

import argparse
import io
import re
import sys
import time
from datetime import UTC, datetime, timedelta
from http import HTTPStatus
from pathlib import Path
from typing import cast

import requests
from dotenv import load_dotenv
from loguru import logger
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict
from PyRTF.document.base import RawCode
from PyRTF.document.character import B, TEXT
from PyRTF.document.paragraph import Paragraph
from PyRTF.document.section import Section
from PyRTF.Elements import Document, MakeDefaultStyleSheet
from PyRTF.PropertySets import Colour
from PyRTF.Renderer import Renderer
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

load_dotenv()

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_PAGE_SIZE = 100
HTTP_TIMEOUT_SECONDS = 30
LINEAR_BOT_LOGIN = "linear[bot]"
BOT_USER_TYPE = "Bot"
RANGE_DAYS: dict[str, int] = {"daily": 1, "weekly": 7}
OUTPUT_EXTENSIONS: dict[str, str] = {"markdown": "md", "rtf": "rtf"}
DEFAULT_OUTPUT_DIR = "recaps"
USE_DEFAULT_OUTPUT = ""
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
SUMMARY_MAX_TOKENS = 200
RTF_LINK_RGB = (3, 102, 214)
RTF_ASCII_LIMIT = 0x80
RTF_SIGNED_LIMIT = 0x7FFF
RTF_UNICODE_OFFSET = 0x10000
RTF_SPECIAL_CHARACTERS = "\\{}"
SLACK_DETAILS_HEADER = "PR Details"
SLACK_BULLET = "•"
SLACK_BLOCK_TEXT_LIMIT = 3000
SLACK_MAX_BLOCKS = 50
SLACK_USERS_PAGE_SIZE = 200
SLACK_EMPTY_MESSAGE = "No merged PRs in this window."
TITLE_TAG_PATTERN = re.compile(r"^\[.*?\]\s*")

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at summarizing technical pull requests. "
    "Create a single bullet point that starts with the author's name and "
    "describes what they did. Be concise but specific. "
    "Format as '{author} fixed/added/updated/etc...'"
)
SUMMARY_USER_PROMPT = (
    "Summarize this pull request information into a single bullet point that "
    "starts with '{author}' and describes what they did:\n\n{text}"
)
SLACK_ERROR_MESSAGES: dict[str, str] = {
    "not_in_channel": (
        "Bot needs to be invited to the channel first. "
        "Please invite the bot to {target} and try again."
    ),
    "channel_not_found": (
        "Channel {target} not found. Please check the channel name and try again."
    ),
    "user_not_found": (
        "User {target} not found. Please check the username and try again."
    ),
}
JSONDict = dict[str, object]
JSONList = list[object]
HTTP_ERROR_THRESHOLD = 400
REPOSITORY_MISSING_STATUSES = (HTTPStatus.NOT_FOUND, HTTPStatus.UNPROCESSABLE_ENTITY)


def ensure_dict(value: object, _context: str) -> JSONDict:
    """Return a dictionary value or raise."""
    if isinstance(value, dict):
        return cast("JSONDict", value)
    raise TypeError


def ensure_list(value: object, _context: str) -> JSONList:
    """Return a list value or raise."""
    if isinstance(value, list):
        return cast("JSONList", value)
    raise TypeError


def ensure_str(value: object, _context: str, default: str = "") -> str:
    """Return a string value or a default."""
    if isinstance(value, str):
        return value
    if value is None:
        return default
    raise TypeError


def ensure_int(value: object, _context: str) -> int:
    """Return an integer value or raise."""
    if isinstance(value, int):
        return value
    raise TypeError


class RecapError(RuntimeError):
    """Base class for errors that end a recap run."""


class ConfigurationError(RecapError):
    """Raised when required configuration is missing."""

    def __init__(self, variable: str) -> None:
        """Create a configuration error for a missing variable."""
        super().__init__(f"{variable} environment variable is required")


class GitHubAuthError(RecapError):
    """Raised when GitHub rejects the token."""

    def __init__(self) -> None:
        """Create an authentication error."""
        super().__init__("Invalid GitHub token")


class GitHubNotFoundError(RecapError):
    """Raised when the repository is missing or not visible to the token."""

    def __init__(self) -> None:
        """Create a not-found error."""
        super().__init__("Repository not found or no access")


class GitHubRequestError(RecapError):
    """Raised when a GitHub REST request fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a GitHub request error."""
        super().__init__(f"GitHub request failed ({status_code}): {text}")
        self.status_code = status_code


class SlackTargetNotFoundError(RecapError):
    """Raised when a Slack username cannot be resolved."""

    def __init__(self, target: str) -> None:
        """Create a target resolution error."""
        super().__init__(f"Could not find Slack user '{target}'")


class SlackPostError(RecapError):
    """Raised when Slack rejects a post, with guidance for known error codes."""

    def __init__(self, target: str, code: str) -> None:
        """Create a Slack post error."""
        template = SLACK_ERROR_MESSAGES.get(code)
        if template is None:
            message = f"Error posting to Slack: {code}"
        else:
            message = template.format(target=target)
        super().__init__(message)
        self.code = code


class OpenAIEmptyResponseError(RuntimeError):
    """Raised when OpenAI returns no content."""

    def __init__(self) -> None:
        """Create an empty response error."""
        super().__init__("OpenAI response missing content.")


SUMMARY_ERRORS = (
    OpenAIError,
    OpenAIEmptyResponseError,
    LookupError,
    AttributeError,
    TypeError,
)


class Settings(BaseSettings):
    """Environment-backed settings for the recap."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    github_repo: str | None = Field(default=None, alias="GITHUB_REPO")
    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    gh_token: str | None = Field(default=None, alias="GH_TOKEN")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default=DEFAULT_OPENAI_MODEL, alias="OPENAI_MODEL")
    slack_api_token: str | None = Field(default=None, alias="SLACK_API_TOKEN")


def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings.model_validate({})


def require_github_settings(settings: Settings) -> tuple[str, str]:
    """Return the repository and GitHub token, or raise if either is missing."""
    if not settings.github_repo:
        raise ConfigurationError("GITHUB_REPO")
    token = settings.github_token or settings.gh_token
    if not token:
        raise ConfigurationError("GITHUB_TOKEN")
    return settings.github_repo, token


def require_slack_token(settings: Settings) -> str:
    """Return the Slack token, or raise if it is missing."""
    if not settings.slack_api_token:
        raise ConfigurationError("SLACK_API_TOKEN")
    return settings.slack_api_token


def log_elapsed(message: str, start: float, **fields: object) -> None:
    """Log elapsed time with additional fields."""
    elapsed = f"{time.perf_counter() - start:.2f}s"
    logger.info(
        "{message} (elapsed {elapsed})",
        message=message,
        elapsed=elapsed,
        **fields,
    )


class SummaryResult(BaseModel):
    """Outcome of a summary request: generated text or the reason it failed."""

    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return True when a summary was generated."""
        return self.text is not None


def build_summary_input(description: str, linear_details: str | None) -> str:
    """Combine the PR description and Linear details into summarizer input."""
    parts: list[str] = []
    if description:
        parts.append(f"PR Description:\n{description}")
    if linear_details:
        parts.append(f"Linear Details:\n{linear_details}")
    return "\n\n".join(parts)


class Summarizer:
    """Generates one-sentence PR summaries with OpenAI."""

    def __init__(self, client: OpenAI, model: str = DEFAULT_OPENAI_MODEL) -> None:
        """Create a summarizer around an OpenAI client."""
        self.client = client
        self.model = model

    def summarize(self, text: str, author: str) -> SummaryResult:
        """Summarize text as a single sentence attributed to the author.

        Failures are logged and returned as an error result; nothing is raised.
        """
        if not text:
            return SummaryResult()
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_completion_tokens=SUMMARY_MAX_TOKENS,
                messages=[
                    {
                        "role": "system",
                        "content": SUMMARY_SYSTEM_PROMPT.format(author=author),
                    },
                    {
                        "role": "user",
                        "content": SUMMARY_USER_PROMPT.format(author=author, text=text),
                    },
                ],
            )
            content = response.choices[0].message.content
            if not content or not content.strip():
                raise OpenAIEmptyResponseError
        except SUMMARY_ERRORS as exc:
            logger.warning("Failed to generate summary: {error}", error=str(exc))
            return SummaryResult(error=str(exc))
        return SummaryResult(text=content.strip())


class PullRequest(BaseModel):
    """Merged PR data used for recap rendering."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    author: str
    author_name: str
    url: str = Field(min_length=1)
    merged_at: datetime | None = None
    description: str = ""
    linear_details: str | None = None

    _summary: str | None = PrivateAttr(default=None)
    _summary_generated: bool = PrivateAttr(default=False)

    @property
    def summary(self) -> str | None:
        """Return the generated summary, if any."""
        return self._summary

    def generate_summary(self, summarizer: Summarizer) -> str | None:
        """Generate the summary once and return it on every later call."""
        if self._summary_generated:
            return self._summary
        self._summary_generated = True
        result = summarizer.summarize(
            build_summary_input(self.description, self.linear_details),
            self.author_name or self.author,
        )
        self._summary = result.text if result.ok else None
        return self._summary


def clean_title(title: str) -> str:
    """Strip a leading [TAG] prefix from a PR title."""
    return TITLE_TAG_PATTERN.sub("", title, count=1)


def format_markdown(pr: PullRequest) -> str:
    """Render one PR as a Markdown link, followed by its summary."""
    lines = [f"[{clean_title(pr.title)}]({pr.url})"]
    if pr.summary:
        lines.append(pr.summary)
    return "\n".join(lines)


def render_markdown(prs: list[PullRequest]) -> str:
    """Render PRs as Markdown separated by blank lines."""
    return "\n\n".join(format_markdown(pr) for pr in prs)


def escape_slack_text(text: str) -> str:
    """Escape the characters Slack treats as control sequences."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def trim_block_text(text: str) -> str:
    """Trim text to fit a single Slack section block."""
    if len(text) <= SLACK_BLOCK_TEXT_LIMIT:
        return text
    return text[: SLACK_BLOCK_TEXT_LIMIT - 3] + "..."


def format_slack_block(pr: PullRequest) -> JSONDict:
    """Render one PR as a Slack mrkdwn section."""
    text = f"{SLACK_BULLET} <{pr.url}|{escape_slack_text(clean_title(pr.title))}>"
    if pr.summary:
        text += f"\n{escape_slack_text(pr.summary)}"
    return {"type": "section", "text": {"type": "mrkdwn", "text": trim_block_text(text)}}


def build_slack_blocks(prs: list[PullRequest]) -> list[JSONDict]:
    """Build the thread reply blocks: a header followed by one section per PR."""
    blocks: list[JSONDict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": SLACK_DETAILS_HEADER, "emoji": True},
        },
    ]
    if not prs:
        blocks.append(
            {"type": "section", "text": {"type": "mrkdwn", "text": SLACK_EMPTY_MESSAGE}},
        )
    blocks.extend(format_slack_block(pr) for pr in prs)
    return blocks


def chunk_blocks(blocks: list[JSONDict]) -> list[list[JSONDict]]:
    """Split blocks into message-sized groups."""
    return [
        blocks[index : index + SLACK_MAX_BLOCKS]
        for index in range(0, len(blocks), SLACK_MAX_BLOCKS)
    ]


def escape_rtf(text: str) -> str:
    """Escape text for an RTF group; non-ASCII becomes UTF-16 \\u escapes."""
    out: list[str] = []
    for char in text:
        if char in RTF_SPECIAL_CHARACTERS:
            out.append("\\" + char)
        elif char == "\n":
            out.append("\\line ")
        elif char == "\t":
            out.append("\\tab ")
        elif ord(char) < RTF_ASCII_LIMIT:
            out.append(char)
        else:
            encoded = char.encode("utf-16-le")
            for index in range(0, len(encoded), 2):
                code = int.from_bytes(encoded[index : index + 2], "little")
                if code > RTF_SIGNED_LIMIT:
                    code -= RTF_UNICODE_OFFSET
                out.append(f"\\u{code}?")
    return "".join(out)


def rtf_link(url: str, colour: Colour, colour_index: int) -> list[object]:
    """Return the elements of an underlined HYPERLINK field for a URL."""
    target = escape_rtf(url)
    return [
        RawCode(
            '{\\field{\\*\\fldinst{HYPERLINK "'
            + target
            + '"}}{\\fldrslt{\\ulc'
            + str(colour_index)
            + " ",
        ),
        TEXT(target, colour=colour, underline=True),
        RawCode("}}}"),
    ]


def add_pr_to_rtf(
    section: Section,
    pr: PullRequest,
    link_colour: Colour,
    link_colour_index: int,
) -> None:
    """Append a PR's title, link and summary paragraphs to an RTF section."""
    section.append(
        Paragraph(
            B(escape_rtf(clean_title(pr.title))),
            " (",
            *rtf_link(pr.url, link_colour, link_colour_index),
            ")",
        ),
    )
    if pr.summary:
        section.append(Paragraph(escape_rtf(pr.summary)))
    section.append(Paragraph())


def render_rtf(prs: list[PullRequest]) -> str:
    """Render PRs as an RTF document in the default Arial style sheet."""
    style_sheet = MakeDefaultStyleSheet()
    link_colour = Colour("Link Blue", *RTF_LINK_RGB)
    style_sheet.Colours.append(link_colour)
    # The renderer numbers the colour table from 1.
    link_colour_index = len(style_sheet.Colours)
    doc = Document(style_sheet)
    section = doc.NewSection()
    for pr in prs:
        add_pr_to_rtf(section, pr, link_colour, link_colour_index)
    buffer = io.StringIO()
    Renderer().Write(doc, buffer)
    return buffer.getvalue()


class GitHubClient:
    """Minimal GitHub REST client for the calls the recap needs."""

    def __init__(self, token: str, base_url: str = GITHUB_API_URL) -> None:
        """Create a client authenticated with a token."""
        self.token = token
        self.base_url = base_url.rstrip("/")

    def headers(self) -> dict[str, str]:
        """Return GitHub API headers with authentication."""
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def get(self, path: str, params: JSONDict | None = None) -> requests.Response:
        """GET a path or absolute URL and raise on error statuses."""
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        response = requests.get(
            url,
            headers=self.headers(),
            params=params,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            raise GitHubAuthError
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            raise GitHubRequestError(response.status_code, response.text)
        return response

    def get_paginated(
        self,
        path: str,
        params: JSONDict | None = None,
        items_key: str | None = None,
    ) -> JSONList:
        """GET every page of a list endpoint by following Link headers."""
        items: JSONList = []
        url: str | None = path
        page_params: JSONDict | None = {**(params or {}), "per_page": GITHUB_PAGE_SIZE}
        while url:
            response = self.get(url, page_params)
            payload = response.json()
            if items_key is not None:
                payload = ensure_dict(payload, "page").get(items_key) or []
            items.extend(ensure_list(payload, "page items"))
            next_link = response.links.get("next")
            url = next_link.get("url") if next_link else None
            # The next link already carries the query string.
            page_params = None
        return items

    def search_issues(self, query: str) -> JSONList:
        """Search issues and PRs."""
        try:
            return self.get_paginated("/search/issues", {"q": query}, items_key="items")
        except GitHubRequestError as exc:
            # Search answers 404 or 422 when the repository does not exist.
            if exc.status_code in REPOSITORY_MISSING_STATUSES:
                raise GitHubNotFoundError from exc
            raise

    def pull_request(self, repo: str, number: int) -> JSONDict:
        """Fetch a single pull request."""
        return ensure_dict(self.get(f"/repos/{repo}/pulls/{number}").json(), "pull")

    def user(self, login: str) -> JSONDict:
        """Fetch a user profile."""
        return ensure_dict(self.get(f"/users/{login}").json(), "user")

    def issue_comments(self, repo: str, number: int) -> JSONList:
        """Fetch all comments on an issue or PR."""
        return self.get_paginated(f"/repos/{repo}/issues/{number}/comments")


def iso_window(days: int, now: datetime) -> str:
    """Return the UTC window start `days` before now as an ISO-8601 instant."""
    start = now - timedelta(days=days)
    return start.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_search_query(repo: str, since_iso: str) -> str:
    """Build the GitHub search query for PRs merged since a timestamp."""
    return f"repo:{repo} is:pr is:merged merged:>={since_iso}"


def fetch_linear_details(client: GitHubClient, repo: str, number: int) -> str | None:
    """Return the body of the first Linear bot comment on a PR."""
    for comment in client.issue_comments(repo, number):
        comment_dict = ensure_dict(comment, "comment")
        user = ensure_dict(comment_dict.get("user") or {}, "comment.user")
        if user.get("login") == LINEAR_BOT_LOGIN and user.get("type") == BOT_USER_TYPE:
            return ensure_str(comment_dict.get("body"), "comment.body")
    return None


def resolve_author_name(client: GitHubClient, user: JSONDict) -> str:
    """Return the author's first name, or the login for bots and unnamed users."""
    login = ensure_str(user.get("login"), "user.login")
    if user.get("type") == BOT_USER_TYPE:
        return login
    profile = client.user(login)
    name = ensure_str(profile.get("name"), "user.name") or login
    first, *_ = name.split() or [login]
    return first


def build_pull_request(client: GitHubClient, repo: str, item: JSONDict) -> PullRequest:
    """Enrich a search hit with its body, Linear details and author name."""
    number = ensure_int(item.get("number"), "number")
    user = ensure_dict(item.get("user") or {}, "user")
    full_pr = client.pull_request(repo, number)
    linear_details = fetch_linear_details(client, repo, number)
    author_name = resolve_author_name(client, user)
    merged_at = full_pr.get("merged_at") or item.get("closed_at")
    return PullRequest(
        number=number,
        title=ensure_str(item.get("title"), "title"),
        author=ensure_str(user.get("login"), "user.login"),
        author_name=author_name,
        url=ensure_str(item.get("html_url"), "html_url"),
        merged_at=cast("datetime | None", merged_at),
        description=ensure_str(full_pr.get("body"), "body"),
        linear_details=linear_details,
    )


def sort_pull_requests(prs: list[PullRequest]) -> list[PullRequest]:
    """Sort PRs by merge time, unmerged last, ties by PR number."""
    earliest = datetime.min.replace(tzinfo=UTC)
    return sorted(
        prs,
        key=lambda pr: (pr.merged_at is None, pr.merged_at or earliest, pr.number),
    )


def fetch_recent_prs(
    client: GitHubClient,
    repo: str,
    range_name: str,
    now: datetime | None = None,
) -> list[PullRequest]:
    """Fetch PRs merged into a repository during the range window."""
    now = now or datetime.now(UTC)
    since_iso = iso_window(RANGE_DAYS[range_name], now)
    query = build_search_query(repo, since_iso)
    logger.info("Fetching merged PRs", repo=repo, since=since_iso)
    logger.info("GitHub search query: {query}", query=query)
    start = time.perf_counter()
    items = client.search_issues(query)
    prs = [
        build_pull_request(client, repo, ensure_dict(item, "search item"))
        for item in items
    ]
    log_elapsed("Fetched PRs", start, count=len(prs))
    return sort_pull_requests(prs)


def summarize_prs(summarizer: Summarizer, prs: list[PullRequest]) -> None:
    """Generate summaries for every PR, one call at a time."""
    start = time.perf_counter()
    for pr in prs:
        pr.generate_summary(summarizer)
    summarized = sum(1 for pr in prs if pr.summary)
    log_elapsed("Summarized PRs", start, count=len(prs), summarized=summarized)


def resolve_slack_channel(client: WebClient, target: str) -> str:
    """Resolve a #channel or @user target to a postable channel."""
    if target.startswith("#"):
        return target
    username = target.removeprefix("@")
    for page in client.users_list(limit=SLACK_USERS_PAGE_SIZE):
        for member in page.get("members") or []:
            if member.get("name") == username:
                return str(member["id"])
    raise SlackTargetNotFoundError(target)


def window_dates(range_name: str, now: datetime) -> tuple[str, str]:
    """Return long-form local start and end dates for the range window."""
    local_now = now.astimezone()
    start = local_now - timedelta(days=RANGE_DAYS[range_name])
    return start.strftime("%B %d, %Y"), local_now.strftime("%B %d, %Y")


def build_slack_header_text(range_name: str, now: datetime) -> str:
    """Build the thread parent message text."""
    start_date, end_date = window_dates(range_name, now)
    return f"{range_name.capitalize()} PR Summary: {start_date} to {end_date}"


def post_to_slack(
    client: WebClient,
    target: str,
    prs: list[PullRequest],
    range_name: str,
    now: datetime | None = None,
) -> None:
    """Post a header message and the PR details as a thread reply."""
    now = now or datetime.now(UTC)
    try:
        channel = resolve_slack_channel(client, target)
        header = client.chat_postMessage(
            channel=channel,
            text=build_slack_header_text(range_name, now),
        )
        thread_ts = header["ts"]
        for blocks in chunk_blocks(build_slack_blocks(prs)):
            client.chat_postMessage(
                channel=channel,
                thread_ts=thread_ts,
                blocks=blocks,
                text=SLACK_DETAILS_HEADER,
                unfurl_links=False,
            )
    except SlackApiError as exc:
        code = str(exc.response.get("error") or exc)
        raise SlackPostError(target, code) from exc
    logger.info("Summary posted to Slack {target}", target=target)


def resolve_output_path(output: str | None, output_format: str, now: datetime) -> Path | None:
    """Resolve the --output value, defaulting to recaps/<local date>.<ext>."""
    if output is None:
        return None
    if output == USE_DEFAULT_OUTPUT:
        date = now.astimezone().strftime("%Y-%m-%d")
        return Path(DEFAULT_OUTPUT_DIR) / f"{date}.{OUTPUT_EXTENSIONS[output_format]}"
    return Path(output)


def write_output(path: Path, output_format: str, prs: list[PullRequest]) -> None:
    """Write rendered PRs to a file, creating its directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if output_format == "rtf":
        content = render_rtf(prs)
    else:
        content = render_markdown(prs)
    path.write_text(content, encoding="utf-8")
    logger.info("Output written to {path}", path=str(path))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="recap", description="Merged PR recap")
    parser.add_argument(
        "-f",
        "--format",
        choices=sorted(OUTPUT_EXTENSIONS),
        default="markdown",
        help="Output format (markdown or rtf)",
    )
    parser.add_argument(
        "-o",
        "--output",
        nargs="?",
        const=USE_DEFAULT_OUTPUT,
        default=None,
        metavar="FILE",
        help="Output file (default: ./recaps/YYYY-MM-DD.{md,rtf})",
    )
    parser.add_argument(
        "--slack-user",
        metavar="TARGET",
        help="Send PR summary to a Slack user (e.g. @username) or channel (e.g. #channel)",
    )
    parser.add_argument(
        "-r",
        "--range",
        choices=list(RANGE_DAYS),
        default="daily",
        help="Time range for PR summary (daily or weekly)",
    )
    return parser.parse_args(argv)


def run_recap(
    args: argparse.Namespace,
    repo: str,
    github: GitHubClient,
    summarizer: Summarizer | None = None,
    slack_client: WebClient | None = None,
    now: datetime | None = None,
) -> list[PullRequest]:
    """Execute the recap workflow."""
    now = now or datetime.now(UTC)
    prs = fetch_recent_prs(github, repo, args.range, now)
    if not prs:
        logger.info("No PRs found in window")
    if summarizer is not None:
        summarize_prs(summarizer, prs)

    if args.format != "rtf":
        for pr in prs:
            print(format_markdown(pr))
            print()

    output_path = resolve_output_path(args.output, args.format, now)
    if output_path is not None:
        write_output(output_path, args.format, prs)
    elif args.format == "rtf":
        sys.stdout.write(render_rtf(prs))

    if args.slack_user:
        if slack_client is None:
            raise ConfigurationError("SLACK_API_TOKEN")
        post_to_slack(slack_client, args.slack_user, prs, args.range, now)
    return prs


def main(argv: list[str] | None = None) -> int:
    """Run the recap CLI."""
    args = parse_args(argv)
    try:
        settings = get_settings()
        repo, token = require_github_settings(settings)
        slack_client = None
        if args.slack_user:
            slack_client = WebClient(token=require_slack_token(settings))
        summarizer = None
        if settings.openai_api_key:
            summarizer = Summarizer(
                OpenAI(api_key=settings.openai_api_key),
                settings.openai_model,
            )
        run_recap(args, repo, GitHubClient(token), summarizer, slack_client)
    except RecapError as exc:
        logger.error("Error: {error}", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
