"""Command line entry point: stream one answer to the terminal."""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Sequence

from research_stream.config.settings import get_settings
from research_stream.events.emitter import EventEmitter
from research_stream.events.models import Event
from research_stream.events.types import EventType
from research_stream.session.conversation import Conversation
from research_stream.session.messages import AssistantMessage
from research_stream.utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="research-stream",
        description="Ask the research agent a question and print the streamed answer.",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Ask one question.")
    ask.add_argument("question", help="Question text.")
    ask.add_argument(
        "--file",
        action="append",
        default=[],
        metavar="NAME=PATH",
        help="Attach a local text file under NAME (repeatable).",
    )
    ask.add_argument(
        "--vault-id",
        action="append",
        default=[],
        help="Vault file UUID to include (repeatable).",
    )
    ask.add_argument("--web-search", action="store_true", help="Allow web search.")
    ask.add_argument("--base-url", help="Override the backend base URL.")
    ask.add_argument("--log-level", help="Override the log level.")
    return ap


def parse_file_arg(value: str) -> tuple[str, Path]:
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise SystemExit(f"Invalid --file value: {value}. Use NAME=PATH.")
    return name, Path(path)


def _print_event(event: Event) -> None:
    if event.event_type is EventType.WORKFLOW_STEP:
        steps = event.data["steps"]
        if steps:
            latest = steps[-1]
            print(f"  .. {latest.name} ({latest.phase.value})", file=sys.stderr)
    elif event.event_type is EventType.STREAM_ERROR:
        print(f"error: {event.data['message']}", file=sys.stderr)


def render_message(message: AssistantMessage, conversation: Conversation) -> str:
    lines: list[str] = []
    for step in message.steps:
        lines.append(f"[{step.status.value}] Step {step.step_number}: {step.title}")
    if message.steps:
        lines.append("")

    body = message.display_text
    if body:
        lines.append(body)
    elif message.error is None:
        lines.append("(no answer)")

    sources = conversation.sources
    if sources:
        lines.append("")
        lines.append("Sources:")
        for source in sources:
            pages = ", ".join(str(p) for p in source.sorted_pages)
            suffix = f" (pages {pages})" if pages else ""
            lines.append(f"  - {source.display_name}{suffix}")

    follow_ups = conversation.follow_ups()
    if follow_ups:
        lines.append("")
        lines.append("Follow-ups:")
        lines.extend(f"  * {q}" for q in follow_ups)
    return "\n".join(lines)


async def run_ask(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"api_base_url": args.base_url})

    emitter = EventEmitter()
    emitter.subscribe("workflow.step", _print_event)
    emitter.subscribe("stream.error", _print_event)

    conversation = Conversation(emitter=emitter, settings=settings)
    for raw in args.file:
        name, path = parse_file_arg(raw)
        mime_kind = mimetypes.guess_type(path.name)[0] or ""
        text = "" if "pdf" in mime_kind else path.read_text(encoding="utf-8", errors="ignore")
        descriptor = conversation.add_file(name, mime_kind, text)
        logger.debug("Attached file", handle=descriptor.handle, chars=len(text))

    try:
        message = await conversation.ask(
            args.question,
            vault_file_ids=args.vault_id,
            enable_web_search=args.web_search,
        )
    finally:
        await conversation.close()

    print(render_message(message, conversation))
    return 1 if message.error else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, settings.log_json)

    if args.command == "ask":
        try:
            return asyncio.run(run_ask(args))
        except KeyboardInterrupt:
            return 130
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
