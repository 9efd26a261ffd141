#!/usr/bin/env python3
"""
Tiny OpenAI helper shared by the route handlers.

Import the functions you need:

    from openai_chat import complete_json, complete_text
    content = await complete_json(system, user, model="gpt-4o-mini", api_key=key)

You can also run it directly:

    python openai_chat.py "Describe a neon skyline."
    python openai_chat.py --mode json --system "Reply in JSON." "List three shots."
"""

from __future__ import annotations

import argparse
import asyncio
import os
import re
import sys

from dotenv import load_dotenv
from openai import AsyncOpenAI

load_dotenv()

DEFAULT_CHAT_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

# One client per API key.
_CLIENTS: dict[str, AsyncOpenAI] = {}


class OpenAIConfigurationError(RuntimeError):
    """Raised when no OpenAI API key is configured."""


def get_client(api_key: str | None) -> AsyncOpenAI:
    if not api_key:
        raise OpenAIConfigurationError(
            "OPENAI_API_KEY environment variable not set. "
            "Export it or add it to your .env file."
        )
    client = _CLIENTS.get(api_key)
    if client is None:
        client = AsyncOpenAI(api_key=api_key)
        _CLIENTS[api_key] = client
    return client


def _messages(system: str | None, prompt: str) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


async def complete_json(
    system: str | None,
    prompt: str,
    *,
    model: str | None = None,
    api_key: str | None = None,
) -> str:
    """Chat completion constrained to a JSON object; returns the raw content."""
    client = get_client(api_key)
    result = await client.chat.completions.create(
        model=model or DEFAULT_CHAT_MODEL,
        response_format={"type": "json_object"},
        messages=_messages(system, prompt),
    )
    if not result.choices:
        return ""
    return result.choices[0].message.content or ""


async def complete_text(
    system: str | None,
    prompt: str,
    *,
    model: str | None = None,
    api_key: str | None = None,
) -> str:
    """Plain chat completion; returns stripped text."""
    client = get_client(api_key)
    result = await client.chat.completions.create(
        model=model or DEFAULT_CHAT_MODEL,
        messages=_messages(system, prompt),
    )
    if not result.choices:
        return ""
    return (result.choices[0].message.content or "").strip()


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?", "", cleaned, count=1).strip()
        cleaned = re.sub(r"```$", "", cleaned).strip()
    return cleaned


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Super simple OpenAI helper CLI.")
    parser.add_argument("prompt", nargs="*", help="Prompt text.")
    parser.add_argument(
        "--mode",
        choices=("chat", "json"),
        default="chat",
        help="Plain chat or JSON-object completion.",
    )
    parser.add_argument("--model", help="Model override.")
    parser.add_argument("--system", help="System prompt.")
    return parser


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.prompt:
        parser.error("You must supply a prompt.")

    text = " ".join(args.prompt)
    api_key = os.getenv("OPENAI_API_KEY")
    helper = complete_json if args.mode == "json" else complete_text
    print(asyncio.run(helper(args.system, text, model=args.model, api_key=api_key)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
