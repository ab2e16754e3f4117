"""External services the ingestion engine depends on, bundled for injection."""

from __future__ import annotations

import os
import stat
import sys
from dataclasses import dataclass
from functools import partial
from typing import Callable, TextIO

from ctxload.config import CtxloadConfig
from ctxload.context import llm, web


@dataclass
class Collaborators:
    """Tokenizer, URL fetcher/classifier, and naming service.

    Tests replace these with deterministic fakes.
    """

    count_tokens: Callable[[str], int]
    fetch_url: Callable[[str], str]
    derive_file_name: Callable[[str], str]
    is_url: Callable[[str], bool] = web.is_url
    sanitize_url: Callable[[str], str] = web.sanitize_url

    @classmethod
    def from_config(cls, cfg: CtxloadConfig) -> "Collaborators":
        return cls(
            count_tokens=partial(llm.count_tokens, cfg.tokenizer.model),
            fetch_url=partial(
                web.fetch_url, timeout=cfg.fetch.timeout, max_bytes=cfg.fetch.max_bytes
            ),
            derive_file_name=partial(
                llm.derive_file_name, model=cfg.naming.model, max_length=cfg.naming.max_length
            ),
        )


def read_piped_stdin(stream: TextIO | None = None) -> str | None:
    """Return stdin contents if stdin is a pipe (not a terminal or file), else None."""
    stream = stream if stream is not None else sys.stdin
    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (OSError, ValueError, AttributeError):
        return None
    if not stat.S_ISFIFO(mode):
        return None
    data = stream.read()
    return data or None
