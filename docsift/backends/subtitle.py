"""WebVTT and SRT subtitle backend."""

from __future__ import annotations

import re

from pydantic import BaseModel

from docsift.backends.base import Backend, Source, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

_SRT_HEAD = re.compile(r"^\d+\s*\n\d{2}:\d{2}")
_BLOCK_SPLIT = re.compile(r"\n\s*\n")


class Cue(BaseModel):
    """One timed subtitle entry."""

    start_time: str
    end_time: str
    text: str
    index: int | None = None


def _split_timing(line: str) -> tuple[str, str]:
    start, _, end = line.partition("-->")
    # VTT cue settings ("align:start") follow the end timestamp.
    return start.strip(), (end.split() or [""])[0]


def parse_vtt(content: str) -> list[Cue]:
    cues: list[Cue] = []
    lines = content.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if "-->" not in line:
            continue
        start, end = _split_timing(line)
        text_lines = []
        while i < len(lines) and lines[i].strip():
            text_lines.append(lines[i].strip())
            i += 1
        if text_lines:
            cues.append(Cue(start_time=start, end_time=end, text=" ".join(text_lines)))
    return cues


def parse_srt(content: str) -> list[Cue]:
    cues: list[Cue] = []
    for block in _BLOCK_SPLIT.split(content):
        lines = block.strip().split("\n")
        if len(lines) < 3 or "-->" not in lines[1]:
            continue
        start, end = _split_timing(lines[1])
        text = " ".join(line.strip() for line in lines[2:]).strip()
        if not text:
            continue
        index = int(lines[0]) if lines[0].strip().isdigit() else None
        cues.append(Cue(start_time=start, end_time=end, text=text, index=index))
    return cues


class SubtitleBackend(Backend):
    formats = frozenset({InputFormat.VTT, InputFormat.SRT})

    def is_valid(self, source: Source) -> bool:
        try:
            content = read_text(source).replace("\r\n", "\n").strip()
        except OSError:
            return False
        return content.startswith("WEBVTT") or bool(_SRT_HEAD.match(content))

    def convert(self, source: Source, filename: str | None = None) -> Document:
        content = read_text(source).replace("\r\n", "\n")
        is_vtt = content.lstrip().startswith("WEBVTT")
        fmt = InputFormat.VTT if is_vtt else InputFormat.SRT
        cues = parse_vtt(content) if is_vtt else parse_srt(content)

        items = [
            DocumentItem(
                type=DocumentItemType.PARAGRAPH,
                text=cue.text,
                metadata=cue.model_dump(exclude={"text"}, exclude_none=True),
            )
            for cue in cues
        ]
        name = resolve_filename(source, filename, f"subtitle.{fmt.value}")
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=fmt,
                title=filename or "Subtitle File",
                extra={"cue_count": len(cues)},
            ),
            content=items,
        )
