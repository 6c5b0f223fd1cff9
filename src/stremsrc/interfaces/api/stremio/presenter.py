"""Format resolved streams as Stremio stream objects."""

from __future__ import annotations

from typing import Any

from stremsrc.domain.entities.streams import ResolvedStream


def _behavior_hints(stream: ResolvedStream, group: str | None = None) -> dict[str, Any]:
    hints: dict[str, Any] = {
        "notWebReady": True,
        "proxyHeaders": {"request": {"Referer": f"{stream.referer_url.rstrip('/')}/"}},
    }
    if group:
        hints["group"] = group
    if stream.filename:
        hints["filename"] = stream.filename
    return hints


def present_stream(stream: ResolvedStream) -> list[dict[str, Any]]:
    """One entry, or "Auto Quality" plus one entry per HLS variant."""
    variants = stream.quality_info.variants if stream.quality_info else ()
    if not variants:
        return [
            {
                "name": stream.provider_name,
                "title": stream.display_title,
                "url": stream.stream_url,
                "behaviorHints": _behavior_hints(stream),
            }
        ]

    entries = [
        {
            "name": stream.provider_name,
            "title": f"{stream.display_title} - Auto Quality",
            "url": stream.stream_url,
            "behaviorHints": _behavior_hints(stream, "stremsrc-auto"),
        }
    ]
    for variant in variants:
        entries.append(
            {
                "name": stream.provider_name,
                "title": f"{stream.display_title} - {variant.label}",
                "url": variant.url,
                "behaviorHints": _behavior_hints(stream, f"stremsrc-{variant.label}"),
            }
        )
    return entries


def present_streams(streams: list[ResolvedStream]) -> list[dict[str, Any]]:
    return [entry for stream in streams for entry in present_stream(stream)]
