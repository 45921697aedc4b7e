"""
Episode document generation.

``generate_document`` renders an ExtractedContent into the Markdown file the
podcast website expects: a YAML front matter header followed by the body.

The audio URL and file size are not known when the document is generated, so
the header carries two literal placeholders. They are substituted by exact
string replacement in the publish stage (see ``src.publishing.slug``), which
lets a document be generated, previewed or regenerated without uploading
anything.
"""

import json
from datetime import date
from typing import List

from src.config import DocumentSettings
from src.extraction.models import ExtractedContent, Track


AUDIO_URL_PLACEHOLDER = "TO_BE_REPLACED_WITH_R2_URL"
SIZE_PLACEHOLDER = "TO_BE_CALCULATED"


def format_pub_date(value: date) -> str:
    """Format like ``Jan 05, 2025`` (month names are not locale dependent)."""
    months = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
    return f"{months[value.month - 1]} {value.day:02d}, {value.year}"


def _yaml_string(value: str) -> str:
    # JSON strings are valid YAML double quoted scalars
    return json.dumps(value, ensure_ascii=False)


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\n", " ")


def _render_header(content: ExtractedContent, settings: DocumentSettings) -> List[str]:
    return [
        "---",
        f"title: {_yaml_string(content.title)}",
        f'audioUrl: "{AUDIO_URL_PLACEHOLDER}"',
        f"pubDate: {format_pub_date(content.pub_date)}",
        f"duration: {content.duration}",
        f"size: {SIZE_PLACEHOLDER}",
        f'cover: "{settings.cover_template.format(episode=content.episode_number)}"',
        f"explicit: {'true' if settings.explicit else 'false'}",
        f"episode: {content.episode_number}",
        f"season: {settings.season}",
        f"episodeType: {settings.episode_type}",
        "---",
        "",
    ]


def _render_guests(content: ExtractedContent) -> List[str]:
    lines = ["## Guest Mix", ""]
    for guest in content.guests:
        target = guest.links[0] if guest.links else None
        name = f"[{guest.name}]({target})" if target else f"**{guest.name}**"
        if guest.project:
            name += f" ({guest.project})"
        lines += [f"{name} Merci encore !!", ""]
    return lines


def _render_track_row(track: Track) -> str:
    title = f"[{_cell(track.title)}]({track.link})" if track.link else _cell(track.title)
    cells = [_cell(track.artist), title, _cell(track.label), _cell(track.year), _cell(track.genre)]
    return "| " + " | ".join(cells) + " |"


def _render_tracks(content: ExtractedContent) -> List[str]:
    lines = [
        "## Morceaux mentionnés",
        "",
        "| Artiste | Titre | Label | Année | Genre |",
        "| --- | --- | --- | --- | --- |",
    ]
    lines += [_render_track_row(track) for track in content.tracks]
    lines.append("")
    return lines


def _render_events(content: ExtractedContent) -> List[str]:
    lines = ["## Événements mentionnés", ""]
    for event in content.events:
        line = f"- **{event.name}**"
        if event.location:
            line += f" - {event.location}"
        if event.type:
            line += f" ({event.type})"
        lines.append(line)
    lines.append("")
    return lines


def _render_opening_monologue(content: ExtractedContent) -> List[str]:
    lines = ["## Monologue d'ouverture", ""]
    lines += [f"> {line}" if line else ">" for line in content.opening_monologue.splitlines()]
    lines.append("")
    return lines


def generate_document(content: ExtractedContent, settings: DocumentSettings) -> str:
    """
    Render the episode document.

    Sections are only emitted when they have content, always in this order:
    guest mix, track table, events, opening monologue.

    Args:
        content: Structured episode content
        settings: Header constants (season, cover path, credits...)

    Returns:
        Markdown text with the audio URL and size placeholders left unresolved
    """
    lines = _render_header(content, settings)
    lines += [f"# {content.title}", "", content.description, ""]
    if settings.credits:
        lines += [settings.credits, ""]

    if content.guests:
        lines += _render_guests(content)
    if content.tracks:
        lines += _render_tracks(content)
    if content.events:
        lines += _render_events(content)
    if content.opening_monologue:
        lines += _render_opening_monologue(content)

    return "\n".join(lines).rstrip("\n") + "\n"
