from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

import discord


class EmbedFieldSource(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def value(self) -> str: ...


def make_embed(
    title: str | None,
    description: str | None,
    color: discord.Color | None = None,
    footer: str | None = None,
) -> discord.Embed:
    resolved_color = color if color is not None else discord.Color.blurple()
    embed = discord.Embed(
        title=title,
        description=description,
        color=resolved_color,
        timestamp=datetime.now(UTC),
    )
    if footer:
        embed.set_footer(text=footer)
    return embed

def error_embed(message: str) -> discord.Embed:
    return make_embed(title="Error", description=message, color=discord.Color.red())

def chunked_field_embeds(
    sections: Sequence[EmbedFieldSource],
    *,
    title: str,
    footer: str,
    per_embed: int,
    color: discord.Color | None = None,
) -> list[discord.Embed]:
    """Spread sections over as many embeds as needed, ``per_embed`` fields each.

    Only the first embed carries the title and only the last carries the footer.
    """
    if per_embed < 1:
        raise ValueError("per_embed must be positive")
    resolved_color = color if color is not None else discord.Color.from_rgb(255, 255, 255)
    embeds: list[discord.Embed] = []
    for start in range(0, len(sections), per_embed):
        embed = discord.Embed(title=title if start == 0 else None, color=resolved_color)
        for section in sections[start : start + per_embed]:
            embed.add_field(name=section.name, value=section.value, inline=False)
        embeds.append(embed)
    if embeds:
        embeds[-1].set_footer(text=footer)
    return embeds
