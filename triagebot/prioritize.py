"""Adding the prioritization label to an issue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from triagebot.github import Context, Label


@dataclass
class PrioritizeConfig:
    label: str


async def handle_command(ctx: Context, config: PrioritizeConfig, event: Any) -> None:
    """Add the configured prioritization label to the event's issue."""
    await ctx.github.add_labels(event.issue, [Label(config.label)])