from __future__ import annotations
from typing import List, Optional

from rich.console import Console
from rich.text import Text

SOLAR_LOGO = r"""
> solar-code

 ███         ███████   ███████  ██       █████  ███████
░░░███      ██░░░░░░  ██░░░░░██░██      ██░░░██░██░░░░██
  ░░░███    ░██████  ░██    ░██░██     ░███████░███████
    ░░░███  ░░░░░░██ ░██    ░██░██     ░██░░░██░██░░░██
    ███░         ░██ ░██    ░██░██     ░██  ░██░██  ░░██
  ███░      ███████  ░░███████ ░███████░██  ░██░██   ░██
 ░░░░       ░░░░░░░   ░░░░░░░  ░░░░░░░░░░░   ░░ ░░    ░░
"""

_STEPS = 100


def gradient(steps: int = _STEPS) -> List[str]:
    """Yellow (255,255,0) to red (255,0,0) along a smoothstep curve, as rich colour strings."""
    colours = []
    for i in range(steps):
        t = i / (steps - 1) if steps > 1 else 0.0
        s = t * t * (3 - 2 * t)
        colours.append(f"rgb(255,{round(255 - s * 255)},0)")
    return colours


def render_logo(logo: str = SOLAR_LOGO) -> Text:
    lines = logo.strip("\n").splitlines()
    width = max(len(line) for line in lines)
    colours = gradient()
    text = Text()
    for line in lines:
        for col, ch in enumerate(line):
            if ch.isspace():
                text.append(ch)
            else:
                text.append(ch, style=colours[min(_STEPS - 1, col * _STEPS // max(1, width))])
        text.append("\n")
    return text


def render_banner(app_version: Optional[str] = None, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(render_logo())
    if app_version:
        console.print(Text(app_version, style="dim"))
