"""Render-time formatting options."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FormatOptions:
    """Options read by the renderer. Printers never see them."""

    print_width: int = 80
    tab_width: int = 2
