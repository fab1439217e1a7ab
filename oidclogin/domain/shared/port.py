"""Marker base for domain ports (implemented by adapters in infrastructure/)."""

from typing import Protocol


class Port(Protocol):
    pass
