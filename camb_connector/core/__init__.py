"""Core data types: the host item model and audio container helpers."""

from camb_connector.core.audio import build_wav_header, wrap_pcm
from camb_connector.core.items import BinaryData, Item, ItemResult

__all__ = ["BinaryData", "Item", "ItemResult", "build_wav_header", "wrap_pcm"]
