"""Camb.ai connector: async client for speech, voice, translation and transcription.

WHY: The Camb.ai API mixes synchronous endpoints with long-running tasks
that must be submitted, polled and then fetched. This package turns each
capability into one awaitable operation with typed errors.

HOW: Four layers. The api package issues requests and polls tasks; core
holds the item model and the WAV container builder; operations implements
one orchestrator per capability; runner executes a batch of items
sequentially.

RULES:
- All HTTP goes through api.CambClient
- Operations are looked up by OperationKind, never by string comparison
- Items are processed one at a time, in order
"""

__version__ = "0.1.0"
