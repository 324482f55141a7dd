"""Relaycode review engine.

Navigation, viewport and review-workflow state behind the Relaycode terminal
dashboard for reviewing and applying AI-generated code patches.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
