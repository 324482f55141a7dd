"""External collaborators: protocols, simulated implementations and data."""

from __future__ import annotations

from relaycode.services.clipboard import MemoryClipboard, SystemClipboard
from relaycode.services.fixtures import (
    load_all_transactions,
    load_history_transactions,
    load_mock_transactions,
)
from relaycode.services.git import SimulatedGitService
from relaycode.services.patch import (
    PatchEngineFactory,
    SimulatedPatchEngine,
    simulated_patch_engine_factory,
)
from relaycode.services.protocols import (
    ClipboardService,
    CommitResult,
    GitService,
    PatchEngine,
    ScriptRunner,
)
from relaycode.services.scripts import SimulatedScriptRunner
from relaycode.services.transactions import TransactionStore

__all__ = [
    "ClipboardService",
    "CommitResult",
    "GitService",
    "MemoryClipboard",
    "PatchEngine",
    "PatchEngineFactory",
    "ScriptRunner",
    "SimulatedGitService",
    "SimulatedPatchEngine",
    "SimulatedScriptRunner",
    "SystemClipboard",
    "TransactionStore",
    "load_all_transactions",
    "load_history_transactions",
    "load_mock_transactions",
    "simulated_patch_engine_factory",
]
