"""Sync orchestration across linked accounts."""

from inbox_digest.sync.orchestrator import SyncOrchestrator

__all__ = ["SyncOrchestrator"]
