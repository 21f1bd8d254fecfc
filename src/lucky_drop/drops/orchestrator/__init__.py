"""
Drop Orchestrator Module

Coordinates the recipient reveal flow on top of the drop store.
"""

from lucky_drop.drops.orchestrator.opener_flow import REVEAL_DELAY_SECONDS
from lucky_drop.drops.orchestrator.opener_flow import GiftOpener
from lucky_drop.drops.orchestrator.opener_flow import reconcile_stage
from lucky_drop.drops.orchestrator.opener_flow import resolve_stage

__all__ = [
    "REVEAL_DELAY_SECONDS",
    "GiftOpener",
    "reconcile_stage",
    "resolve_stage",
]
