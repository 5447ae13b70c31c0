"""Automation module.

Chain menu, starting variables, chain dispatch and the dispatch log.
"""

from providerloop_chains.automation.chains import DEFAULT_CHAINS, ChainRegistry
from providerloop_chains.automation.dispatch_log import DispatchLog, DispatchSummary, summarize
from providerloop_chains.automation.dispatcher import (
    AutomationDispatcher,
    build_payload,
    extract_chain_run_id,
)

__all__ = [
    "DEFAULT_CHAINS",
    "ChainRegistry",
    "DispatchLog",
    "DispatchSummary",
    "summarize",
    "AutomationDispatcher",
    "build_payload",
    "extract_chain_run_id",
]
