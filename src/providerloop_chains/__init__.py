"""Providerloop Chains.

Patient document extraction, identity reconciliation and automation chain
dispatch for clinic staff workflows.
"""

__version__ = "0.1.0"
