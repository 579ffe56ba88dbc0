"""
Sigma mint wallet: denominations, deterministic derivation, coin selection
and the spend orchestrator.
"""
