"""
Persistence — install registry, history ledger.
"""
