"""
Command Line Interface Package

Entry point ``money-manager``: utility commands (version, config), ledger
commands (seed, accounts, add-account, categories, add-transaction,
recompute), legacy TXT import/export, JSON backup/restore and stats.
"""
