"""Core layer — units, contracts, and the composers built on them.

Core depends on config only through :mod:`workchain.diagnostics`.
It performs no I/O of its own; transactions and persistence belong to
whatever a caller installs with ``around``.
"""
