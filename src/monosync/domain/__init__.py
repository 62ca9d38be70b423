"""Workspace sync core: no I/O beyond the ports in ``monosync.domain.ports``."""
