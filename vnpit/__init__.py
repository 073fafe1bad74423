"""
Vietnamese personal income tax engine.

The computation core lives in :mod:`vnpit.core`; :mod:`vnpit.api.http` and
:mod:`vnpit.main` expose it over HTTP and on the command line.
"""
from __future__ import annotations

__version__ = "0.4.0"
