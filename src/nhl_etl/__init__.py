"""Tidy NHL schedule and entry-draft tables built from the NHL stats API.

The reference catalogs bundled under ``data/`` are deliberately small:

* ``seasons.csv`` covers 2010-2011 through 2022-2023, so earlier season ids
  are rejected with ``InvalidKeyError``;
* ``prospects.csv`` holds only its header, so ``player_id`` is null on every
  draft row.

Point ``catalogs.dir`` in the config (or pass ``catalogs=`` to the tidy
functions) at a directory with fuller ``seasons.csv``, ``teams.csv`` and
``prospects.csv`` files to lift both limits.
"""

from .catalogs import InvalidKeyError, ReferenceCatalogs, SeasonInfo, load_catalogs
from .tidy import TidyRunner, tidy_draft, tidy_schedule

__all__ = [
    "InvalidKeyError",
    "ReferenceCatalogs",
    "SeasonInfo",
    "TidyRunner",
    "load_catalogs",
    "tidy_draft",
    "tidy_schedule",
]
