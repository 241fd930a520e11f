"""Recursive discovery of the collection files to ingest."""

import logging
import os
from typing import Iterable, List

from .errors import DiscoveryError
from .models import DiscoveredFile

logger = logging.getLogger("trec_ingest")

DEFAULT_EXCLUDED_DIRS = ("OtherData",)


def discover_files(root: str, excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS) -> List[DiscoveredFile]:
    """Return every regular file under root, sorted by path.

    Directories named in excluded_dirs are pruned with their whole subtree.
    A directory that cannot be listed is logged and left out; only an
    unusable root raises DiscoveryError.
    """
    if not os.path.isdir(root) or not os.access(root, os.R_OK | os.X_OK):
        raise DiscoveryError(f"Document directory '{root}' does not exist or is not readable")

    excluded = set(excluded_dirs)
    found = []

    def _on_error(err: OSError):
        logger.error(f"Visiting failed for {err.filename}: {err}")

    for dirpath, dirnames, filenames in os.walk(os.path.abspath(root), onerror=_on_error):
        kept = []
        for name in dirnames:
            if name in excluded:
                logger.info(f"Skipping: {os.path.join(dirpath, name)}")
            else:
                kept.append(name)
        dirnames[:] = kept

        for fname in filenames:
            fpath = os.path.join(dirpath, fname)
            # sockets, fifos and dangling links are not collection files
            if os.path.isfile(fpath):
                found.append(DiscoveredFile.from_path(fpath))
            else:
                logger.warning(f"Not a regular file, skipping: {fpath}")

    found.sort(key=lambda f: f.path)
    logger.info(f"{len(found)} files found under the docs path: {root}")
    return found
