"""
Export a finished sweep as a horizon text file.

File format (UTF-8, one sample per line, no trailing blank line):

    azimuth elevation      <- optional header
    0 3
    1 3
    2 4
    ...

Files are named horizon_<unix-millis>.txt. The exporter only builds the bytes;
writing them somewhere is the job of a StorageSink.
"""

import io
import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

import pandas as pd

from horizon.errors import ExportIOFailure, NoDestinationConfigured
from horizon.sweep import Sweep

log = logging.getLogger(__name__)

COLUMNS = ["azimuth", "elevation"]
FILE_PREFIX = "horizon_"
FILE_SUFFIX = ".txt"


def export_name(millis: int) -> str:
    return f"{FILE_PREFIX}{int(millis)}{FILE_SUFFIX}"


def format_sweep(entries: Iterable[Tuple[int, int]], include_header: bool = False) -> str:
    """
    Render (azimuth, elevation) pairs as space separated lines.

    Entries are written in the order given; Sweep.entries() already sorts
    first-write-wins sweeps by azimuth.
    """
    df = pd.DataFrame(list(entries), columns=COLUMNS)
    buf = io.StringIO()
    df.astype(int).to_csv(buf, sep=" ", header=include_header, index=False, lineterminator="\n")
    return buf.getvalue()


# =============================================================================
# Storage sinks
# =============================================================================

class StorageSink(ABC):
    """Accepts a named blob. Returns where it ended up, raises ExportIOFailure otherwise."""

    @abstractmethod
    def write(self, name: str, data: bytes) -> str:
        pass


class DirectorySink(StorageSink):
    """
    Writes exports into a folder on disk.

    Millisecond names can still collide (two stops in the same millisecond,
    or a clock going backwards); with unique_names the sink appends _1, _2, ...
    instead of overwriting an earlier scan.
    """

    def __init__(self, folder: str, unique_names: bool = True):
        self.folder = os.path.expanduser(folder)
        self.unique_names = unique_names

    def _target_path(self, name: str, n: int = 0) -> str:
        if not self.unique_names:
            return os.path.join(self.folder, name)
        stem, ext = os.path.splitext(name)
        path = os.path.join(self.folder, f"{stem}_{n}{ext}" if n else name)
        while os.path.exists(path):
            n += 1
            path = os.path.join(self.folder, f"{stem}_{n}{ext}")
        return path

    def write(self, name: str, data: bytes) -> str:
        try:
            os.makedirs(self.folder, exist_ok=True)
            if not self.unique_names:
                path = self._target_path(name)
                with open(path, "wb") as f:
                    f.write(data)
                return path

            n = 0
            while True:
                path = self._target_path(name, n)
                try:
                    # "x" refuses to clobber a file that appeared after the existence check
                    with open(path, "xb") as f:
                        f.write(data)
                    return path
                except FileExistsError:
                    log.debug("%s appeared while exporting, trying the next suffix", path)
                    n += 1
        except OSError as e:
            raise ExportIOFailure(name, e.strerror or str(e)) from e

    def __repr__(self) -> str:
        return f"DirectorySink({self.folder!r})"


# =============================================================================
# Exporter
# =============================================================================

@dataclass(frozen=True)
class ExportResult:
    ok: bool
    name: str
    location: Optional[str] = None
    lines: int = 0
    message: str = ""


class Exporter:
    def __init__(self,
                 sink: Optional[StorageSink],
                 include_header: bool = False,
                 clock: Callable[[], float] = time.time):
        self.sink = sink
        self.include_header = include_header
        self.clock = clock

    def render(self, sweep: Sweep) -> bytes:
        return format_sweep(sweep.entries(), self.include_header).encode("utf-8")

    def export(self, sweep: Sweep) -> ExportResult:
        """
        Write the sweep through the sink.

        A sink failure is reported in the result, never raised: the sweep is
        dropped and there is no retry.
        """
        if self.sink is None:
            raise NoDestinationConfigured()

        name = export_name(int(self.clock() * 1000))
        data = self.render(sweep)
        try:
            location = self.sink.write(name, data)
        except ExportIOFailure as e:
            log.error("Export failed: %s", e)
            return ExportResult(ok=False, name=name, message=str(e))

        log.info("Saved %d samples to %s", len(sweep), location)
        return ExportResult(ok=True, name=name, location=location, lines=len(sweep),
                            message=f"Saved {len(sweep)} samples to {location}")
