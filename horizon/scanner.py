"""
Start / stop control around the sampling pipeline.

    Idle --start()--> Recording --stop()--> Idle

stop() runs on a manual request, when the source runs dry, or when the
sweep wraps past north. Each start() begins with an empty sweep; the
previous one has already been exported (or dropped on a write failure)
and is not kept after stop().
"""

import logging
import math
from enum import Enum
from typing import Callable, Iterable, Optional

from horizon.errors import NoDestinationConfigured, ScannerError, SensorUnavailable
from horizon.exporter import DirectorySink, Exporter, ExportResult, StorageSink
from horizon.orientation import OrientationEvent, Reading, sample_orientation
from horizon.settings import ScannerSettings
from horizon.sweep import RecordingSession, aggregate, finish

log = logging.getLogger(__name__)

STATUS_READY = "Ready"
STATUS_SCANNING = "Scanning…"
STATUS_DONE = "Done"


class ScanState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class HorizonScanner:
    def __init__(self,
                 settings: ScannerSettings,
                 sink: Optional[StorageSink] = None,
                 on_reading: Optional[Callable[[Reading], None]] = None,
                 exporter: Optional[Exporter] = None):
        self.settings = settings
        if sink is None and settings.destination:
            sink = DirectorySink(settings.destination, unique_names=settings.unique_names)
        self.exporter = exporter or Exporter(sink, include_header=settings.include_header)
        self.on_reading = on_reading

        self.state = ScanState.IDLE
        self.status = STATUS_READY
        self.session = RecordingSession()
        self.last_result: Optional[ExportResult] = None

    @property
    def recording(self) -> bool:
        return self.state is ScanState.RECORDING

    @property
    def last_saved(self) -> Optional[str]:
        if self.last_result is not None and self.last_result.ok:
            return self.last_result.location
        return None

    def start(self, source) -> None:
        """
        Begin a new session. Raises SensorUnavailable or NoDestinationConfigured
        (the scanner stays idle) or ScannerError when already recording.
        """
        if self.recording:
            raise ScannerError("Already scanning")
        try:
            if source is None or not source.is_available():
                raise SensorUnavailable()
            if self.exporter.sink is None:
                raise NoDestinationConfigured()
        except ScannerError as e:
            self.status = str(e)
            log.warning("Start refused: %s", e)
            raise

        self.session = RecordingSession.start(self.settings.policy)
        self.state = ScanState.RECORDING
        self.status = STATUS_SCANNING
        log.info("Scan started (mode=%s, policy=%s)",
                 self.settings.pointing_mode.value, self.settings.policy.value)

    def on_orientation(self, event: OrientationEvent) -> Optional[Reading]:
        """Handle one sensor event. Ignored unless recording."""
        if not self.recording:
            return None
        if not (math.isfinite(event.azimuth) and math.isfinite(event.pitch)):
            log.warning("Skipping non-finite orientation event at %s ms", event.timestamp_ms)
            return None

        reading = sample_orientation(event, self.settings.pointing_mode)
        if self.on_reading is not None:
            self.on_reading(reading)

        self.session = aggregate(self.session, reading, auto_stop=self.settings.auto_stop_on_wrap)
        if not self.session.active:
            self.stop(reason="full rotation")
        return reading

    def stop(self, reason: str = "manual") -> Optional[ExportResult]:
        """Return to idle and export the sweep. A no-op when already idle."""
        if not self.recording:
            return self.last_result

        self.state = ScanState.IDLE
        self.session = finish(self.session)
        log.info("Scan stopped (%s), %d samples", reason, len(self.session.sweep))

        try:
            result = self.exporter.export(self.session.sweep)
        except NoDestinationConfigured as e:
            result = ExportResult(ok=False, name="", message=str(e))

        self.last_result = result
        self.status = STATUS_DONE if result.ok else result.message
        self.session = RecordingSession()
        return result

    def abort(self, reason: str) -> None:
        """Drop the current session without exporting it."""
        if not self.recording:
            return
        log.error("Scan aborted (%s), %d samples discarded", reason, len(self.session.sweep))
        self.state = ScanState.IDLE
        self.session = RecordingSession()
        self.status = f"Scan aborted: {reason}"

    def scan(self, source, events: Optional[Iterable[OrientationEvent]] = None) -> Optional[ExportResult]:
        """
        Run one full session over the source: start, feed events, stop.

        events defaults to iterating the source itself; pass a wrapped
        iterator (e.g. a progress bar) to consume it differently.
        """
        self.start(source)
        try:
            for event in (source if events is None else events):
                self.on_orientation(event)
                if not self.recording:
                    break
        except Exception as e:
            self.abort(str(e) or type(e).__name__)
            raise
        return self.stop(reason="end of data")
