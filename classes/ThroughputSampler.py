"""
ThroughputSampler: periodic receive-rate sampling

Once per interval the sampler drains the ReceiveAccumulator, converts the
drained bytes to kb/s and appends a SampleRow to the ResultsWriter, then
re-arms itself on the scheduler for the next interval.

The sampler is a bounded repeating timer: it never arms a firing past
stop_time, and it reports completion through on_finished so the owner can
halt the simulator.
"""

from typing import Callable, Optional

from ReceiveAccumulator import ReceiveAccumulator
from ResultsWriter import ResultsWriter, SampleRow

# Float slack when comparing the next firing time against stop_time
TIME_EPSILON = 1e-9


class ThroughputSampler:
    ARMED = "armed"
    FIRING = "firing"
    IDLE = "idle"

    def __init__(self, scheduler, accumulator: ReceiveAccumulator, writer: ResultsWriter,
                 sink_count: int, protocol_label: str, tx_power_dbm: float,
                 interval: float = 1.0, stop_time: Optional[float] = None):
        """
        Args:
            scheduler: Provides now(), schedule_at(time, callback) and cancel(handle)
            accumulator: Source of received byte/packet counts
            writer: Destination of sample rows
            sink_count: Static NumberOfSinks column value
            protocol_label: Static RoutingProtocol column value
            tx_power_dbm: Static TransmissionPower column value
            interval: Sampling period in simulated seconds
            stop_time: Last instant a sample may be taken; None means unbounded
        """
        if interval <= 0:
            raise ValueError(f"sampling interval must be positive, got {interval}")
        self.scheduler = scheduler
        self.accumulator = accumulator
        self.writer = writer
        self.sink_count = sink_count
        self.protocol_label = protocol_label
        self.tx_power_dbm = tx_power_dbm
        self.interval = float(interval)
        self.stop_time = stop_time

        self.state = self.IDLE
        self.samples_taken = 0
        self._pending = None
        self._on_finished: Optional[Callable[[], None]] = None

    def _within_run(self, at: float) -> bool:
        return self.stop_time is None or at <= self.stop_time + TIME_EPSILON

    def _arm(self, at: float) -> bool:
        if not self._within_run(at):
            self._pending = None
            self.state = self.IDLE
            return False
        self._pending = self.scheduler.schedule_at(at, self._fire)
        self.state = self.ARMED
        return True

    def start(self, on_finished: Optional[Callable[[], None]] = None) -> bool:
        """
        Arm the first sample one interval after the current time.

        Args:
            on_finished: Called once after the last sample of a bounded run

        Returns:
            True if a first sample fits before stop_time
        """
        self._on_finished = on_finished
        return self._arm(self.scheduler.now() + self.interval)

    def _fire(self):
        self._pending = None
        self.state = self.FIRING

        bytes_received, packets_received = self.accumulator.drain_and_reset()
        now = self.scheduler.now()
        row = SampleRow(
            timestamp=now,
            rate_kbps=bytes_received * 8.0 / 1000,
            packets_received=packets_received,
            sink_count=self.sink_count,
            protocol_label=self.protocol_label,
            tx_power_dbm=self.tx_power_dbm,
        )
        self.writer.append_row(row)
        self.samples_taken += 1

        if not self._arm(now + self.interval) and self._on_finished is not None:
            self._on_finished()

    def cancel(self) -> None:
        """Drop the pending sample, if any."""
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None
        self.state = self.IDLE

    @property
    def armed(self) -> bool:
        return self.state == self.ARMED
