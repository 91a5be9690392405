"""
ReceiveAccumulator: received-traffic counters fed by sink socket callbacks

Bytes and packets are counted between two throughput samples; the sampler
drains them once per interval. Run totals are kept separately for the
end-of-run summary.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ReceiveEvent:
    """
    One packet delivered to a sink socket.

    Attributes:
        source_address: Sender IPv4 address, or None if the sender address
                        is not an Internet socket address
        size_bytes: Packet payload size
        arrival_time: Virtual time of delivery in seconds
        node_id: Id of the receiving node
    """
    source_address: Optional[str]
    size_bytes: int
    arrival_time: float
    node_id: Optional[int] = None


def format_reception(event: ReceiveEvent) -> str:
    """Console line announcing a received packet."""
    line = f"{event.arrival_time:g} {event.node_id}"
    if event.source_address is not None:
        return f"{line} received one packet from {event.source_address}"
    return f"{line} received one packet!"


@dataclass
class ReceiveAccumulator:
    """
    Tracks traffic received by all sinks since the last sample.

    Attributes:
        bytes_since_last_sample: Bytes received since the last drain
        packets_since_last_sample: Packets received since the last drain
        total_bytes: Bytes received over the whole run
        total_packets: Packets received over the whole run
        verbose: Print a console line for each received packet
    """
    bytes_since_last_sample: int = 0
    packets_since_last_sample: int = 0
    total_bytes: int = 0
    total_packets: int = 0
    verbose: bool = False

    def on_receive(self, event: ReceiveEvent) -> None:
        self.bytes_since_last_sample += event.size_bytes
        self.packets_since_last_sample += 1
        self.total_bytes += event.size_bytes
        self.total_packets += 1
        if self.verbose:
            print(format_reception(event))

    def drain_and_reset(self) -> Tuple[int, int]:
        """
        Report and clear the per-interval counters.

        Returns:
            Tuple of (bytes, packets) received since the previous drain
        """
        drained = (self.bytes_since_last_sample, self.packets_since_last_sample)
        self.bytes_since_last_sample = 0
        self.packets_since_last_sample = 0
        return drained
