"""
ResultsWriter: throughput time-series export for MANET routing comparison

Owns the results CSV for the duration of a run. The header is written once
at experiment start; every sample is appended by reopening the file so
each row is on disk before the next scheduler tick.

A JSON summary of the run is written beside the CSV at the end.

Licensed under the MIT License
"""

import csv
import json
from dataclasses import dataclass
from pathlib import Path
import time as time_module
import numpy as np

HEADERS = [
    'SimulationSecond', 'ReceiveRate', 'PacketsReceived',
    'NumberOfSinks', 'RoutingProtocol', 'TransmissionPower'
]


def _fmt(value: float) -> str:
    # Same rendering as a default C++ ostream: 1, 4.096, 7.5
    return f"{value:g}"


@dataclass(frozen=True)
class SampleRow:
    """
    One throughput sample.

    Attributes:
        timestamp: Virtual time of the sample in seconds
        rate_kbps: Receive rate over the last interval in kb/s
        packets_received: Packets received over the last interval
        sink_count: Number of sink/source pairs in the run
        protocol_label: Routing protocol name
        tx_power_dbm: Transmit power of every node
    """
    timestamp: float
    rate_kbps: float
    packets_received: int
    sink_count: int
    protocol_label: str
    tx_power_dbm: float

    def as_csv_row(self):
        return [
            _fmt(self.timestamp),
            _fmt(self.rate_kbps),
            str(self.packets_received),
            str(self.sink_count),
            self.protocol_label,
            _fmt(self.tx_power_dbm),
        ]


class ResultsWriter:
    """
    Append-only CSV sink for SampleRows.

    Keeps the appended rows in memory as well, for the summary report.
    """
    def __init__(self, csv_file_name):
        self.csv_file = Path(csv_file_name)
        self.rows = []
        self.header_written = False

        self.simulation_start_time = None
        self.sim_time_end_seconds = 0.0
        self.wall_clock_seconds = 0.0

    def write_header(self):
        """
        Create or truncate the results file and write the column header.

        Raises:
            OSError: if the file cannot be created
        """
        with open(self.csv_file, 'w', newline='') as f:
            csv.writer(f, lineterminator='\n').writerow(HEADERS)
        self.header_written = True
        self.rows = []
        self.simulation_start_time = time_module.time()

    def append_row(self, row: SampleRow):
        """
        Append one sample to the results file.

        The file is opened, written and closed on every call.

        Raises:
            RuntimeError: if write_header() has not been called
            OSError: if the file cannot be written
        """
        if not self.header_written:
            raise RuntimeError(f"header not written for {self.csv_file}")
        with open(self.csv_file, 'a', newline='') as f:
            csv.writer(f, lineterminator='\n').writerow(row.as_csv_row())
        self.rows.append(row)

    @property
    def summary_file(self) -> Path:
        return self.csv_file.with_name(f"{self.csv_file.stem}_summary.json")

    def generate_summary_report(self, total_bytes=0, total_packets=None):
        """
        Generate run statistics and write them as JSON beside the CSV.

        Args:
            total_bytes: Bytes received over the whole run
            total_packets: Packets received over the whole run; defaults to
                           the sum of the sampled packet counts

        Returns:
            Dictionary containing summary statistics
        """
        self.wall_clock_seconds = time_module.time() - (self.simulation_start_time or time_module.time())
        rates = np.array([r.rate_kbps for r in self.rows], dtype=float)
        packets = np.array([r.packets_received for r in self.rows], dtype=np.int64)
        if total_packets is None:
            total_packets = int(packets.sum())

        first = self.rows[0] if self.rows else None
        summary = {
            'samples': len(self.rows),
            'routing_protocol': first.protocol_label if first else None,
            'number_of_sinks': first.sink_count if first else None,
            'transmission_power': first.tx_power_dbm if first else None,
            'total_bytes': int(total_bytes),
            'total_packets': int(total_packets),
            'mean_receive_rate_kbps': float(rates.mean()) if rates.size else 0.0,
            'peak_receive_rate_kbps': float(rates.max()) if rates.size else 0.0,
            'sim_time_seconds': self.sim_time_end_seconds,
            'wall_clock_seconds': self.wall_clock_seconds,
            'data_files': {
                'throughput': str(self.csv_file),
            }
        }

        with open(self.summary_file, 'w') as f:
            json.dump(summary, f, indent=2)

        return summary
