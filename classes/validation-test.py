"""
MANET Routing Compare Validation Test Script

This script runs a quick validation experiment for every routing protocol
with a small population to verify:
- Network construction for OLSR, AODV, DSDV and DSR
- Sink/source flow installation
- Throughput sampling and CSV output

Used for pre-flight checks before full comparison runs.
"""

import csv
import os
import tempfile

from ns import ns
from Config import ExperimentConfig
from ExperimentController import ExperimentController
from Ns3Network import Ns3Network
from Ns3Scheduler import Ns3Scheduler, setup_cppyy_callbacks
from ResultsWriter import HEADERS
from RoutingProtocol import RoutingProtocol

def validate_protocol(protocol, output_dir):
    """
    Run validation test with reduced population for faster execution.

    Test configuration:
    - 6 mobile + 4 static nodes
    - 3 sink/source pairs
    - 105-second experiment (sources start at 100-101 s)

    Returns:
        True if validation passed (header intact, one row per second,
        some traffic delivered)
        False otherwise
    """
    config = ExperimentConfig(
        sink_count=3,
        csv_file_name=os.path.join(output_dir, f"{protocol.label}-validation.csv"),
        total_time=105.0,
        protocol=protocol,
        n_mobile_nodes=6,
        n_static_nodes=4,
        trace_mobility=False,
        verbose=False,
        seed=42,
    )

    ns.RngSeedManager.SetSeed(config.seed)
    ns.RngSeedManager.SetRun(0)

    scheduler = Ns3Scheduler()
    experiment = ExperimentController(config, scheduler, Ns3Network(config, scheduler))

    try:
        summary = experiment.run()
    except Exception as e:
        print(f"❌ Validation failed for {protocol.label}: {e}")
        return False

    with open(config.csv_file_name, newline='') as f:
        rows = list(csv.reader(f))

    header_ok = rows[0] == HEADERS
    rows_ok = len(rows) - 1 == int(config.total_time // config.sample_interval)

    print(f"✅ Validation Results ({protocol.label}):")
    print(f"   Header intact:    {header_ok}")
    print(f"   Samples written:  {len(rows) - 1}")
    print(f"   Packets received: {summary['total_packets']}")

    return header_ok and rows_ok and summary['total_packets'] > 0

if __name__ == "__main__":
    setup_cppyy_callbacks()

    print("🧪 RUNNING VALIDATION TEST")
    with tempfile.TemporaryDirectory() as output_dir:
        results = {p.label: validate_protocol(p, output_dir) for p in RoutingProtocol}

    if all(results.values()):
        print("🎉 VALIDATION PASSED - Ready for comparison runs!")
    else:
        failed = [name for name, ok in results.items() if not ok]
        print(f"🚨 VALIDATION FAILED - Check configuration ({', '.join(failed)})")
