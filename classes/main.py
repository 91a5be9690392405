"""
MANET Routing Compare: experiment entry point

Runs one routing comparison experiment on ns-3. It provides:
- Command-line argument parsing for experiment parameters
- C++ callback setup for ns-3 Python bindings
- RNG seeding for reproducibility
- Experiment orchestration and cleanup

Usage:
    python main.py [OPTIONS]

Options:
    --csv FILE             Results CSV (default: from Config.CSV_FILE_NAME)
    --protocol SELECTOR    1=OLSR;2=AODV;3=DSDV;4=DSR, or the protocol name
    --sinks INT            Sink/source pairs (default: from Config.N_SINKS)
    --txp DBM              Transmit power (default: from Config.TX_POWER_DBM)
    --stop SECONDS         Experiment duration (default: from Config.STOP_TIME)
    --mobile-nodes INT     Random waypoint nodes
    --static-nodes INT     Grid-placed nodes
    --speed M/S            Maximum node speed
    --pause SECONDS        Pause at each waypoint
    --interval SECONDS     Throughput sampling interval
    --seed INT             RNG seed (default: 12345)
    --run INT              RNG run number (default: 0)
    --trace-mobility {0,1} Write the ascii mobility trace
    --flow-monitor {0,1}   Write the flow monitor XML
    --shared-stream {0,1}  Draw sink and source start times from one stream
    --quiet                Do not print a line per received packet
"""

from ns import ns
from Config import Config, ConfigurationError, ExperimentConfig
from ExperimentController import ExperimentController
from Ns3Network import Ns3Network
from Ns3Scheduler import Ns3Scheduler, setup_cppyy_callbacks
import argparse
import sys


def parse_args(argv=None):
    """
    Parse command-line arguments for experiment configuration.

    Returns:
        Namespace object with parsed arguments
    """
    p = argparse.ArgumentParser()
    p.add_argument("--csv", type=str, default=Config.CSV_FILE_NAME,
                   help="The name of the CSV output file name")
    p.add_argument("--protocol", type=str, default=Config.PROTOCOL.name,
                   help="1=OLSR;2=AODV;3=DSDV;4=DSR")
    p.add_argument("--sinks", type=int, default=Config.N_SINKS)
    p.add_argument("--txp", type=float, default=Config.TX_POWER_DBM, help="Transmit power (dBm)")
    p.add_argument("--stop", type=float, default=Config.STOP_TIME, help="NS-3 sim time (s)")
    p.add_argument("--mobile-nodes", type=int, default=Config.N_MOBILE_NODES)
    p.add_argument("--static-nodes", type=int, default=Config.N_STATIC_NODES)
    p.add_argument("--speed", type=int, default=Config.NODE_SPEED, help="Max node speed (m/s)")
    p.add_argument("--pause", type=int, default=Config.NODE_PAUSE, help="Waypoint pause (s)")
    p.add_argument("--interval", type=float, default=Config.SAMPLE_INTERVAL)
    p.add_argument("--seed", type=int, default=Config.SEED)
    p.add_argument("--run",  type=int, default=Config.RUN)
    p.add_argument("--trace-mobility", type=int, choices=[0, 1], default=int(Config.TRACE_MOBILITY),
                   help="Enable mobility tracing")
    p.add_argument("--flow-monitor", type=int, choices=[0, 1], default=int(Config.FLOW_MONITOR))
    p.add_argument("--shared-stream", type=int, choices=[0, 1], default=int(Config.SHARED_START_STREAM),
                   help="1=sink and source start times share one random stream")
    p.add_argument("--quiet", action="store_true", help="Suppress per-packet reception lines")
    return p.parse_args(argv)


def run_experiment(argv=None):
    """
    Execute a single routing comparison run with configured parameters.

    This function:
    1. Parses command-line arguments into an ExperimentConfig
    2. Seeds the ns-3 and numpy RNGs for reproducibility
    3. Creates and runs the experiment
    4. Clears the Python callbacks and destroys the simulator on failure
    """
    args = parse_args(argv)

    try:
        config = ExperimentConfig.from_args(args)
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        raise

    print(f"🔧 Configuration: protocol={config.protocol_label}, sinks={config.sink_count}, "
          f"nodes={config.total_nodes}, txp={config.tx_power_dbm}dBm, stop={config.total_time}s")

    ns.RngSeedManager.SetSeed(config.seed)
    ns.RngSeedManager.SetRun(config.run)

    print("Starting MANET routing experiment...")

    scheduler = Ns3Scheduler()
    try:
        experiment = ExperimentController(config, scheduler, Ns3Network(config, scheduler))
        summary = experiment.run()
        print(f"✅ Experiment completed successfully: {summary['data_files']['throughput']}")
        return summary

    except Exception as e:
        print(f"❌ Simulation failed: {e}")
        import traceback
        traceback.print_exc()

        try:
            if hasattr(ns.cppyy.gbl, 'ClearPythonCallbacks'):
                ns.cppyy.gbl.ClearPythonCallbacks()

            ns.Simulator.Destroy()
        except Exception:
            pass
        raise


if __name__ == "__main__":
    setup_cppyy_callbacks()
    try:
        run_experiment()
    except Exception:
        sys.exit(1)
