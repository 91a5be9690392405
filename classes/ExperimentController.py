"""
ExperimentController: MANET routing comparison orchestrator

Wires one experiment run together:
    - validates the run configuration and resolves the routing protocol
    - builds the ad hoc network with the selected protocol
    - plans sink/source flows and installs them on the network
    - writes the results header and arms the throughput sampler
    - runs the simulator until the configured total duration
    - tears down the simulator and writes the run summary

The controller only talks to the simulator through the scheduler object
(now/schedule_at/cancel/stop_at/halt/run/destroy) and to the network
through build/endpoint_addresses/install_sink/install_source/finalize, so
the same wiring runs on ns-3 or on an in-memory event queue.

Licensed under the MIT License
"""

from Config import ExperimentConfig
from ReceiveAccumulator import ReceiveAccumulator
from ResultsWriter import ResultsWriter
from RoutingProtocol import RoutingProtocol
from ThroughputSampler import ThroughputSampler
from TrafficPlanner import TrafficPlanner


class ExperimentController:
    def __init__(self, config: ExperimentConfig, scheduler, network):
        """
        Args:
            config: Immutable run configuration
            scheduler: Simulator clock and event queue adapter
            network: Network builder exposing the endpoint install calls
        """
        self.config = config
        self.scheduler = scheduler
        self.network = network

        self.accumulator = ReceiveAccumulator(verbose=config.verbose)
        self.writer = ResultsWriter(config.csv_file_name)
        self.planner = TrafficPlanner(config)
        self.sampler = None
        self.protocol = None
        self.flows = []
        self.summary = None

    def setup(self) -> None:
        """
        Prepare the run without advancing the simulator.

        Configuration errors are raised before the results file is touched.
        """
        self.config.validate()
        self.protocol = RoutingProtocol.parse(self.config.protocol)

        self.network.build(self.protocol)
        self.flows = self.planner.build_flows(self.network.endpoint_addresses())

        self.writer.write_header()
        self.planner.install(self.flows, self.network, self.accumulator.on_receive)
        print(f"✅ Installed {len(self.flows)} sink/source pairs using {self.protocol.label}")

        self.sampler = ThroughputSampler(
            self.scheduler, self.accumulator, self.writer,
            sink_count=self.config.sink_count,
            protocol_label=self.protocol.label,
            tx_power_dbm=self.config.tx_power_dbm,
            interval=self.config.sample_interval,
            stop_time=self.config.total_time,
        )
        if not self.sampler.start(on_finished=self._stop_at_total_time):
            # Run shorter than one interval: nothing to sample
            self.scheduler.stop_at(self.config.total_time)

    def _stop_at_total_time(self):
        # Queued after the last sample, so a sample due at total_time is kept
        self.scheduler.stop_at(self.config.total_time)

    def run(self):
        """
        Execute the complete experiment lifecycle.

        Returns:
            Summary dictionary from ResultsWriter.generate_summary_report()
        """
        sim_end = 0.0
        try:
            self.setup()

            print(f"Starting simulator run (stop time: {self.config.total_time}s)...")
            self.scheduler.run()

            sim_end = self.scheduler.now()
            print(f"Simulator finished at {sim_end}s")

        except Exception as e:
            print(f"Error during simulation execution: {e}")
            raise
        finally:
            if self.sampler is not None:
                self.sampler.cancel()
            self.network.finalize()
            self.scheduler.destroy()

        self.writer.sim_time_end_seconds = float(sim_end)
        self.summary = self.writer.generate_summary_report(
            total_bytes=self.accumulator.total_bytes,
            total_packets=self.accumulator.total_packets,
        )
        print("\n=== THROUGHPUT SUMMARY ===")
        print(f"Routing protocol:     {self.protocol.label}")
        print(f"Samples written:      {self.summary['samples']}")
        print(f"Packets received:     {self.summary['total_packets']}")
        print(f"Mean receive rate:    {self.summary['mean_receive_rate_kbps']:.3f} kb/s")
        print(f"Simulated time:       {self.summary['sim_time_seconds']:.2f}s")
        print(f"Wall-clock elapsed:   {self.summary['wall_clock_seconds']:.2f}s")
        return self.summary
