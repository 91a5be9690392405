"""
TrafficPlanner: sink/source flow schedule generation

Pairs node i (sink) with node i + sink_count (source) for each of the
configured flows. Sinks come up at a random time in [0, 1) s so that the
network has settled before the sources start at a random time in
[100, 101) s; all flows run until the end of the experiment.

Start-time jitter is drawn from numpy generators spawned from the run's
seed. By default sink and source starts use independent streams; with
shared_start_stream both draws of a pair come from one generator in
sink-then-source order.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from Config import Config, ConfigurationError, ExperimentConfig


@dataclass(frozen=True)
class FlowSpec:
    """
    Timing and endpoints of one sink/source flow.

    Attributes:
        sink_node_index: Index of the receiving node
        source_node_index: Index of the sending node
        sink_start: Time the sink starts listening
        sink_stop: Time the sink stops listening
        source_start: Time the source starts sending
        source_stop: Time the source stops sending
        destination_address: IPv4 address of the sink
        port: Destination port on the sink
    """
    sink_node_index: int
    source_node_index: int
    sink_start: float
    sink_stop: float
    source_start: float
    source_stop: float
    destination_address: str
    port: int


class TrafficPlanner:
    def __init__(self, config: ExperimentConfig,
                 sink_start_range: Tuple[float, float] = Config.SINK_START_RANGE,
                 source_start_range: Tuple[float, float] = Config.SOURCE_START_RANGE):
        self.config = config
        self.sink_start_range = sink_start_range
        self.source_start_range = source_start_range

        seeds = np.random.SeedSequence([config.seed, config.run])
        if config.shared_start_stream:
            shared = np.random.default_rng(seeds)
            self._sink_rng, self._source_rng = shared, shared
        else:
            sink_seed, source_seed = seeds.spawn(2)
            self._sink_rng = np.random.default_rng(sink_seed)
            self._source_rng = np.random.default_rng(source_seed)

        self.flows: List[FlowSpec] = []

    def build_flows(self, endpoint_addresses: Sequence[str]) -> List[FlowSpec]:
        """
        Create one FlowSpec per sink/source pair.

        Args:
            endpoint_addresses: IPv4 address of every node, by node index

        Returns:
            List of sink_count FlowSpecs, in sink index order

        Raises:
            ConfigurationError: if there are fewer than 2 * sink_count
                endpoints, or a flow would start at or after its stop time
        """
        n_sinks = self.config.sink_count
        stop = float(self.config.total_time)
        if n_sinks < 0 or 2 * n_sinks > len(endpoint_addresses):
            raise ConfigurationError(
                f"{n_sinks} sink/source pairs need {2 * n_sinks} endpoints, "
                f"got {len(endpoint_addresses)}"
            )

        flows = []
        for i in range(n_sinks):
            sink_start = float(self._sink_rng.uniform(*self.sink_start_range))
            source_start = float(self._source_rng.uniform(*self.source_start_range))
            if sink_start >= stop or source_start >= stop:
                raise ConfigurationError(
                    f"flow {i} would start at {max(sink_start, source_start):.3f}s, "
                    f"not before the stop time {stop}s"
                )
            flows.append(FlowSpec(
                sink_node_index=i,
                source_node_index=i + n_sinks,
                sink_start=sink_start,
                sink_stop=stop,
                source_start=source_start,
                source_stop=stop,
                destination_address=str(endpoint_addresses[i]),
                port=self.config.port,
            ))

        self.flows = flows
        return flows

    def install(self, flows: Sequence[FlowSpec], installer, on_receive) -> None:
        """
        Hand every flow to the application layer.

        Args:
            flows: FlowSpecs from build_flows()
            installer: Provides install_sink(flow, on_receive) and
                install_source(flow); each call registers one activation
                event with the simulator
            on_receive: Called with a ReceiveEvent for every packet a sink gets
        """
        for flow in flows:
            installer.install_sink(flow, on_receive)
            installer.install_source(flow)
