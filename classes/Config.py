"""
MANET Routing Compare: Configuration Parameters

This module defines the default parameters for a routing comparison run and
the immutable per-run configuration built from them.

Parameter categories:
- Node population and mobility
- Wi-Fi physical layer
- Traffic generation
- Throughput sampling and output settings

Licensed under the MIT License
"""

import os
from dataclasses import dataclass

from RoutingProtocol import RoutingProtocol


class ConfigurationError(ValueError):
    """Raised when a run is configured in a way that cannot be executed."""


class Config:
    """Default parameters for a MANET routing comparison run"""

    SEED = 12345
    RUN = 0

    # ============================================================================
    # Node Population
    # ============================================================================
    N_MOBILE_NODES = 15
    N_STATIC_NODES = 15
    N_SINKS = 15

    # ============================================================================
    # Mobility (random waypoint inside a rectangle)
    # ============================================================================
    AREA_X = 1500.0
    AREA_Y = 300.0
    NODE_SPEED = 20
    NODE_PAUSE = 0

    # Static nodes sit on a grid
    STATIC_GRID_DELTA_X = 50.0
    STATIC_GRID_DELTA_Y = 200.0
    STATIC_GRID_WIDTH = 3

    # ============================================================================
    # Wi-Fi Physical Layer
    # ============================================================================
    TX_POWER_DBM = 7.5
    PHY_MODE = "DsssRate11Mbps"
    NETWORK_BASE = "10.1.1.0"
    NETWORK_MASK = "255.255.255.0"

    # ============================================================================
    # Traffic
    # ============================================================================
    PORT = 9
    PKT_SIZE = 512
    DATA_RATE = "2048bps"
    SOCKET_FACTORY = "ns3::UdpSocketFactory"
    SINK_START_RANGE = (0.0, 1.0)
    SOURCE_START_RANGE = (100.0, 101.0)
    SHARED_START_STREAM = False
    STOP_TIME = 103.0

    # ============================================================================
    # Routing
    # ============================================================================
    PROTOCOL = RoutingProtocol.AODV

    # ============================================================================
    # Output Settings
    # ============================================================================
    CSV_FILE_NAME = "AODV-simulation.csv"
    SAMPLE_INTERVAL = 1.0
    TRACE_NAME = "manet-routing-compare"
    TRACE_MOBILITY = True
    FLOW_MONITOR = False
    VERBOSE = True


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Immutable parameters for one experiment run.

    Built once at startup and handed to every component; nothing reads
    the Config class defaults after this point.
    """
    sink_count: int = Config.N_SINKS
    tx_power_dbm: float = Config.TX_POWER_DBM
    csv_file_name: str = Config.CSV_FILE_NAME
    total_time: float = Config.STOP_TIME
    protocol: object = Config.PROTOCOL  # RoutingProtocol, code or name

    n_mobile_nodes: int = Config.N_MOBILE_NODES
    n_static_nodes: int = Config.N_STATIC_NODES
    node_speed: int = Config.NODE_SPEED
    node_pause: int = Config.NODE_PAUSE

    port: int = Config.PORT
    packet_size: int = Config.PKT_SIZE
    data_rate: str = Config.DATA_RATE
    phy_mode: str = Config.PHY_MODE
    sample_interval: float = Config.SAMPLE_INTERVAL
    shared_start_stream: bool = Config.SHARED_START_STREAM

    trace_mobility: bool = Config.TRACE_MOBILITY
    flow_monitor: bool = Config.FLOW_MONITOR
    verbose: bool = Config.VERBOSE

    seed: int = Config.SEED
    run: int = Config.RUN

    @property
    def total_nodes(self) -> int:
        return self.n_mobile_nodes + self.n_static_nodes

    @property
    def protocol_label(self) -> str:
        return RoutingProtocol.parse(self.protocol).label

    @property
    def trace_name(self) -> str:
        """Base name shared by the mobility trace and flow monitor output."""
        return (f"{Config.TRACE_NAME}_{self.protocol_label}_{self.n_mobile_nodes}nodes_"
                f"{self.node_speed}speed_{self.node_pause}pause_{self.data_rate}rate")

    def validate(self) -> "ExperimentConfig":
        """
        Check the run can be executed before anything is scheduled.

        Raises:
            ConfigurationError: on any invalid combination of parameters

        Returns:
            self, so construction and validation can be chained
        """
        RoutingProtocol.parse(self.protocol)
        if self.n_mobile_nodes < 0 or self.n_static_nodes < 0:
            raise ConfigurationError("node counts must not be negative")
        if self.sink_count < 0:
            raise ConfigurationError(f"sink count must not be negative, got {self.sink_count}")
        if 2 * self.sink_count > self.total_nodes:
            raise ConfigurationError(
                f"{self.sink_count} sinks need {2 * self.sink_count} nodes, "
                f"only {self.total_nodes} configured"
            )
        if self.total_time <= 0:
            raise ConfigurationError(f"total time must be positive, got {self.total_time}")
        if self.sample_interval <= 0:
            raise ConfigurationError(f"sample interval must be positive, got {self.sample_interval}")
        if self.packet_size <= 0:
            raise ConfigurationError(f"packet size must be positive, got {self.packet_size}")
        if not (0 < self.port < 65536):
            raise ConfigurationError(f"port out of range: {self.port}")

        if not self.csv_file_name or self.csv_file_name.endswith(os.sep):
            raise ConfigurationError(f"malformed output path: {self.csv_file_name!r}")
        out_dir = os.path.dirname(os.path.abspath(self.csv_file_name))
        if not os.path.isdir(out_dir):
            raise ConfigurationError(f"output directory does not exist: {out_dir}")
        return self

    @classmethod
    def from_args(cls, args) -> "ExperimentConfig":
        """
        Build a validated configuration from parsed command-line arguments.

        Args:
            args: argparse Namespace produced by main.parse_args()
        """
        return cls(
            sink_count=int(args.sinks),
            tx_power_dbm=float(args.txp),
            csv_file_name=args.csv,
            total_time=float(args.stop),
            protocol=RoutingProtocol.parse(args.protocol),
            n_mobile_nodes=int(args.mobile_nodes),
            n_static_nodes=int(args.static_nodes),
            node_speed=int(args.speed),
            node_pause=int(args.pause),
            sample_interval=float(args.interval),
            shared_start_stream=bool(args.shared_stream),
            trace_mobility=bool(args.trace_mobility),
            flow_monitor=bool(args.flow_monitor),
            verbose=not args.quiet,
            seed=int(args.seed),
            run=int(args.run),
        ).validate()
