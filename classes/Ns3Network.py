"""
Ns3Network: ad hoc Wi-Fi network for MANET routing comparison on ns-3

Builds the scenario the experiment runs in:
    - Mobile nodes following a random waypoint model inside a 1500 x 300 m
      rectangle, plus static nodes on a grid
    - 802.11b ad hoc Wi-Fi at a constant 11 Mb/s DSSS rate with Friis loss
      and a fixed transmit power
    - One of OLSR, AODV, DSDV or DSR as the routing protocol
    - IPv4 addressing in 10.1.1.0/24

and installs the traffic endpoints the TrafficPlanner asks for:
    - Sinks: UDP sockets bound to the sink address and port, delivering
      every packet to the experiment's receive callback
    - Sources: constant-rate OnOff applications sending to the sink

Mobility tracing and the flow monitor are optional side artifacts.

Licensed under the MIT License
"""

from ns import ns

from Config import Config, ExperimentConfig
from ReceiveAccumulator import ReceiveEvent
from RoutingProtocol import RoutingProtocol
from TrafficPlanner import FlowSpec


def _ipv4_str(address) -> str:
    value = int(address.Get())
    return ".".join(str((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))


class Ns3Network:
    def __init__(self, config: ExperimentConfig, scheduler):
        """
        Args:
            config: Immutable run configuration
            scheduler: Ns3Scheduler used to time sink activation
        """
        self.config = config
        self.scheduler = scheduler

        self.built = False
        self.protocol = None
        self.interfaces = None
        self.sink_sockets = {}
        self.source_apps = []
        self.flowmon = None
        self.flowmon_helper = None
        self._routing_helpers = []
        self._on_receive = None

        self._routing_handlers = {
            RoutingProtocol.OLSR: self._install_olsr,
            RoutingProtocol.AODV: self._install_aodv,
            RoutingProtocol.DSDV: self._install_dsdv,
            RoutingProtocol.DSR: self._install_dsr,
        }

    def build(self, protocol: RoutingProtocol) -> None:
        """
        Create nodes, devices, mobility, routing and addresses.

        Network Configuration:
            - Nodes: config.n_mobile_nodes mobile + config.n_static_nodes static
            - PHY: 802.11b, ConstantRateWifiManager (config.phy_mode)
            - Propagation: constant speed delay + Friis loss
            - TX power: config.tx_power_dbm (start and end)
            - Subnet: Config.NETWORK_BASE / Config.NETWORK_MASK
        """
        self.protocol = protocol

        ns.Config.SetDefault("ns3::OnOffApplication::PacketSize",
                             ns.UintegerValue(self.config.packet_size))
        ns.Config.SetDefault("ns3::OnOffApplication::DataRate",
                             ns.StringValue(self.config.data_rate))
        # Non-unicast frames go out at the unicast rate
        ns.Config.SetDefault("ns3::WifiRemoteStationManager::NonUnicastMode",
                             ns.StringValue(self.config.phy_mode))

        self.adhocNodes = ns.NodeContainer()
        self.adhocNodes.Create(self.config.n_mobile_nodes)
        self.staticNodes = ns.NodeContainer()
        self.staticNodes.Create(self.config.n_static_nodes)
        self.allNodes = ns.NodeContainer(self.adhocNodes, self.staticNodes)

        devices = self._setup_wifi()
        self._setup_mobility()
        self._routing_handlers[protocol]()

        addressAdhoc = ns.Ipv4AddressHelper()
        addressAdhoc.SetBase(ns.Ipv4Address(Config.NETWORK_BASE), ns.Ipv4Mask(Config.NETWORK_MASK))
        self.interfaces = addressAdhoc.Assign(devices)

        self._setup_tracing()
        self.built = True
        print(f"✅ Built ad hoc network: {self.config.n_mobile_nodes} mobile + "
              f"{self.config.n_static_nodes} static nodes, routing {protocol.label}")

    # ---------------- Wi-Fi: channel/phy/mac/devices ----------------
    def _setup_wifi(self):
        wifi = ns.WifiHelper()
        try:
            wifi.SetStandard(ns.WIFI_STANDARD_80211b)
        except Exception:
            wifi.SetStandard(getattr(ns, "WIFI_PHY_STANDARD_80211b"))

        channel = ns.YansWifiChannelHelper()
        channel.SetPropagationDelay("ns3::ConstantSpeedPropagationDelayModel")
        channel.AddPropagationLoss("ns3::FriisPropagationLossModel")

        phy = ns.YansWifiPhyHelper()
        phy.SetChannel(channel.Create())
        phy.Set("TxPowerStart", ns.DoubleValue(self.config.tx_power_dbm))
        phy.Set("TxPowerEnd", ns.DoubleValue(self.config.tx_power_dbm))

        # Rate control disabled
        wifi.SetRemoteStationManager("ns3::ConstantRateWifiManager",
                                     "DataMode", ns.StringValue(self.config.phy_mode),
                                     "ControlMode", ns.StringValue(self.config.phy_mode))

        mac = ns.WifiMacHelper()
        mac.SetType("ns3::AdhocWifiMac")
        self.wifiPhy = phy
        return wifi.Install(phy, mac, self.allNodes)

    # ---------------- Mobility ---------------
    def _setup_mobility(self):
        stream_index = 0

        pos = ns.ObjectFactory()
        pos.SetTypeId("ns3::RandomRectanglePositionAllocator")
        pos.Set("X", ns.StringValue(f"ns3::UniformRandomVariable[Min=0.0|Max={Config.AREA_X}]"))
        pos.Set("Y", ns.StringValue(f"ns3::UniformRandomVariable[Min=0.0|Max={Config.AREA_Y}]"))
        taPositionAlloc = pos.Create().GetObject[ns.PositionAllocator]()
        stream_index += taPositionAlloc.AssignStreams(stream_index)

        mobilityAdhoc = ns.MobilityHelper()
        mobilityAdhoc.SetMobilityModel(
            "ns3::RandomWaypointMobilityModel",
            "Speed", ns.StringValue(f"ns3::UniformRandomVariable[Min=0.0|Max={self.config.node_speed}]"),
            "Pause", ns.StringValue(f"ns3::ConstantRandomVariable[Constant={self.config.node_pause}]"),
            "PositionAllocator", ns.PointerValue(taPositionAlloc))
        mobilityAdhoc.SetPositionAllocator(taPositionAlloc)
        mobilityAdhoc.Install(self.adhocNodes)
        # Same streams on every run so mobility matches across protocols
        stream_index += mobilityAdhoc.AssignStreams(self.adhocNodes, stream_index)

        mobilityStatic = ns.MobilityHelper()
        mobilityStatic.SetPositionAllocator("ns3::GridPositionAllocator",
                                            "MinX", ns.DoubleValue(0.0),
                                            "MinY", ns.DoubleValue(0.0),
                                            "DeltaX", ns.DoubleValue(Config.STATIC_GRID_DELTA_X),
                                            "DeltaY", ns.DoubleValue(Config.STATIC_GRID_DELTA_Y),
                                            "GridWidth", ns.UintegerValue(Config.STATIC_GRID_WIDTH))
        mobilityStatic.SetMobilityModel("ns3::ConstantPositionMobilityModel")
        mobilityStatic.Install(self.staticNodes)

        self._taPositionAlloc = taPositionAlloc

    # ---------------- Routing ---------------
    def _install_list_routing(self, protocol_helper):
        staticRouting = ns.Ipv4StaticRoutingHelper()
        routingList = ns.Ipv4ListRoutingHelper()
        routingList.Add(staticRouting, 0)
        routingList.Add(protocol_helper, 100)

        internet = ns.InternetStackHelper()
        internet.SetRoutingHelper(routingList)
        internet.Install(self.allNodes)
        self._routing_helpers.extend([protocol_helper, staticRouting, routingList, internet])

    def _install_olsr(self):
        self._install_list_routing(ns.OlsrHelper())

    def _install_aodv(self):
        self._install_list_routing(ns.AodvHelper())

    def _install_dsdv(self):
        self._install_list_routing(ns.DsdvHelper())

    def _install_dsr(self):
        internet = ns.InternetStackHelper()
        internet.Install(self.allNodes)
        dsr = ns.DsrHelper()
        dsrMain = ns.DsrMainHelper()
        dsrMain.Install(dsr, self.allNodes)
        self._routing_helpers.extend([internet, dsr, dsrMain])

    # ---------------- Tracing ---------------
    def _setup_tracing(self):
        if self.config.trace_mobility:
            ascii_helper = ns.AsciiTraceHelper()
            ns.MobilityHelper.EnableAsciiAll(ascii_helper.CreateFileStream(f"{self.config.trace_name}.mob"))
            print(f"ℹ️  Mobility trace: {self.config.trace_name}.mob")

        if self.config.flow_monitor:
            self.flowmon_helper = ns.FlowMonitorHelper()
            self.flowmon = self.flowmon_helper.InstallAll()

    # ---------------- Endpoints ---------------
    def endpoint_addresses(self):
        """IPv4 address of every node as a dotted string, by node index."""
        if not self.built:
            raise RuntimeError("network not built")
        return [_ipv4_str(self.interfaces.GetAddress(i))
                for i in range(self.allNodes.GetN())]

    def _packet_received(self, socket):
        """
        Drain a sink socket and report every packet as a ReceiveEvent.

        Processes all queued packets in a single callback invocation.
        """
        node_id = int(socket.GetNode().GetId())
        sender = ns.Address()
        packet = socket.RecvFrom(sender)
        while packet:
            if ns.InetSocketAddress.IsMatchingType(sender):
                source = _ipv4_str(ns.InetSocketAddress.ConvertFrom(sender).GetIpv4())
            else:
                source = None
            self._on_receive(ReceiveEvent(
                source_address=source,
                size_bytes=int(packet.GetSize()),
                arrival_time=self.scheduler.now(),
                node_id=node_id,
            ))
            packet = socket.RecvFrom(sender)

    def install_sink(self, flow: FlowSpec, on_receive) -> None:
        """
        Bind the sink socket now; start delivering at flow.sink_start and
        close it at flow.sink_stop.

        Raises:
            RuntimeError: if the socket cannot be bound
        """
        self._on_receive = on_receive
        ns.cppyy.gbl._py_recv = self._packet_received

        node = self.allNodes.Get(flow.sink_node_index)
        sink = ns.Socket.CreateSocket(node, ns.TypeId.LookupByName(Config.SOCKET_FACTORY))
        local = ns.InetSocketAddress(ns.Ipv4Address(flow.destination_address), flow.port)
        if sink.Bind(local.ConvertTo()) != 0:
            raise RuntimeError(f"[sink] bind to {flow.destination_address}:{flow.port} "
                               f"failed on node {flow.sink_node_index}")
        self.sink_sockets[flow.sink_node_index] = sink

        def activate(s=sink):
            s.SetRecvCallback(ns.MakeCallback(ns.cppyy.gbl.PythonRecvTrampoline))

        def deactivate(index=flow.sink_node_index):
            s = self.sink_sockets.pop(index, None)
            if s is not None:
                s.Close()

        self.scheduler.schedule_at(flow.sink_start, activate)
        self.scheduler.schedule_at(flow.sink_stop, deactivate)

    def install_source(self, flow: FlowSpec) -> None:
        """Install an always-on constant-rate sender towards the flow's sink."""
        remote = ns.InetSocketAddress(ns.Ipv4Address(flow.destination_address), flow.port)
        onoff = ns.OnOffHelper(Config.SOCKET_FACTORY, remote.ConvertTo())
        onoff.SetAttribute("OnTime", ns.StringValue("ns3::ConstantRandomVariable[Constant=1.0]"))
        onoff.SetAttribute("OffTime", ns.StringValue("ns3::ConstantRandomVariable[Constant=0.0]"))
        onoff.SetAttribute("PacketSize", ns.UintegerValue(self.config.packet_size))
        onoff.SetAttribute("DataRate", ns.StringValue(self.config.data_rate))

        apps = onoff.Install(self.allNodes.Get(flow.source_node_index))
        apps.Start(ns.Seconds(flow.source_start))
        apps.Stop(ns.Seconds(flow.source_stop))
        self.source_apps.append(apps)

    def finalize(self) -> None:
        """Serialize side artifacts; called before the simulator is destroyed."""
        if self.flowmon is not None:
            self.flowmon.SerializeToXmlFile(f"{self.config.trace_name}.flowmon", False, False)
            print(f"ℹ️  Flow monitor: {self.config.trace_name}.flowmon")
        self.sink_sockets.clear()
