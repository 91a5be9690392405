import csv
import json

import pytest

from Config import ConfigurationError
from ExperimentController import ExperimentController
from RoutingProtocol import RoutingProtocol

from conftest import FakeNetwork


def read_rows(path):
    with open(path, newline='') as f:
        return list(csv.reader(f))


def test_full_run_samples_every_second_until_stop(scheduler, make_config):
    config = make_config(sink_count=2, protocol=RoutingProtocol.DSDV)
    network = FakeNetwork(scheduler, config.total_nodes,
                          traffic={0: [(100.5, 512)], 1: [(101.5, 512), (101.75, 512)]})
    controller = ExperimentController(config, scheduler, network)

    summary = controller.run()

    rows = read_rows(config.csv_file_name)
    assert rows[0][0] == "SimulationSecond"
    data = rows[1:]
    assert [r[0] for r in data] == [str(t) for t in range(1, 104)]
    assert data[100] == ["101", "4.096", "1", "2", "DSDV", "7.5"]
    assert data[101] == ["102", "8.192", "2", "2", "DSDV", "7.5"]
    assert all(r[1:3] == ["0", "0"] for i, r in enumerate(data) if i not in (100, 101))

    assert scheduler.halted
    assert scheduler.now() == 103.0
    assert scheduler.destroyed
    assert network.finalized
    assert network.protocol is RoutingProtocol.DSDV
    assert summary['samples'] == 103
    assert summary['total_packets'] == 3
    assert summary['total_bytes'] == 1536
    assert json.loads(controller.writer.summary_file.read_text())['routing_protocol'] == "DSDV"


def test_flows_are_planned_and_installed(scheduler, make_config):
    config = make_config(sink_count=3)
    network = FakeNetwork(scheduler, config.total_nodes)
    controller = ExperimentController(config, scheduler, network)

    controller.run()

    assert [f.sink_node_index for f in network.sinks] == [0, 1, 2]
    assert [f.source_node_index for f in network.sources] == [3, 4, 5]
    assert network.sinks == controller.flows


def test_zero_sinks_still_samples_zeros(scheduler, make_config):
    config = make_config(sink_count=0, total_time=5.0)
    network = FakeNetwork(scheduler, config.total_nodes)

    ExperimentController(config, scheduler, network).run()

    assert network.sinks == [] and network.sources == []
    assert read_rows(config.csv_file_name)[1:] == [
        [str(t), "0", "0", "0", "AODV", "7.5"] for t in range(1, 6)
    ]


def test_unsupported_protocol_fails_before_output(scheduler, make_config, tmp_path):
    config = make_config(protocol=9)
    network = FakeNetwork(scheduler, config.total_nodes)
    controller = ExperimentController(config, scheduler, network)

    with pytest.raises(ConfigurationError):
        controller.run()

    assert not (tmp_path / "results.csv").exists()
    assert network.protocol is None
    assert scheduler.destroyed


def test_too_many_sinks_fails_before_output(scheduler, make_config, tmp_path):
    config = make_config(sink_count=16)
    with pytest.raises(ConfigurationError):
        ExperimentController(config, scheduler, FakeNetwork(scheduler, 30)).run()

    assert not (tmp_path / "results.csv").exists()


def test_run_shorter_than_one_interval(scheduler, make_config):
    config = make_config(sink_count=0, total_time=0.5)

    summary = ExperimentController(config, scheduler, FakeNetwork(scheduler, 30)).run()

    assert len(read_rows(config.csv_file_name)) == 1
    assert summary['samples'] == 0
    assert scheduler.now() == 0.5


def test_prints_reception_lines_when_verbose(scheduler, make_config, capsys):
    config = make_config(sink_count=1, verbose=True)
    network = FakeNetwork(scheduler, config.total_nodes, traffic={0: [(100.25, 512)]})

    ExperimentController(config, scheduler, network).run()

    assert "100.25 0 received one packet from 10.1.1.2" in capsys.readouterr().out


@pytest.mark.parametrize("selector, label", [
    (1, "OLSR"), ("OLSR", "OLSR"), ("4", "DSR"), ("dsdv", "DSDV"),
])
def test_code_and_name_selectors_run(scheduler, make_config, selector, label):
    config = make_config(sink_count=0, total_time=3.0, protocol=selector)
    network = FakeNetwork(scheduler, config.total_nodes)

    ExperimentController(config, scheduler, network).run()

    assert network.protocol.label == label
    assert {r[4] for r in read_rows(config.csv_file_name)[1:]} == {label}


def test_run_reaches_total_time_between_samples(scheduler, make_config):
    config = make_config(sink_count=1, total_time=103.5)
    network = FakeNetwork(scheduler, config.total_nodes, traffic={0: [(103.25, 512)]})

    summary = ExperimentController(config, scheduler, network).run()

    assert [r[0] for r in read_rows(config.csv_file_name)[1:]] == [str(t) for t in range(1, 104)]
    assert scheduler.now() == 103.5
    assert summary['sim_time_seconds'] == 103.5
    assert summary['total_packets'] == 1
    assert (103.5, "close", 0) in network.sink_events


def test_sinks_listen_only_between_start_and_stop(scheduler, make_config):
    config = make_config(sink_count=2)
    network = FakeNetwork(scheduler, config.total_nodes,
                          traffic={0: [(0.0, 512), (2.5, 512)], 1: [(102.5, 512)]})
    controller = ExperimentController(config, scheduler, network)

    summary = controller.run()

    for flow in controller.flows:
        node = flow.sink_node_index
        assert (flow.sink_start, "activate", node) in network.sink_events
        assert (flow.sink_stop, "close", node) in network.sink_events
        assert 0.0 < flow.sink_start < 1.0
    assert len(network.sink_events) == 4
    # Arrival at t=0 precedes every sink activation
    assert summary['total_packets'] == 2
    packets = [r[2] for r in read_rows(config.csv_file_name)[1:]]
    assert [t + 1 for t, p in enumerate(packets) if p == "1"] == [3, 103]
    assert set(packets) == {"0", "1"}
