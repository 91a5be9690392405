"""
Shared fixtures: an in-memory discrete-event scheduler and a network double
that stand in for ns-3 so the experiment wiring runs without the simulator.
"""

import heapq
import itertools

import pytest

from Config import ExperimentConfig
from ReceiveAccumulator import ReceiveEvent


class EventQueueScheduler:
    """Discrete-event scheduler with the same interface as Ns3Scheduler"""

    def __init__(self):
        self.event_queue = []
        self.current_time = 0.0
        self.running = False
        self.destroyed = False
        self.halted = False
        self.events_processed = 0
        self._seq = itertools.count()
        self._cancelled = set()

    def now(self):
        return self.current_time

    def schedule_at(self, at, callback):
        handle = next(self._seq)
        heapq.heappush(self.event_queue, (at, handle, callback))
        return handle

    def cancel(self, handle):
        self._cancelled.add(handle)

    def stop_at(self, at):
        self.schedule_at(at, self.halt)

    def halt(self):
        self.running = False
        self.halted = True

    def pending(self):
        return [e for e in self.event_queue if e[1] not in self._cancelled]

    def run_until(self, end_time):
        """Process events up to and including end_time"""
        self.running = True
        while self.event_queue and self.running:
            if self.event_queue[0][0] > end_time:
                break
            at, handle, callback = heapq.heappop(self.event_queue)
            if handle in self._cancelled:
                continue
            self.current_time = at
            callback()
            self.events_processed += 1
        self.running = False

    def run(self):
        self.run_until(float("inf"))

    def destroy(self):
        self.destroyed = True
        self.event_queue.clear()


class FakeNetwork:
    """
    Records install requests and replays scripted packet arrivals.

    traffic maps a sink node index to a list of (time, size_bytes) arrivals.
    """

    def __init__(self, scheduler, n_nodes, traffic=None):
        self.scheduler = scheduler
        self.n_nodes = n_nodes
        self.traffic = traffic or {}
        self.protocol = None
        self.sinks = []
        self.sources = []
        self.active_sinks = set()
        self.sink_events = []
        self.finalized = False

    def build(self, protocol):
        self.protocol = protocol

    def endpoint_addresses(self):
        return [f"10.1.1.{i + 1}" for i in range(self.n_nodes)]

    def install_sink(self, flow, on_receive):
        """Arrivals outside [sink_start, sink_stop) are dropped, like a closed socket."""
        self.sinks.append(flow)
        node = flow.sink_node_index
        source = self.endpoint_addresses()[flow.source_node_index]

        def activate():
            self.active_sinks.add(node)
            self.sink_events.append((self.scheduler.now(), "activate", node))

        def deactivate():
            self.active_sinks.discard(node)
            self.sink_events.append((self.scheduler.now(), "close", node))

        self.scheduler.schedule_at(flow.sink_start, activate)
        self.scheduler.schedule_at(flow.sink_stop, deactivate)

        for at, size in self.traffic.get(node, []):
            def deliver(size=size):
                if node in self.active_sinks:
                    on_receive(ReceiveEvent(source, size, self.scheduler.now(), node))
            self.scheduler.schedule_at(at, deliver)

    def install_source(self, flow):
        self.sources.append(flow)

    def finalize(self):
        self.finalized = True


@pytest.fixture
def scheduler():
    return EventQueueScheduler()


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        params = dict(csv_file_name=str(tmp_path / "results.csv"), verbose=False)
        params.update(overrides)
        return ExperimentConfig(**params)
    return _make
