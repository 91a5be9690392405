"""
Ns3Scheduler: ns-3 Simulator adapter for Python callbacks

Exposes the ns-3 virtual clock and event queue through the small interface
the experiment components use, and defines the C++ trampolines that let
Python callables run as ns-3 events and socket receive callbacks.
"""

import os

from ns import ns
import cppyy


def setup_cppyy_callbacks():
    """
    Setup C++ callback trampolines for ns-3 Python bindings.

    Defines:
    - pythonMakeEvent: wraps a Python callable as an ns-3 EventImpl
    - PythonRecvTrampoline: socket receive callback forwarding to _py_recv
    - ClearPythonCallbacks: releases every stored Python callable

    Uses shared_ptr for automatic memory management to prevent leaks.
    """
    ns3_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..'))
    include_dir = os.path.join(ns3_root, "build/include")
    if os.path.isdir(include_dir):
        cppyy.add_include_path(include_dir)

    ns.cppyy.cppdef(r"""
    #include "ns3/event-id.h"
    #include "ns3/make-event.h"
    #include "ns3/ptr.h"
    #include "ns3/socket.h"
    #include <vector>
    #include <functional>
    #include <memory>
    using namespace ns3;

    static std::vector<std::shared_ptr<std::function<void()>>> _py_store;

    EventImpl* pythonMakeEvent(std::function<void()> f) {
        auto func_ptr = std::make_shared<std::function<void()>>(std::move(f));
        _py_store.push_back(func_ptr);
        return MakeEvent(*func_ptr);
    }

    static std::function<void(Ptr<Socket>)> _py_recv;

    void PythonRecvTrampoline(Ptr<Socket> s) {
        if (_py_recv) _py_recv(s);
    }

    void ClearPythonCallbacks() {
        _py_store.clear();
        _py_recv = nullptr;
    }
    """)


class Ns3Scheduler:
    """
    Virtual clock and event queue backed by ns.Simulator.

    Scheduled callables are kept in _event_refs so Python does not collect
    them while ns-3 still holds the event.
    """
    def __init__(self):
        self._event_refs = []

    def now(self) -> float:
        return ns.Simulator.Now().GetSeconds()

    def schedule_at(self, at: float, callback):
        """
        Schedule callback at absolute virtual time `at`.

        Returns:
            ns-3 EventId, usable with cancel()
        """
        self._event_refs.append(callback)
        delay = max(0.0, at - self.now())
        return ns.Simulator.Schedule(ns.Seconds(delay),
                                     ns.cppyy.gbl.pythonMakeEvent(callback))

    def cancel(self, event_id) -> None:
        ns.Simulator.Cancel(event_id)

    def stop_at(self, at: float) -> None:
        ns.Simulator.Stop(ns.Seconds(max(0.0, at - self.now())))

    def halt(self) -> None:
        """Stop the run once the current event returns."""
        ns.Simulator.Stop()

    def run(self) -> None:
        ns.Simulator.Run()

    def destroy(self) -> None:
        try:
            ns.Simulator.Destroy()
            print("Simulator destroyed")
        except Exception as e:
            print(f"Warning during simulator destruction: {e}")
        if hasattr(ns.cppyy.gbl, 'ClearPythonCallbacks'):
            ns.cppyy.gbl.ClearPythonCallbacks()
        self._event_refs.clear()
