from ReceiveAccumulator import ReceiveAccumulator, ReceiveEvent, format_reception


def test_on_receive_counts_bytes_and_packets():
    acc = ReceiveAccumulator()
    for size in (512, 64, 0):
        acc.on_receive(ReceiveEvent("10.1.1.16", size, 1.0, 0))

    assert acc.bytes_since_last_sample == 576
    assert acc.packets_since_last_sample == 3


def test_drain_resets_interval_counters_only():
    acc = ReceiveAccumulator()
    acc.on_receive(ReceiveEvent("10.1.1.16", 512, 0.5, 0))
    acc.on_receive(ReceiveEvent("10.1.1.17", 512, 0.7, 1))

    assert acc.drain_and_reset() == (1024, 2)
    assert acc.drain_and_reset() == (0, 0)
    assert acc.total_bytes == 1024
    assert acc.total_packets == 2


def test_counters_grow_between_drains():
    acc = ReceiveAccumulator()
    seen = []
    for i in range(5):
        acc.on_receive(ReceiveEvent(None, 100, float(i), 3))
        seen.append((acc.bytes_since_last_sample, acc.packets_since_last_sample))

    assert seen == [(100, 1), (200, 2), (300, 3), (400, 4), (500, 5)]


def test_reception_line_formats():
    assert (format_reception(ReceiveEvent("10.1.1.16", 512, 100.25, 0))
            == "100.25 0 received one packet from 10.1.1.16")
    assert format_reception(ReceiveEvent(None, 512, 3.0, 7)) == "3 7 received one packet!"


def test_verbose_prints_each_packet(capsys):
    acc = ReceiveAccumulator(verbose=True)
    acc.on_receive(ReceiveEvent("10.1.1.2", 512, 101.5, 1))

    assert capsys.readouterr().out == "101.5 1 received one packet from 10.1.1.2\n"


def test_quiet_prints_nothing(capsys):
    ReceiveAccumulator().on_receive(ReceiveEvent("10.1.1.2", 512, 101.5, 1))
    assert capsys.readouterr().out == ""
