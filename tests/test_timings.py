import asyncio
import statistics

import pytest

from brandmock.infra import timings


def test_aggregates_match_statistics():
    values = [0.5, 1.0, 2.5, 4.0]
    for v in values:
        timings.record_timing("db.add_order", v)
    (rec,) = timings.aggregates()
    assert rec["kind"] == "db.add_order"
    assert rec["n"] == 4
    assert rec["mean"] == pytest.approx(statistics.mean(values))
    assert rec["std"] == pytest.approx(statistics.stdev(values))


def test_single_sample_has_zero_std():
    timings.record_timing("mockup.generate", 0.2)
    assert timings.aggregates()[0]["std"] == 0.0


def test_storage_stays_bounded():
    for i in range(1000):
        timings.record_timing("payments.create_session", i / 1000)
    assert len(timings._TIMINGS) == 1
    stats = timings._TIMINGS["payments.create_session"]
    assert not hasattr(stats, "__dict__")
    assert stats.n == 1000


def test_timeit_records_duration():
    async def run():
        async with timings.timeit("db.add_order"):
            await asyncio.sleep(0)

    asyncio.run(run())
    (rec,) = timings.aggregates()
    assert rec["n"] == 1
    assert rec["mean"] >= 0.0


def test_repeated_checkouts_keep_one_accumulator_per_kind(client):
    for _ in range(20):
        client.post("/checkout", data={"name": "x"}, follow_redirects=False)
    items = client.get("/api/timings").json()["items"]
    kinds = {t["kind"]: t["n"] for t in items}
    assert kinds["db.add_order"] == 20
    assert all(isinstance(s, timings.RunningStats)
               for s in timings._TIMINGS.values())
