"""
Tests for SingleFlightGate.
"""

import threading

from metal_batch.execution.single_flight import SingleFlightGate


def test_second_acquire_fails_until_release():
    gate = SingleFlightGate()

    assert gate.try_acquire() is True
    assert gate.try_acquire() is False
    assert gate.is_running

    gate.release()
    assert not gate.is_running
    assert gate.try_acquire() is True


def test_release_when_not_held_is_noop():
    gate = SingleFlightGate()
    gate.release()
    assert not gate.is_running
    assert gate.try_acquire() is True


def test_failed_acquire_leaves_state_unchanged():
    gate = SingleFlightGate()
    gate.try_acquire()
    gate.try_acquire()
    gate.release()
    # one release undoes the single successful acquire
    assert not gate.is_running


def test_concurrent_acquire_has_single_winner():
    gate = SingleFlightGate()
    workers = 16
    barrier = threading.Barrier(workers)
    results = []
    results_lock = threading.Lock()

    def contender():
        barrier.wait()
        won = gate.try_acquire()
        with results_lock:
            results.append(won)

    threads = [threading.Thread(target=contender) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(results) == workers
