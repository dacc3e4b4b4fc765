"""Tests for the reader/writer lock guarding the terminal slots."""

import threading
import time

from conftest import wait_for
from paneweave.utils.locks import ReadWriteLock


def start(target):
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


class TestReadWriteLock:
    def test_readers_share(self):
        lock = ReadWriteLock()
        inside = []
        release = threading.Event()

        def reader():
            with lock.read():
                inside.append(1)
                release.wait(2)

        threads = [start(reader) for _ in range(3)]
        assert wait_for(lambda: len(inside) == 3)
        release.set()
        for thread in threads:
            thread.join(2)

    def test_writer_waits_for_readers(self):
        lock = ReadWriteLock()
        acquired = threading.Event()

        def writer():
            with lock.write():
                acquired.set()

        lock.acquire_read()
        thread = start(writer)
        time.sleep(0.05)
        assert not acquired.is_set()
        lock.release_read()
        assert acquired.wait(2)
        thread.join(2)

    def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        order = []

        def writer():
            with lock.write():
                order.append("write")

        def reader():
            with lock.read():
                order.append("read")

        lock.acquire_read()
        writer_thread = start(writer)
        assert wait_for(lambda: lock._waiting_writers == 1)
        reader_thread = start(reader)
        time.sleep(0.05)
        assert order == []
        lock.release_read()
        writer_thread.join(2)
        reader_thread.join(2)
        assert order == ["write", "read"]

    def test_release_on_error(self):
        lock = ReadWriteLock()
        try:
            with lock.write():
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        with lock.read():
            pass
