"""
Thread safety tests.

A compiled pattern is immutable and may be shared by any number of threads
as long as each concurrent match uses its own MatchData. These tests race
threads over one Code and check every result against a single-threaded
reference.

All concurrency tests use timeout safeguards to prevent CI hangs from stuck threads.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest

from pcre2ffi import SUBSTITUTE_GLOBAL, Code, MatchData, serialize

pytestmark = pytest.mark.requires_lib

# Timeout in seconds for thread joins - prevents CI hangs
THREAD_TIMEOUT = 30


def join_threads_with_timeout(threads: list, timeout: float = THREAD_TIMEOUT) -> list:
    """Join threads with timeout, returning list of threads that didn't complete."""
    stuck = []
    for t in threads:
        t.join(timeout=timeout)  # DEADLOCK_GUARD
        if t.is_alive():
            stuck.append(t)
    return stuck


class TestSharedCode:
    """One Code, many threads."""

    @pytest.mark.slow
    def test_concurrent_match_own_match_data(self):
        """Each thread uses its own MatchData and sees only its own results."""
        code = Code.compile(r"\d+")
        errors = []
        num_threads = 8
        iterations = 500

        def match_loop(thread_id):
            md = MatchData.from_pattern(code)
            try:
                for i in range(iterations):
                    subject = f"abc{thread_id}{i}def"
                    result = code.match(subject, match_data=md)
                    if result.group() != f"{thread_id}{i}":
                        errors.append((thread_id, i, result.group()))
            except Exception as e:
                errors.append((thread_id, "exception", e))
            finally:
                md.close()

        threads = [threading.Thread(target=match_loop, args=(t,)) for t in range(num_threads)]
        for t in threads:
            t.start()

        stuck = join_threads_with_timeout(threads)
        assert not stuck, f"{len(stuck)} threads did not finish"
        assert not errors, errors[:5]

    def test_executor_matches_reference(self):
        """ThreadPoolExecutor results equal the single-threaded reference."""
        code = Code.compile(r"(\w+)@(\w+)")
        subjects = [f"user{i}@host{i % 7}" for i in range(200)]
        reference = {s: code.match(s).groups() for s in subjects}

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = {executor.submit(lambda s: code.match(s).groups(), s): s for s in subjects}
            for future in as_completed(futures, timeout=THREAD_TIMEOUT):
                assert future.result() == reference[futures[future]]

    def test_concurrent_substitute(self):
        code = Code.compile("o")

        def work(i):
            return code.substitute("foo" * i, "0", options=SUBSTITUTE_GLOBAL)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(work, range(1, 50), timeout=THREAD_TIMEOUT))

        for i, (count, output) in enumerate(results, 1):
            assert count == 2 * i
            assert output == "f00" * i

    def test_concurrent_dfa(self):
        code = Code.compile("<.*>")

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(
                executor.map(lambda _: code.dfa_match("<a> <b>").ends, range(100)),
            )

        assert all(ends == [7, 3] for ends in results)

    def test_concurrent_serialize(self):
        codes = [Code.compile("a+"), Code.compile("(b)")]

        with ThreadPoolExecutor(max_workers=4) as executor:
            blobs = list(executor.map(lambda _: serialize.encode(codes), range(20)))

        assert len(set(blobs)) == 1


class TestLibraryLoading:
    """Concurrent first use of the default library."""

    def test_get_lib_is_shared(self):
        import pcre2ffi

        with ThreadPoolExecutor(max_workers=8) as executor:
            libs = list(executor.map(lambda _: pcre2ffi.get_lib(), range(32)))

        assert all(lib is libs[0] for lib in libs)
