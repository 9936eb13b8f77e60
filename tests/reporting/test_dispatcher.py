import threading

from src.time_tracker.time_tracker.reporting.dispatcher import BackgroundDispatcher, InlineDispatcher


def test_inline_dispatcher_swallows_and_logs_failures(caplog):
    calls = []

    def boom():
        raise RuntimeError("nope")

    dispatcher = InlineDispatcher()
    dispatcher.submit(boom)
    dispatcher.submit(calls.append, "after")

    assert calls == ["after"]
    assert any(r.getMessage() == "side_effect_failed" for r in caplog.records)


def test_background_dispatcher_runs_jobs_off_thread():
    done = threading.Event()
    threads = []

    def job():
        threads.append(threading.current_thread().name)
        done.set()

    dispatcher = BackgroundDispatcher(max_workers=1)
    dispatcher.submit(job)
    assert done.wait(timeout=5)
    dispatcher.shutdown(wait=True)

    assert threads[0].startswith("reporting")
