import asyncio
import queue
import threading
import unittest

from s3_vfs.background import BackgroundContext, UiExecutor, default_background


class BackgroundContextTests(unittest.TestCase):
    def setUp(self):
        self.background = BackgroundContext(2, name="test-bg")

    def tearDown(self):
        self.background.shutdown()

    def test_run_returns_result_from_worker_thread(self):
        def work(value, *, suffix):
            return f"{value}{suffix}", threading.current_thread().name

        result, thread_name = asyncio.run(self.background.run(work, "a", suffix="b"))

        self.assertEqual("ab", result)
        self.assertTrue(thread_name.startswith("test-bg"))
        self.assertNotEqual(threading.current_thread().name, thread_name)

    def test_run_propagates_exceptions(self):
        def fail():
            raise KeyError("boom")

        with self.assertRaises(KeyError):
            asyncio.run(self.background.run(fail))

    def test_operations_run_concurrently(self):
        started = threading.Barrier(2, timeout=5)

        def wait_for_peer():
            started.wait()
            return True

        async def run_both():
            return await asyncio.gather(
                self.background.run(wait_for_peer),
                self.background.run(wait_for_peer),
            )

        self.assertEqual([True, True], asyncio.run(run_both()))

    def test_default_background_is_shared(self):
        self.assertIs(default_background(), default_background())


class UiExecutorTests(unittest.TestCase):
    def test_runs_inline_without_dispatcher(self):
        ui = UiExecutor()

        self.assertEqual(3, ui.call(lambda: 1 + 2))
        calls = []
        ui.post(lambda: calls.append("posted"))
        self.assertEqual(["posted"], calls)

    def test_runs_inline_on_ui_thread(self):
        dispatched = []
        ui = UiExecutor(dispatched.append)

        self.assertTrue(ui.on_ui_thread)
        self.assertEqual("done", ui.call(lambda: "done"))
        self.assertEqual([], dispatched)

    def test_call_from_worker_waits_for_ui_thread(self):
        tasks = queue.Queue()
        ui = UiExecutor(tasks.put)
        results = []

        worker = threading.Thread(target=lambda: results.append(ui.call(threading.get_ident)))
        worker.start()
        tasks.get(timeout=5)()
        worker.join(timeout=5)

        self.assertEqual([threading.get_ident()], results)

    def test_call_from_worker_reraises(self):
        tasks = queue.Queue()
        ui = UiExecutor(tasks.put)
        errors = []

        def fail():
            raise ValueError("bad")

        def worker_body():
            try:
                ui.call(fail)
            except ValueError as exc:
                errors.append(str(exc))

        worker = threading.Thread(target=worker_body)
        worker.start()
        tasks.get(timeout=5)()
        worker.join(timeout=5)

        self.assertEqual(["bad"], errors)


if __name__ == "__main__":
    unittest.main()
