from concurrent.futures import Executor, Future


class ImmediateExecutor(Executor):
    """
    An executor that runs each submitted callable on the calling thread.
    The returned future is already complete. Useful for scripts that want the
    controller to behave synchronously, and for deterministic tests.
    """

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future
