import threading
from typing import Callable
from apps.domain.interfaces.scheduler import Scheduler


class ThreadingScheduler(Scheduler):
    """Fires callbacks on ``threading.Timer`` threads.

    The engine serialises its entry points, so callbacks may race UI calls
    safely; views driven from a UI loop still need to marshal their own
    updates onto that loop.
    """

    def call_later(self, delay: float, callback: Callable, *args):
        timer = threading.Timer(delay, callback, args=args)
        timer.daemon = True
        timer.start()
        return timer
