import threading
import time


class SharedState:
    """
    Singleton class to share state between the frame loop
    and the FastAPI web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance._init_state()
        return cls._instance

    def _init_state(self):
        self.frame = None
        self.frame_lock = threading.Lock()
        self.controller = None
        self.system_stats = {
            "fps": 0.0,
            "dropped_frames": 0,
            "start_time": time.time(),
            "last_frame_ts": None,
        }

    def reset(self):
        """Drop everything (used by tests)."""
        with self.frame_lock:
            self._init_state()

    def set_frame(self, frame):
        """Store a copy of the latest annotated preview."""
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()
                self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self):
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def set_controller(self, controller):
        self.controller = controller

    def update_system_stats(self, stats):
        self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)


# Global instance
state = SharedState()
