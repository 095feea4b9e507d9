import os
import threading


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]


class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
        # Approving a student join request materializes an AcademicEnrollment
        self.AUTO_ENROLL_ON_APPROVAL = _env_flag("AUTO_ENROLL_ON_APPROVAL", "true")
        self.DEFAULT_ACADEMIC_YEAR = os.environ.get("DEFAULT_ACADEMIC_YEAR", None)
        self.DEFAULT_TERM = os.environ.get("DEFAULT_TERM", None)

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

    def reload(self):
        """Re-read the environment (used by tests and the CLI)."""
        self.__init__()


settings = BackendSettings()
