from autoglass.workers.housekeeping import Housekeeping, start_housekeeping

__all__ = ["Housekeeping", "start_housekeeping"]
