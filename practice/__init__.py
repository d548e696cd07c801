"""Practice table: one remote client against house bots over WebSockets."""

from .bots import HouseBot
from .server import PracticeSession, RemoteSeatProvider, run_server

__all__ = ["HouseBot", "PracticeSession", "RemoteSeatProvider", "run_server"]
