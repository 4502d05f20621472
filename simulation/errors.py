# simulation/errors.py
"""
Error taxonomy for the rail simulation.

ConfigurationError is fatal at startup. TransientTickError is raised inside a
single train's tick and is caught by the clock, which skips that train.
"""


class SimulationError(Exception):
    """Base exception for simulation errors."""
    pass


class ConfigurationError(SimulationError):
    """Raised when routes, stations or counts are invalid at startup."""
    pass


class TransientTickError(SimulationError):
    """Raised when a lookup fails while advancing one train."""

    def __init__(self, train_id: str, message: str):
        self.train_id = train_id
        super().__init__(f"{train_id}: {message}")
