"""FuelTrack backend: fuel logging, nearby station search and a keyword chatbot."""

__version__ = "1.0.0"
