"""BandSet: song library, setlists and scheduling for bands."""

__version__ = "1.0.0"
