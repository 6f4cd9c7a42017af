"""B-roll director: turn scripts and videos into generated stills and clips."""

__version__ = "0.1.0"
