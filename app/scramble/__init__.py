from app.scramble.scrambler import ScrambleOptions, Scrambler

__all__ = ["ScrambleOptions", "Scrambler"]
