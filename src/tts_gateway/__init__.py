"""Gateway exposing the MiniMax web text-to-speech API over plain HTTP."""

__version__ = "1.0.0"
