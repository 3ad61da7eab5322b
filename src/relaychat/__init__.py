"""RelayChat - one streaming chat contract over several LLM backends."""

__version__ = "0.1.0"
