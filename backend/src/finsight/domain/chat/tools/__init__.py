"""Tools the language model can call during a chat turn."""
