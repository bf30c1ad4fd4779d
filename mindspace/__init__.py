"""Mindspace voice-in, voice-out backend."""
