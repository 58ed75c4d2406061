"""Pluggable image sources.

This module resolves backend-specific lookup parameters into images.
Sources are registered by name and looked up by the task-chain parser.
"""
