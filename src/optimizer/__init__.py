"""Remote optimizer client.

This module dials the optimization service once per address and reuses
the channel for every recompression request.
"""
