"""Task-chain parsing and execution.

This module turns a task-chain string into jobs and runs them in order
against an image, honouring the abort-next short circuit.
"""
