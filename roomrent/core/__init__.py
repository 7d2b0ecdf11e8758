"""Core building blocks: client context, synchronization, route gate."""
