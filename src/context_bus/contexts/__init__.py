"""
Example bounded-context wiring for the standard reaction handlers.
"""
