"""Tools and external-service helpers used by the specialized responders."""
