"""Responders, the responder directory and the dispatcher."""
