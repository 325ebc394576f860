"""Thread fetching, transcript rendering and cross-channel transfer."""
