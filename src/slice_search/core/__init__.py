"""Core application infrastructure: state, lifespan and error handling."""
