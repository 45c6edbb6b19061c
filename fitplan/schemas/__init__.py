"""Request/response and model-contract schemas."""
