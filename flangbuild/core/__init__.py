"""Core — configuration, models, services and orchestration."""
