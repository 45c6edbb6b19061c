"""Domain services: timing, validation, fitting, scheduling and jobs."""
