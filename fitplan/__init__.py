"""fitplan: deterministic workout-program fitting and generation jobs."""
