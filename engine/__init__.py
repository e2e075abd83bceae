"""engine

Headless turn orchestration."""
