"""Content selection, generation, failover and orchestration."""
