"""Infrastructure shared by the pipeline: protocols, config, async helpers."""
